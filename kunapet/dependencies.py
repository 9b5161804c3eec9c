from typing import Optional

from fastapi import Header

from kunapet.config import CART_BACKEND, REDIS_URL
from kunapet.core.carts.service import CartService
from kunapet.core.checkout.payments import SimulatedPaymentGateway
from kunapet.core.checkout.service import CheckoutService
from kunapet.integrations.identity import Session

# Una sola instancia por proceso; los tests las reemplazan con dependency_overrides
cart_service = CartService(redis_url=REDIS_URL) if CART_BACKEND == "redis" else CartService()
checkout_service = CheckoutService(cart_service, gateway=SimulatedPaymentGateway())


def get_cart_service() -> CartService:
    return cart_service


def get_checkout_service() -> CheckoutService:
    return checkout_service


def get_current_session(x_user_id: Optional[str] = Header(default=None)) -> Optional[Session]:
    """El cliente reenvía el id de usuario de su sesión del proveedor de identidad."""
    if not x_user_id:
        return None
    return Session(user_id=x_user_id)
