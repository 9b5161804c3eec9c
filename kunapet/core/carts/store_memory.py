import logging
from time import monotonic, time
from typing import Callable, Dict, Tuple

from kunapet.config import CART_TTL_SECONDS, CURRENCY
from kunapet.core.carts.models import Cart

log = logging.getLogger(__name__)


class MemoryCartStore:
    """
    Carritos en el proceso, para desarrollo o cuando Redis no responde.
    Igual que en Redis, un carrito sin guardar durante `ttl_seconds` se descarta.
    Devuelve siempre el mismo objeto Cart por sesión mientras siga vivo.
    """

    def __init__(self, ttl_seconds: int = CART_TTL_SECONDS, clock: Callable[[], float] = monotonic):
        self.ttl = ttl_seconds
        self._clock = clock
        self._carts: Dict[str, Tuple[Cart, float]] = {}

    def _alive(self, session_id: str):
        entry = self._carts.get(session_id)
        if entry is None:
            return None
        cart, expires_at = entry
        if self._clock() >= expires_at and not cart.locked:
            del self._carts[session_id]
            log.info(f"Carrito {session_id} expirado tras {self.ttl}s sin cambios")
            return None
        return cart

    def get_or_create(self, session_id: str, currency: str = CURRENCY) -> Cart:
        cart = self._alive(session_id)
        if cart is None:
            cart = Cart(session_id=session_id, currency=currency)
            self._carts[session_id] = (cart, self._clock() + self.ttl)
        return cart

    def save(self, cart: Cart) -> None:
        cart.updated_at = time()
        cart.version += 1
        self._carts[cart.session_id] = (cart, self._clock() + self.ttl)
        log.debug(f"Carrito {cart.session_id} guardado en memoria (v{cart.version})")
