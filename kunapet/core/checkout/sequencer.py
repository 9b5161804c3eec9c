"""Secuencia de checkout: carrito -> método de pago -> (seguridad) -> confirmación -> inicio."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Mapping, Optional

from kunapet.config import (
    PAYMENT_MAX_ATTEMPTS,
    PAYMENT_RETRY_INITIAL_DELAY,
    PAYMENT_RETRY_MAX_DELAY,
)
from kunapet.core.carts.models import Cart
from kunapet.core.checkout.payments import (
    PaymentGateway,
    PaymentReceipt,
    PaymentSelection,
    SimulatedPaymentGateway,
    charge_with_retry,
    new_booking_id,
)
from kunapet.core.navigation import (
    EMPTY_CART_EXITS,
    CartScreen,
    Home,
    NavigationHost,
    NavigationTarget,
    PaymentConfirmation,
    PaymentMethods,
    SecurityInfo,
    describe,
)
from kunapet.errors import (
    EmptyCartError,
    InvalidTransition,
    PaymentInProgress,
    PaymentMethodRequired,
)

log = logging.getLogger(__name__)


class CheckoutStep(str, Enum):
    CART = "cart"
    PAYMENT_METHOD_SELECTION = "payment_method_selection"
    SECURITY_INFO = "security_info"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    HOME = "home"


# Estado -> estados permitidos como siguiente paso
ALLOWED_TRANSITIONS: Mapping[CheckoutStep, frozenset] = {
    CheckoutStep.CART: frozenset({CheckoutStep.PAYMENT_METHOD_SELECTION}),
    CheckoutStep.PAYMENT_METHOD_SELECTION: frozenset(
        {
            CheckoutStep.CART,
            CheckoutStep.SECURITY_INFO,
            CheckoutStep.PAYMENT_CONFIRMATION,
        }
    ),
    CheckoutStep.SECURITY_INFO: frozenset({CheckoutStep.PAYMENT_METHOD_SELECTION}),
    CheckoutStep.PAYMENT_CONFIRMATION: frozenset({CheckoutStep.HOME}),
    CheckoutStep.HOME: frozenset(),
}

TERMINAL_STEPS = frozenset({CheckoutStep.HOME})


def can_transition(current: CheckoutStep, target: CheckoutStep) -> bool:
    return CheckoutStep(target) in ALLOWED_TRANSITIONS.get(CheckoutStep(current), frozenset())


def target_for_step(step: CheckoutStep, receipt: Optional[PaymentReceipt] = None) -> NavigationTarget:
    if step == CheckoutStep.CART:
        return CartScreen()
    if step == CheckoutStep.PAYMENT_METHOD_SELECTION:
        return PaymentMethods()
    if step == CheckoutStep.SECURITY_INFO:
        return SecurityInfo()
    if step == CheckoutStep.PAYMENT_CONFIRMATION:
        if receipt is None:
            raise ValueError("La confirmación necesita un comprobante")
        return PaymentConfirmation(booking_id=receipt.booking_id)
    return Home()


CompletionHook = Callable[[PaymentReceipt, Cart], None]


class CheckoutSequencer:
    """
    Máquina de estados lineal del checkout de una sesión.
    Es dueña del carrito que recibe; solo lo vacía al volver al inicio
    después de un pago confirmado.
    """

    def __init__(
        self,
        cart: Cart,
        gateway: Optional[PaymentGateway] = None,
        navigator: Optional[NavigationHost] = None,
        on_complete: Optional[CompletionHook] = None,
        max_attempts: int = PAYMENT_MAX_ATTEMPTS,
        retry_initial_delay: float = PAYMENT_RETRY_INITIAL_DELAY,
        retry_max_delay: float = PAYMENT_RETRY_MAX_DELAY,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts debe ser >= 1 (recibido {max_attempts})")
        self.cart = cart
        self.gateway = gateway or SimulatedPaymentGateway()
        self.navigator = navigator
        self.on_complete = on_complete
        self.max_attempts = max_attempts
        self.retry_initial_delay = retry_initial_delay
        self.retry_max_delay = retry_max_delay

        self.step = CheckoutStep.CART
        self.selection: Optional[PaymentSelection] = None
        self.receipt: Optional[PaymentReceipt] = None
        self.processing = False
        # Contexto de reserva elegido en otras pantallas (proveedor / servicio); se limpia al terminar
        self.selected_provider: Optional[str] = None
        self.selected_service: Optional[str] = None

    def _move(self, target: CheckoutStep) -> None:
        if not can_transition(self.step, target):
            raise InvalidTransition(self.step.value, CheckoutStep(target).value)
        log.info(f"Checkout {self.cart.session_id}: {self.step.value} -> {target.value}")
        self.step = target
        if self.navigator is not None:
            self.navigator.navigate(target_for_step(target, self.receipt))

    # --- Transiciones ---
    def proceed(self) -> None:
        if self.step != CheckoutStep.CART:
            raise InvalidTransition(self.step.value, "proceed")
        if self.cart.is_empty:
            raise EmptyCartError(self.cart.session_id)
        self._move(CheckoutStep.PAYMENT_METHOD_SELECTION)

    def back(self) -> None:
        if self.step == CheckoutStep.PAYMENT_METHOD_SELECTION:
            if self.processing:
                raise PaymentInProgress()
            self._move(CheckoutStep.CART)
        elif self.step == CheckoutStep.SECURITY_INFO:
            self._move(CheckoutStep.PAYMENT_METHOD_SELECTION)
        else:
            raise InvalidTransition(self.step.value, "back")

    def view_security(self) -> None:
        self._move(CheckoutStep.SECURITY_INFO)

    def set_context(self, provider_id: Optional[str] = None, service_id: Optional[str] = None) -> None:
        """Proveedor / servicio elegidos en ProviderDetail o Services antes de pagar."""
        if self.step in (CheckoutStep.PAYMENT_CONFIRMATION, CheckoutStep.HOME) or self.processing:
            raise InvalidTransition(self.step.value, "set_context")
        self.selected_provider = provider_id
        self.selected_service = service_id

    def select_method(self, method, reference: Optional[str] = None) -> PaymentSelection:
        if self.processing:
            raise PaymentInProgress()
        if self.step != CheckoutStep.PAYMENT_METHOD_SELECTION:
            raise InvalidTransition(self.step.value, "select_method")
        selection = method if isinstance(method, PaymentSelection) else PaymentSelection(method, reference)
        self.selection = selection
        return selection

    async def confirm(self, selection: Optional[PaymentSelection] = None) -> PaymentReceipt:
        if self.processing:
            raise PaymentInProgress()
        if self.step != CheckoutStep.PAYMENT_METHOD_SELECTION:
            raise InvalidTransition(self.step.value, CheckoutStep.PAYMENT_CONFIRMATION.value)
        if selection is not None:
            self.select_method(selection)
        if self.selection is None:
            raise PaymentMethodRequired()
        if self.cart.is_empty:
            raise EmptyCartError(self.cart.session_id)

        # Lo cobrado y lo listado salen de la misma foto del carrito
        totals = self.cart.totals()
        lines = tuple(line.to_dict() for line in self.cart.lines.values())
        selection = self.selection
        self.processing = True
        self.cart.locked = True
        try:
            transaction_id = await charge_with_retry(
                self.gateway,
                totals.total,
                selection,
                max_attempts=self.max_attempts,
                initial_delay=self.retry_initial_delay,
                max_delay=self.retry_max_delay,
            )
        finally:
            self.processing = False
            self.cart.locked = False

        self.receipt = PaymentReceipt(
            booking_id=new_booking_id(),
            method=selection.method,
            reference=selection.reference,
            transaction_id=transaction_id,
            subtotal=totals.subtotal,
            shipping=totals.shipping,
            total=totals.total,
            lines=lines,
        )
        log.info(f"Pago confirmado {self.receipt.booking_id} por {totals.total} ({selection.method.value})")
        if self.on_complete is not None:
            self.on_complete(self.receipt, self.cart)
        self._move(CheckoutStep.PAYMENT_CONFIRMATION)
        return self.receipt

    def go_home(self) -> None:
        if self.step != CheckoutStep.PAYMENT_CONFIRMATION:
            raise InvalidTransition(self.step.value, CheckoutStep.HOME.value)
        self.cart.clear()
        self.selection = None
        self.selected_provider = None
        self.selected_service = None
        self._move(CheckoutStep.HOME)

    # --- Lecturas ---
    @property
    def finished(self) -> bool:
        return self.step in TERMINAL_STEPS

    def available_actions(self) -> List[str]:
        if self.processing:
            return []
        if self.step == CheckoutStep.CART:
            return [] if self.cart.is_empty else ["proceed"]
        if self.step == CheckoutStep.PAYMENT_METHOD_SELECTION:
            return ["back", "security", "confirm"]
        if self.step == CheckoutStep.SECURITY_INFO:
            return ["back"]
        if self.step == CheckoutStep.PAYMENT_CONFIRMATION:
            return ["home"]
        return []

    def snapshot(self) -> dict:
        data = {
            "session_id": self.cart.session_id,
            "step": self.step.value,
            "processing": self.processing,
            "available_actions": self.available_actions(),
            "totals": self.cart.totals().to_dict(),
            "selection": self.selection.to_dict() if self.selection else None,
            "context": {"provider_id": self.selected_provider, "service_id": self.selected_service},
            "receipt": self.receipt.to_dict() if self.receipt else None,
        }
        if self.step == CheckoutStep.CART and self.cart.is_empty:
            data["exits"] = [describe(t) for t in EMPTY_CART_EXITS]
        return data
