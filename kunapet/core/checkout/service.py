import logging
from typing import Dict, Optional

from kunapet.core.carts.service import CartService
from kunapet.core.checkout.payments import PaymentGateway, PaymentReceipt, PaymentSelection
from kunapet.core.checkout.sequencer import CheckoutSequencer, CompletionHook
from kunapet.core.navigation import RecordingNavigator, describe

log = logging.getLogger(__name__)


class CheckoutService:
    """Un CheckoutSequencer vivo por sesión, enlazado al carrito guardado en el CartService."""

    def __init__(
        self,
        cart_service: CartService,
        gateway: Optional[PaymentGateway] = None,
        on_complete: Optional[CompletionHook] = None,
        **retry_options,
    ):
        self.cart_service = cart_service
        self.gateway = gateway
        self.on_complete = on_complete
        self.retry_options = retry_options
        self._sequencers: Dict[str, CheckoutSequencer] = {}

    def sequencer(self, session_id: str) -> CheckoutSequencer:
        cart = self.cart_service.get(session_id)
        seq = self._sequencers.get(cart.session_id)
        if seq is None or seq.finished:
            seq = CheckoutSequencer(
                cart,
                gateway=self.gateway,
                navigator=RecordingNavigator(),
                on_complete=self.on_complete,
                **self.retry_options,
            )
            self._sequencers[cart.session_id] = seq
        elif not seq.processing:
            # El store puede devolver una copia nueva (Redis): siempre el carrito vigente
            seq.cart = cart
        return seq

    def snapshot(self, session_id: str) -> dict:
        seq = self.sequencer(session_id)
        data = seq.snapshot()
        current = seq.navigator.current if seq.navigator else None
        data["screen"] = describe(current) if current else None
        return data

    def proceed(self, session_id: str) -> dict:
        self.sequencer(session_id).proceed()
        return self.snapshot(session_id)

    def back(self, session_id: str) -> dict:
        self.sequencer(session_id).back()
        return self.snapshot(session_id)

    def view_security(self, session_id: str) -> dict:
        self.sequencer(session_id).view_security()
        return self.snapshot(session_id)

    def set_context(self, session_id: str, provider_id: Optional[str] = None, service_id: Optional[str] = None) -> dict:
        self.sequencer(session_id).set_context(provider_id, service_id)
        return self.snapshot(session_id)

    async def confirm(self, session_id: str, selection: PaymentSelection) -> PaymentReceipt:
        seq = self.sequencer(session_id)
        return await seq.confirm(selection)

    def go_home(self, session_id: str) -> dict:
        seq = self.sequencer(session_id)
        seq.go_home()
        self.cart_service.clear(seq.cart.session_id)
        data = seq.snapshot()
        current = seq.navigator.current if seq.navigator else None
        data["screen"] = describe(current) if current else None
        self._sequencers.pop(seq.cart.session_id, None)
        log.info(f"Checkout {seq.cart.session_id} terminado; carrito vaciado")
        return data
