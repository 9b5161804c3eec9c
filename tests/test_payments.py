from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import pytest

from kunapet.core.carts.models import Cart
from kunapet.core.checkout.payments import (
    PaymentMethod,
    PaymentSelection,
    charge_with_retry,
    new_booking_id,
)
from kunapet.core.checkout.sequencer import CheckoutSequencer, CheckoutStep
from kunapet.errors import InvalidPaymentMethod, PaymentDeclined, PaymentNetworkError


@dataclass
class ScriptedGateway:
    """Fails with the queued errors, then approves."""

    errors: list
    attempts: int = 0

    async def charge(self, amount: Decimal, selection: PaymentSelection) -> str:
        self.attempts += 1
        if self.errors:
            raise self.errors.pop(0)
        return f"TX-{self.attempts}"


def test_unknown_method_is_rejected() -> None:
    with pytest.raises(InvalidPaymentMethod):
        PaymentSelection("bitcoin")
    with pytest.raises(ValueError):
        PaymentSelection("")


def test_reference_only_kept_for_reference_methods() -> None:
    assert PaymentSelection("yape", " 998877 ").reference == "998877"
    assert PaymentSelection("transfer", "OP-1").reference == "OP-1"
    assert PaymentSelection("card", "1234").reference is None
    assert PaymentSelection("plin", "   ").reference is None
    assert PaymentSelection("cash").method is PaymentMethod.CASH


def test_booking_ids_are_unique_enough() -> None:
    ids = {new_booking_id() for _ in range(200)}
    assert len(ids) == 200


@pytest.mark.asyncio
async def test_network_errors_are_retried_until_success() -> None:
    gateway = ScriptedGateway(errors=[PaymentNetworkError("timeout"), PaymentNetworkError("reset")])

    tx = await charge_with_retry(gateway, Decimal("60"), PaymentSelection("card"), initial_delay=0)

    assert tx == "TX-3"
    assert gateway.attempts == 3


@pytest.mark.asyncio
async def test_network_errors_give_up_after_max_attempts() -> None:
    gateway = ScriptedGateway(errors=[PaymentNetworkError(f"fail {i}") for i in range(5)])

    with pytest.raises(PaymentNetworkError, match="fail 2"):
        await charge_with_retry(gateway, Decimal("60"), PaymentSelection("card"), max_attempts=3, initial_delay=0)

    assert gateway.attempts == 3


@pytest.mark.asyncio
async def test_declined_payment_is_not_retried() -> None:
    gateway = ScriptedGateway(errors=[PaymentDeclined("fondos insuficientes")])

    with pytest.raises(PaymentDeclined):
        await charge_with_retry(gateway, Decimal("60"), PaymentSelection("card"), initial_delay=0)

    assert gateway.attempts == 1


@pytest.mark.asyncio
async def test_declined_payment_keeps_checkout_on_method_selection() -> None:
    cart = Cart(session_id="s-declined")
    cart.add_item("a", "Croquetas", 20)
    seq = CheckoutSequencer(cart, gateway=ScriptedGateway(errors=[PaymentDeclined("rechazado")]))
    seq.proceed()

    with pytest.raises(PaymentDeclined):
        await seq.confirm(PaymentSelection("card"))

    assert seq.step == CheckoutStep.PAYMENT_METHOD_SELECTION
    assert not seq.processing
    assert seq.receipt is None
    assert cart.item_count() == 1


@pytest.mark.asyncio
async def test_zero_attempts_is_a_configuration_error() -> None:
    gateway = ScriptedGateway(errors=[])

    with pytest.raises(ValueError, match="max_attempts"):
        await charge_with_retry(gateway, Decimal("60"), PaymentSelection("card"), max_attempts=0)

    assert gateway.attempts == 0
