from decimal import Decimal

import pytest

from kunapet.core.checkout.payments import PaymentMethod, PaymentReceipt
from kunapet.core.checkout.sequencer import CheckoutStep, target_for_step
from kunapet.core.navigation import (
    CartScreen,
    Home,
    PaymentConfirmation,
    ProductDetail,
    ProviderDetail,
    RecordingNavigator,
    Services,
    describe,
)


def test_targets_carry_only_their_own_fields() -> None:
    assert describe(ProductDetail(product_id="p-1")) == {"screen": "product-detail", "product_id": "p-1"}
    assert describe(ProviderDetail(provider_id="v-9")) == {"screen": "provider-detail", "provider_id": "v-9"}
    assert describe(Services()) == {"screen": "services", "category": "veterinary"}
    assert describe(Home()) == {"screen": "home"}


def test_recording_navigator_tracks_current_target() -> None:
    nav = RecordingNavigator()
    assert nav.current is None

    nav.navigate(CartScreen())
    nav.navigate(Home())

    assert nav.current == Home()
    assert [t.screen for t in nav.history] == ["cart", "home"]


def test_confirmation_target_needs_receipt() -> None:
    with pytest.raises(ValueError):
        target_for_step(CheckoutStep.PAYMENT_CONFIRMATION)

    receipt = PaymentReceipt(
        booking_id="KNP-ABCDEFGH",
        method=PaymentMethod.CASH,
        reference=None,
        transaction_id="TX-1",
        subtotal=Decimal("10.00"),
        shipping=Decimal("10.00"),
        total=Decimal("20.00"),
    )
    assert target_for_step(CheckoutStep.PAYMENT_CONFIRMATION, receipt) == PaymentConfirmation("KNP-ABCDEFGH")
    assert target_for_step(CheckoutStep.HOME) == Home()
