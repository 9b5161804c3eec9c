from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from kunapet.config import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convierte int/float/str/Decimal a Decimal con dos decimales."""
    if isinstance(value, Decimal):
        amount = value
    else:
        # str() evita arrastrar el error binario de los float (19.9 -> 19.899999...)
        amount = Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Decimal
    shipping: Decimal
    total: Decimal

    @property
    def free_shipping(self) -> bool:
        return self.shipping == 0

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "total": self.total,
            "free_shipping": self.free_shipping,
        }


def compute_totals(
    lines: Iterable,
    free_shipping_threshold: Decimal = FREE_SHIPPING_THRESHOLD,
    shipping_fee: Decimal = SHIPPING_FEE,
) -> CheckoutTotals:
    """
    Totales del checkout a partir de las líneas del carrito.
    - subtotal: suma de precio unitario x cantidad
    - envío: 0 si el subtotal supera el umbral, tarifa fija si hay líneas, 0 si está vacío
    - total: subtotal + envío
    Se recalcula en cada lectura; no se guarda en ningún lado.
    """
    lines = list(lines)
    subtotal = to_money(sum((line.line_total() for line in lines), Decimal("0")))
    if subtotal > free_shipping_threshold:
        shipping = to_money(0)
    elif lines:
        shipping = to_money(shipping_fee)
    else:
        shipping = to_money(0)
    return CheckoutTotals(subtotal=subtotal, shipping=shipping, total=subtotal + shipping)


def format_amount(amount: Decimal) -> str:
    return f"S/ {to_money(amount):,.2f}"


def totals_text(totals: CheckoutTotals) -> str:
    envio = "Gratis" if totals.free_shipping else format_amount(totals.shipping)
    return (
        f"Subtotal: {format_amount(totals.subtotal)}\n"
        f"Envío: {envio}\n"
        f"Total: {format_amount(totals.total)}"
    )
