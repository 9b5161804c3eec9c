"""Métodos de pago, pasarelas y reintentos con backoff exponencial."""
from __future__ import annotations

import asyncio
import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol

from kunapet.config import (
    PAYMENT_MAX_ATTEMPTS,
    PAYMENT_PROCESSING_DELAY,
    PAYMENT_RETRY_INITIAL_DELAY,
    PAYMENT_RETRY_MAX_DELAY,
)
from kunapet.errors import InvalidPaymentMethod, PaymentNetworkError

log = logging.getLogger(__name__)


class PaymentMethod(str, Enum):
    CARD = "card"
    YAPE = "yape"
    PLIN = "plin"
    TRANSFER = "transfer"
    CASH = "cash"


# Métodos que muestran el campo "código de operación / referencia"
REFERENCE_METHODS = frozenset({PaymentMethod.YAPE, PaymentMethod.PLIN, PaymentMethod.TRANSFER})


@dataclass(frozen=True)
class PaymentSelection:
    method: PaymentMethod
    reference: Optional[str] = None

    def __post_init__(self):
        try:
            method = PaymentMethod(self.method)
        except ValueError:
            raise InvalidPaymentMethod(self.method) from None
        reference = (self.reference or "").strip() or None
        if reference and method not in REFERENCE_METHODS:
            log.debug(f"Referencia ignorada para método {method.value}")
            reference = None
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "reference", reference)

    def to_dict(self) -> dict:
        return {"method": self.method.value, "reference": self.reference}


@dataclass(frozen=True)
class PaymentReceipt:
    booking_id: str
    method: PaymentMethod
    reference: Optional[str]
    transaction_id: str
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    lines: tuple = ()
    paid_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "method": self.method.value,
            "reference": self.reference,
            "transaction_id": self.transaction_id,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "total": self.total,
            "lines": list(self.lines),
            "paid_at": self.paid_at.isoformat(),
        }


_ALPHABET = string.ascii_uppercase + string.digits


def new_booking_id() -> str:
    """Código de reserva que ve el cliente, p.ej. KNP-7GQ2ZK1A."""
    return "KNP-" + "".join(secrets.choice(_ALPHABET) for _ in range(8))


class PaymentGateway(Protocol):
    async def charge(self, amount: Decimal, selection: PaymentSelection) -> str:
        """Cobra `amount` y devuelve el id de transacción, o lanza PaymentError."""
        ...


class SimulatedPaymentGateway:
    """
    Pasarela de mentira: espera un tiempo fijo y siempre aprueba.
    Sirve para desarrollo hasta conectar una pasarela real.
    """

    def __init__(self, delay: float = PAYMENT_PROCESSING_DELAY):
        self.delay = delay
        self.charges = 0

    async def charge(self, amount: Decimal, selection: PaymentSelection) -> str:
        await asyncio.sleep(self.delay)
        self.charges += 1
        transaction_id = f"SIM-{secrets.token_hex(6).upper()}"
        log.info(f"Pago simulado aprobado: {amount} via {selection.method.value} ({transaction_id})")
        return transaction_id


async def charge_with_retry(
    gateway: PaymentGateway,
    amount: Decimal,
    selection: PaymentSelection,
    max_attempts: int = PAYMENT_MAX_ATTEMPTS,
    initial_delay: float = PAYMENT_RETRY_INITIAL_DELAY,
    max_delay: float = PAYMENT_RETRY_MAX_DELAY,
    exponential_base: float = 2.0,
) -> str:
    """
    Reintenta solo errores de red. Un rechazo (PaymentDeclined) sale de inmediato.
    Al agotar los intentos se relanza el último error.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts debe ser >= 1 (recibido {max_attempts})")
    delay = initial_delay
    last_exception = None

    for attempt in range(max_attempts):
        try:
            return await gateway.charge(amount, selection)
        except PaymentNetworkError as e:
            last_exception = e
            if attempt < max_attempts - 1:
                log.warning(
                    f"Cobro fallido (intento {attempt + 1}/{max_attempts}): {e}. "
                    f"Reintentando en {delay:.2f}s..."
                )
                await asyncio.sleep(delay)
                delay = min(delay * exponential_base, max_delay)
            else:
                log.error(f"Cobro fallido tras {max_attempts} intentos: {e}")

    raise last_exception
