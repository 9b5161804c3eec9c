# kunapet/routers/checkout.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from kunapet.core.checkout.payments import PaymentSelection
from kunapet.core.checkout.service import CheckoutService
from kunapet.dependencies import get_checkout_service, get_current_session
from kunapet.errors import (
    CheckoutError,
    InvalidPaymentMethod,
    PaymentDeclined,
    PaymentMethodRequired,
    PaymentNetworkError,
)
from kunapet.integrations.identity import Session
from kunapet.storage.db import get_db
from kunapet.storage.orders import record_order
from kunapet.utils.logger import log_checkout

log = logging.getLogger(__name__)

router = APIRouter(prefix="/checkout", tags=["Checkout"])


class ConfirmPayment(BaseModel):
    method: Optional[str] = None
    reference: Optional[str] = None


class BookingContext(BaseModel):
    provider_id: Optional[str] = None
    service_id: Optional[str] = None


def _http_error(err: Exception) -> HTTPException:
    if isinstance(err, (InvalidPaymentMethod, PaymentMethodRequired)):
        return HTTPException(status_code=400, detail=err.message)
    if isinstance(err, CheckoutError):
        return HTTPException(status_code=409, detail=err.message)
    if isinstance(err, PaymentDeclined):
        return HTTPException(status_code=402, detail=err.message)
    if isinstance(err, PaymentNetworkError):
        return HTTPException(status_code=502, detail=err.message)
    return HTTPException(status_code=500, detail=str(err))


@router.get("/{session_id}")
def checkout_state(session_id: str, checkout: CheckoutService = Depends(get_checkout_service)):
    return checkout.snapshot(session_id)


@router.post("/{session_id}/proceed")
def proceed(session_id: str, checkout: CheckoutService = Depends(get_checkout_service)):
    """Carrito -> selección de método de pago. Un carrito vacío no avanza."""
    try:
        return checkout.proceed(session_id)
    except CheckoutError as err:
        raise _http_error(err)


@router.post("/{session_id}/back")
def back(session_id: str, checkout: CheckoutService = Depends(get_checkout_service)):
    try:
        return checkout.back(session_id)
    except CheckoutError as err:
        raise _http_error(err)


@router.post("/{session_id}/security")
def security(session_id: str, checkout: CheckoutService = Depends(get_checkout_service)):
    try:
        return checkout.view_security(session_id)
    except CheckoutError as err:
        raise _http_error(err)


@router.post("/{session_id}/context")
def set_context(
    session_id: str,
    payload: BookingContext,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    """Proveedor y servicio elegidos en las pantallas de detalle; se olvidan al volver al inicio."""
    try:
        return checkout.set_context(session_id, payload.provider_id, payload.service_id)
    except CheckoutError as err:
        raise _http_error(err)


@router.post("/{session_id}/confirm")
async def confirm(
    session_id: str,
    payload: ConfirmPayment,
    checkout: CheckoutService = Depends(get_checkout_service),
    db: DbSession = Depends(get_db),
    user: Optional[Session] = Depends(get_current_session),
):
    """
    Confirma el pago con el método elegido. Mientras se procesa, un segundo
    confirm de la misma sesión recibe 409. Al aprobarse se registra la orden.
    """
    try:
        if payload.method is None:
            raise PaymentMethodRequired()
        selection = PaymentSelection(payload.method, payload.reference)
        receipt = await checkout.confirm(session_id, selection)
    except (CheckoutError, PaymentDeclined, PaymentNetworkError) as err:
        log.warning(f"Confirmación rechazada para {session_id}: {err}")
        raise _http_error(err)

    user_id = user.user_id if user else None
    cart = checkout.sequencer(session_id).cart
    # El pago ya está aprobado: un fallo al registrar la orden no lo revierte
    try:
        record_order(db, receipt, cart, user_id=user_id)
    except SQLAlchemyError as sync_err:
        db.rollback()
        log.error(f"Error registrando la orden {receipt.booking_id}: {sync_err}")
    try:
        log_checkout(session_id, receipt, user_id=user_id)
    except OSError as io_err:
        log.warning(f"No se pudo escribir el historial de checkout: {io_err}")

    return {
        "message": "Pago confirmado",
        "receipt": receipt.to_dict(),
        "checkout": checkout.snapshot(session_id),
    }


@router.post("/{session_id}/home")
def go_home(session_id: str, checkout: CheckoutService = Depends(get_checkout_service)):
    """Sale de la confirmación al inicio: vacía el carrito y reinicia el checkout."""
    try:
        return checkout.go_home(session_id)
    except CheckoutError as err:
        raise _http_error(err)
