# kunapet/storage/orders.py
import json
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from . import models

log = logging.getLogger(__name__)


def _json_safe(lines) -> list:
    # Decimal no es serializable en columnas JSON
    return json.loads(json.dumps(list(lines), default=str))


def record_order(db: Session, receipt, cart, user_id: Optional[str] = None) -> models.Order:
    """
    Escribe la orden confirmada y sus ítems en un único commit.
    `receipt` es el PaymentReceipt del checkout; `cart` solo aporta sesión y moneda.
    """
    order = models.Order(
        booking_id=receipt.booking_id,
        session_id=cart.session_id,
        user_id=user_id,
        items=_json_safe(receipt.lines),
        subtotal=receipt.subtotal,
        shipping=receipt.shipping,
        total=receipt.total,
        currency=cart.currency,
        payment_method=receipt.method.value,
        payment_reference=receipt.reference,
        transaction_id=receipt.transaction_id,
        status="paid",
    )
    # Los ítems salen del comprobante, no del carrito vivo
    for line in receipt.lines:
        order.order_items.append(
            models.OrderItem(
                product_id=line["id"],
                name=line["name"],
                quantity=line["quantity"],
                unit_price=Decimal(str(line["unit_price"])),
            )
        )
    db.add(order)
    db.commit()
    db.refresh(order)
    log.info(f"Orden {order.booking_id} registrada ({len(order.order_items)} ítems)")
    return order


def find_orders(db: Session, session_id: Optional[str] = None, user_id: Optional[str] = None):
    q = db.query(models.Order)
    if session_id:
        q = q.filter(models.Order.session_id == session_id)
    if user_id:
        q = q.filter(models.Order.user_id == user_id)
    return q.order_by(models.Order.id.desc()).all()


def get_order(db: Session, booking_id: str) -> Optional[models.Order]:
    return db.query(models.Order).filter(models.Order.booking_id == booking_id).first()


def order_to_dict(order: models.Order) -> dict:
    return {
        "booking_id": order.booking_id,
        "session_id": order.session_id,
        "user_id": order.user_id,
        "status": order.status,
        "items": order.items,
        "subtotal": order.subtotal,
        "shipping": order.shipping,
        "total": order.total,
        "currency": order.currency,
        "payment_method": order.payment_method,
        "payment_reference": order.payment_reference,
        "transaction_id": order.transaction_id,
        "created_at": order.created_at,
    }
