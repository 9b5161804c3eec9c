# kunapet/routers/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from kunapet.storage.db import get_db
from kunapet.storage.orders import find_orders, get_order, order_to_dict

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("/")
def list_orders(
    session_id: Optional[str] = None,
    user_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Órdenes confirmadas de una sesión o de un usuario (las más recientes primero).
    """
    if not session_id and not user_id:
        raise HTTPException(status_code=400, detail="Debes enviar session_id o user_id.")
    orders = find_orders(db, session_id=session_id, user_id=user_id)
    return {"total_orders": len(orders), "orders": [order_to_dict(o) for o in orders]}


@router.get("/{booking_id}")
def get_order_detail(booking_id: str, db: Session = Depends(get_db)):
    order = get_order(db, booking_id)
    if not order:
        raise HTTPException(status_code=404, detail="Orden no encontrada.")
    data = order_to_dict(order)
    data["order_items"] = [
        {
            "product_id": item.product_id,
            "name": item.name,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
        }
        for item in order.order_items
    ]
    return data
