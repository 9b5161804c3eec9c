# kunapet/routers/cart.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kunapet.core.carts.service import CartService
from kunapet.core.pricing import totals_text
from kunapet.dependencies import get_cart_service
from kunapet.errors import CartLocked

router = APIRouter(prefix="/cart", tags=["Cart"])


class AddItem(BaseModel):
    id: str = Field(min_length=1)
    name: str
    unit_price: Decimal = Field(ge=0)
    image: Optional[str] = None


class QuantityDelta(BaseModel):
    delta: int


def _locked(err: CartLocked) -> HTTPException:
    return HTTPException(status_code=409, detail=err.message)


@router.get("/{session_id}")
def show_cart(session_id: str, carts: CartService = Depends(get_cart_service)):
    """Contenido del carrito con subtotal, envío y total recalculados."""
    cart = carts.get(session_id)
    summary = cart.to_summary()
    summary["text"] = totals_text(cart.totals()) if not cart.is_empty else "Tu carrito está vacío"
    return summary


@router.post("/{session_id}/items")
def add_item(session_id: str, item: AddItem, carts: CartService = Depends(get_cart_service)):
    """Agrega una unidad del producto; si ya está en el carrito suma 1 a su cantidad."""
    try:
        return carts.add(session_id, item.id, item.name, item.unit_price, item.image)
    except CartLocked as err:
        raise _locked(err)


@router.patch("/{session_id}/items/{item_id}")
def update_quantity(
    session_id: str,
    item_id: str,
    payload: QuantityDelta,
    carts: CartService = Depends(get_cart_service),
):
    """Suma `delta` a la cantidad. Nunca baja de 1; para quitar usa DELETE."""
    try:
        return carts.update_qty(session_id, item_id, payload.delta)
    except CartLocked as err:
        raise _locked(err)


@router.delete("/{session_id}/items/{item_id}")
def remove_item(session_id: str, item_id: str, carts: CartService = Depends(get_cart_service)):
    try:
        return carts.remove(session_id, item_id)
    except CartLocked as err:
        raise _locked(err)


@router.delete("/{session_id}")
def clear_cart(session_id: str, carts: CartService = Depends(get_cart_service)):
    try:
        return carts.clear(session_id)
    except CartLocked as err:
        raise _locked(err)
