# kunapet/storage/models.py
# ======================================================
# Modelos ORM de Kunapet: órdenes de la tienda
# ======================================================

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime,
    ForeignKey, JSON
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .db import Base


class Order(Base):
    """
    Orden creada al confirmar un pago. El carrito en sí no se persiste;
    esta fila es la única huella del checkout en la base.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String, unique=True, nullable=False, index=True)
    session_id = Column(String, index=True, nullable=False)
    user_id = Column(String, index=True, nullable=True)
    items = Column(JSON, nullable=False)  # Snapshot de las líneas del carrito
    subtotal = Column(Numeric(10, 2), nullable=False)
    shipping = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, nullable=False, default="PEN")
    payment_method = Column(String, nullable=False)
    payment_reference = Column(String, nullable=True)
    transaction_id = Column(String, nullable=False)
    status = Column(String, nullable=False, default="paid")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order_items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

    def __repr__(self):
        return f"<Order booking_id={self.booking_id} session_id={self.session_id} total={self.total}>"


class OrderItem(Base):
    """Una línea de la orden: producto, cantidad y precio unitario al momento de pagar."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="order_items")

    def __repr__(self):
        return f"<OrderItem order={self.order_id} product={self.product_id} qty={self.quantity}>"
