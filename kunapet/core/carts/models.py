from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional
from time import time
import logging

from kunapet.config import CURRENCY
from kunapet.core.pricing import CheckoutTotals, compute_totals, to_money
from kunapet.errors import CartLocked

log = logging.getLogger(__name__)

def _now() -> float:
    return time()

@dataclass
class CartLine:
    id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    image: Optional[str] = None
    updated_at: float = field(default_factory=_now)

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("ID de producto inválido")
        self.unit_price = to_money(self.unit_price)
        if self.quantity < 1:
            raise ValueError("Cantidad debe ser >= 1")
        if self.unit_price < 0:
            raise ValueError("Precio no puede ser negativo")

    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "image": self.image,
            "updated_at": self.updated_at,
            "line_total": self.line_total(),
        }


@dataclass
class Cart:
    """
    Carrito de una sola sesión. `lines` conserva el orden de inserción
    (el primero agregado va primero) y nunca tiene dos líneas con el mismo id.
    Toda mutación pasa por add_item / update_quantity / remove_item / clear.
    """
    session_id: str
    lines: Dict[str, CartLine] = field(default_factory=dict)
    currency: str = CURRENCY
    created_at: float = field(default_factory=_now)
    updated_at: float = field(default_factory=_now)
    version: int = 1
    last_action: Optional[dict] = None
    # Activo mientras el checkout cobra este carrito; no se persiste
    locked: bool = field(default=False, compare=False)

    def _check_unlocked(self) -> None:
        if self.locked:
            raise CartLocked(self.session_id)

    # --- Operaciones del agregador ---
    def add_item(self, id: str, name: str, unit_price, image: Optional[str] = None) -> CartLine:
        self._check_unlocked()
        existing = self.lines.get(id)
        if existing:
            # La línea existente manda: solo sube la cantidad, no se pisa nombre/precio/imagen
            existing.quantity += 1
            existing.updated_at = _now()
            line = existing
        else:
            line = CartLine(id=id, name=name, unit_price=unit_price, image=image)
            self.lines[id] = line
        self.last_action = {"action": "add", "id": id, "name": line.name, "quantity": line.quantity, "timestamp": _now()}
        return line

    def update_quantity(self, id: str, delta: int) -> Optional[CartLine]:
        self._check_unlocked()
        line = self.lines.get(id)
        if not line:
            self.last_action = {"action": "update_missing", "id": id, "timestamp": _now()}
            return None
        # Piso en 1: bajar desde 1 no elimina la línea (para eso está remove_item)
        line.quantity = max(1, line.quantity + delta)
        line.updated_at = _now()
        self.last_action = {"action": "update", "id": id, "name": line.name, "quantity": line.quantity, "timestamp": _now()}
        return line

    def remove_item(self, id: str) -> Optional[CartLine]:
        self._check_unlocked()
        line = self.lines.pop(id, None)
        if not line:
            self.last_action = {"action": "remove_missing", "id": id, "timestamp": _now()}
            return None
        self.last_action = {"action": "remove", "id": id, "name": line.name, "quantity": line.quantity, "timestamp": _now()}
        return line

    def clear(self) -> None:
        self._check_unlocked()
        self.lines.clear()
        self.last_action = {"action": "clear", "timestamp": _now()}

    # --- Lecturas ---
    @property
    def is_empty(self) -> bool:
        return not self.lines

    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines.values())

    def totals(self) -> CheckoutTotals:
        return compute_totals(self.lines.values())

    def to_summary(self) -> dict:
        totals = self.totals()
        return {
            "session_id": self.session_id,
            "currency": self.currency,
            "version": self.version,
            "items": [line.to_dict() for line in self.lines.values()],
            "item_count": self.item_count(),
            **totals.to_dict(),
            "last_action": self.last_action,
            "updated_at": self.updated_at,
        }
