"""
Destinos de navegación tipados.

Cada destino lleva solo los datos que su pantalla necesita; el host de
navegación (la app cliente) decide cómo presentarlos.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Protocol, Union
import logging

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Home:
    screen: ClassVar[str] = "home"


@dataclass(frozen=True)
class Shop:
    screen: ClassVar[str] = "shop"


@dataclass(frozen=True)
class CartScreen:
    screen: ClassVar[str] = "cart"


@dataclass(frozen=True)
class PaymentMethods:
    screen: ClassVar[str] = "payment-methods"


@dataclass(frozen=True)
class SecurityInfo:
    screen: ClassVar[str] = "security-privacy"


@dataclass(frozen=True)
class PaymentConfirmation:
    booking_id: str
    screen: ClassVar[str] = "payment-confirmation"


@dataclass(frozen=True)
class ProductDetail:
    product_id: str
    screen: ClassVar[str] = "product-detail"


@dataclass(frozen=True)
class ProviderDetail:
    provider_id: str
    screen: ClassVar[str] = "provider-detail"


@dataclass(frozen=True)
class Services:
    category: str = "veterinary"
    screen: ClassVar[str] = "services"


NavigationTarget = Union[
    Home,
    Shop,
    CartScreen,
    PaymentMethods,
    SecurityInfo,
    PaymentConfirmation,
    ProductDetail,
    ProviderDetail,
    Services,
]

# Salidas posibles desde un carrito vacío: solo volver a navegar, nunca al pago
EMPTY_CART_EXITS = (Home(), Shop())


def describe(target: NavigationTarget) -> dict:
    """Forma serializable: {"screen": ..., **campos del destino}."""
    payload = {k: v for k, v in vars(target).items()}
    return {"screen": target.screen, **payload}


class NavigationHost(Protocol):
    def navigate(self, target: NavigationTarget) -> None:
        ...


@dataclass
class RecordingNavigator:
    """Host en memoria: guarda el historial de destinos emitidos."""
    history: List[NavigationTarget] = field(default_factory=list)

    def navigate(self, target: NavigationTarget) -> None:
        log.debug(f"Navegando a {target.screen}")
        self.history.append(target)

    @property
    def current(self) -> Optional[NavigationTarget]:
        return self.history[-1] if self.history else None
