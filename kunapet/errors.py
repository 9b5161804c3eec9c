"""Excepciones propias de Kunapet (carrito, checkout y pagos)."""
from __future__ import annotations


class KunapetError(Exception):
    """Base de todos los errores de dominio."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class CheckoutError(KunapetError):
    """Errores del flujo carrito -> pago -> confirmación."""

    pass


class EmptyCartError(CheckoutError):
    def __init__(self, session_id: str | None = None) -> None:
        super().__init__("El carrito está vacío")
        self.session_id = session_id


class InvalidTransition(CheckoutError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Transición inválida: {current} -> {target}")
        self.current = current
        self.target = target


class PaymentInProgress(CheckoutError):
    """Ya hay una confirmación de pago en curso para esta sesión."""

    def __init__(self) -> None:
        super().__init__("El pago ya se está procesando")


class PaymentMethodRequired(CheckoutError):
    def __init__(self) -> None:
        super().__init__("Debes seleccionar un método de pago")


class InvalidPaymentMethod(CheckoutError, ValueError):
    def __init__(self, method: object) -> None:
        super().__init__(f"Método de pago no permitido: {method}")
        self.method = method


class PaymentError(KunapetError):
    """Fallos reportados por la pasarela de pago."""

    pass


class PaymentDeclined(PaymentError):
    """La pasarela rechazó el cargo. No se reintenta."""

    pass


class PaymentNetworkError(PaymentError):
    """Error transitorio hablando con la pasarela. Se reintenta con backoff."""

    pass


class CartLocked(CheckoutError):
    """El carrito no se puede tocar mientras se confirma su pago."""

    def __init__(self, session_id: str | None = None) -> None:
        super().__init__("El carrito está bloqueado mientras se procesa el pago")
        self.session_id = session_id
