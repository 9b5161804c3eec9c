"""
Proveedor de identidad externo (registro, login, sesión actual).

Kunapet no implementa autenticación: solo consume este contrato. Los errores
del proveedor se muestran al usuario como un único mensaje y no salen de la
pantalla de acceso.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from kunapet.errors import KunapetError


@dataclass(frozen=True)
class Session:
    user_id: str
    email: Optional[str] = None


class IdentityError(KunapetError):
    pass


class InvalidCredentials(IdentityError):
    pass


class WeakPassword(IdentityError):
    pass


class DuplicateAccount(IdentityError):
    pass


class IdentityProvider(Protocol):
    def sign_up(self, email: str, password: str, name: str) -> Session:
        ...

    def sign_in(self, email: str, password: str) -> Session:
        ...

    def sign_out(self) -> None:
        ...

    def current_session(self) -> Optional[Session]:
        ...


_MESSAGES = {
    InvalidCredentials: "Correo o contraseña incorrectos.",
    WeakPassword: "La contraseña debe tener al menos 6 caracteres.",
    DuplicateAccount: "Ya existe una cuenta con este correo.",
}

GENERIC_MESSAGE = "No pudimos completar la operación. Intenta nuevamente."


def user_message(error: Exception) -> str:
    for kind, text in _MESSAGES.items():
        if isinstance(error, kind):
            return text
    return GENERIC_MESSAGE
