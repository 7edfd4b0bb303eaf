"""Jerarquía de errores del replicador.

Por qué un módulo propio:
- El orquestador, los adaptadores y las capas de presentación comparten
  la misma taxonomía sin importarse entre sí.
- Cada fallo remoto se clasifica en exactamente dos tipos: transporte o backend.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from core.domain.models import GraphQLErrorItem


class ReplicatorError(Exception):
    """Base para todos los errores del proyecto."""


class ConfigurationError(ReplicatorError):
    """Configuración inválida o incompleta detectada al arrancar."""

    def __init__(self, message: str, *, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


class WorkflowErrorKind(str, Enum):
    TRANSPORT = "transport"
    BACKEND = "backend"


class WorkflowError(ReplicatorError):
    """Fallo de una llamada remota durante el aprovisionamiento."""

    kind: WorkflowErrorKind

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self) -> str:
        return self.message


class TransportFailure(WorkflowError):
    """La red/serialización falló; no es atribuible a la lógica del backend."""

    kind = WorkflowErrorKind.TRANSPORT


class BackendFailure(WorkflowError):
    """El backend aceptó la request pero reportó uno o más errores."""

    kind = WorkflowErrorKind.BACKEND

    def __init__(
        self,
        errors: Sequence["GraphQLErrorItem"],
        *,
        operation: str | None = None,
    ) -> None:
        self.errors = list(errors)
        super().__init__(
            "; ".join(self.messages) or "backend reported an error",
            operation=operation,
        )

    @property
    def messages(self) -> list[str]:
        return [str(err) for err in self.errors]
