"""Contrato del backend de aprovisionamiento.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que el cliente GraphQL real y los dobles de test sean
  intercambiables sin acoplar el orquestador a httpx.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import (
    AttachPayload,
    ConnectedService,
    CreatePayload,
    DeletePayload,
    DomainPayload,
    ExposedDomain,
    ProvisionedService,
)


@runtime_checkable
class ProvisioningBackend(Protocol):
    """Operaciones remotas que consume el orquestador.

    Reglas de diseño:
    - Todas son asíncronas porque hacen I/O (HTTP).
    - Cada una hace un único intercambio y levanta `WorkflowError`
      (`TransportFailure` o `BackendFailure`) ante cualquier fallo.
    """

    async def create_service(self, payload: CreatePayload) -> ProvisionedService:
        ...

    async def connect_service(self, payload: AttachPayload) -> ConnectedService:
        ...

    async def create_service_domain(self, payload: DomainPayload) -> ExposedDomain:
        ...

    async def delete_service(self, payload: DeletePayload) -> bool:
        """Compensación opcional: borra un servicio huérfano."""

        ...
