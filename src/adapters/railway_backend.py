"""Adaptador GraphQL del backend de aprovisionamiento.

Responsabilidad:
- Enviar cada operación como `POST {query, variables}` al endpoint único.
- Clasificar cualquier fallo como `TransportFailure` o `BackendFailure`.
- Normalizar la respuesta de cada operación en un modelo del dominio.

Regla principal: si la respuesta trae `errors`, es un fallo del backend
aunque `data` también venga poblado.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import (
    AttachPayload,
    ConnectedService,
    CreatePayload,
    DeletePayload,
    DomainPayload,
    ExposedDomain,
    GraphQLResponse,
    ProvisionedService,
    parse_graphql_errors,
)
from core.errors import BackendFailure, TransportFailure

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SERVICE_CREATE = """
mutation CreateService($input: ServiceCreateInput!) {
  serviceCreate(input: $input) {
    id
    name
  }
}
"""

SERVICE_CONNECT = """
mutation ConnectServiceToRepo($id: String!, $input: ServiceConnectInput!) {
  serviceConnect(id: $id, input: $input) {
    id
  }
}
"""

SERVICE_DOMAIN_CREATE = """
mutation CreateServiceDomain($input: ServiceDomainCreateInput!) {
  serviceDomainCreate(input: $input) {
    id
    domain
  }
}
"""

SERVICE_DELETE = """
mutation DeleteService($id: String!) {
  serviceDelete(id: $id)
}
"""

PROJECT_QUERY = """
query Project($id: String!) {
  project(id: $id) {
    name
  }
}
"""

# La request nunca llegó al backend: reintentar es seguro incluso en mutaciones.
_RETRYABLE = (httpx.ConnectError, httpx.ConnectTimeout)


def _backoff_seconds(attempt: int) -> float:
    return 0.5 * (2**attempt) + random.uniform(0.0, 0.25)


class RailwayBackend:
    """Cliente del backend; implementa `core.interfaces.backend.ProvisioningBackend`.

    Se usa como context manager async para cerrar el `httpx.AsyncClient`.
    Cada ejecución del flujo crea el suyo, así no se comparte estado.
    """

    def __init__(
        self,
        settings: AppSettings,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or build_async_client(settings, transport=transport)

    async def __aenter__(self) -> "RailwayBackend":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def execute(self, operation: str, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Un intercambio request/response; devuelve `data` o levanta `WorkflowError`."""

        response = await self._post(operation, {"query": query, "variables": variables})

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportFailure(
                f"{operation}: malformed response (HTTP {response.status_code})",
                operation=operation,
            ) from exc
        if not isinstance(body, dict):
            raise TransportFailure(f"{operation}: unexpected response shape", operation=operation)

        # Los errores se miran antes que la forma del resto del sobre.
        errors = parse_graphql_errors(body.get("errors") or None)
        if errors:
            failure = BackendFailure(errors, operation=operation)
            logger.warning("%s rejected by backend: %s", operation, failure)
            raise failure

        try:
            envelope = GraphQLResponse.model_validate(body)
        except ValidationError as exc:
            raise TransportFailure(f"{operation}: unexpected response shape", operation=operation) from exc

        if response.is_error:
            raise TransportFailure(
                f"{operation}: HTTP {response.status_code} from provisioning backend",
                operation=operation,
            )
        if envelope.data is None:
            raise TransportFailure(f"{operation}: response carried no data", operation=operation)
        return envelope.data

    async def _post(self, operation: str, body: dict[str, Any]) -> httpx.Response:
        attempts = max(1, self._settings.max_retries + 1)
        for attempt in range(attempts):
            logger.debug("POST %s (%s, attempt %d)", self._settings.graphql_endpoint, operation, attempt + 1)
            try:
                return await self._client.post(self._settings.graphql_endpoint, json=body)
            except _RETRYABLE as exc:
                if attempt + 1 >= attempts:
                    raise TransportFailure(f"{operation}: {exc!r}", operation=operation) from exc
                delay = _backoff_seconds(attempt)
                logger.info("%s: connection failed (%s), retrying in %.2fs", operation, exc, delay)
                await asyncio.sleep(delay)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise TransportFailure(f"{operation}: {exc!r}", operation=operation) from exc
        raise AssertionError("unreachable")

    def _field(self, operation: str, data: dict[str, Any], key: str, model: type[ModelT]) -> ModelT:
        value = data.get(key)
        if not isinstance(value, dict):
            raise TransportFailure(f"{operation}: response is missing '{key}'", operation=operation)
        try:
            return model.model_validate(value)
        except ValidationError as exc:
            raise TransportFailure(f"{operation}: invalid '{key}' payload", operation=operation) from exc

    async def create_service(self, payload: CreatePayload) -> ProvisionedService:
        data = await self.execute("serviceCreate", SERVICE_CREATE, payload.to_variables())
        return self._field("serviceCreate", data, "serviceCreate", ProvisionedService)

    async def connect_service(self, payload: AttachPayload) -> ConnectedService:
        data = await self.execute("serviceConnect", SERVICE_CONNECT, payload.to_variables())
        return self._field("serviceConnect", data, "serviceConnect", ConnectedService)

    async def create_service_domain(self, payload: DomainPayload) -> ExposedDomain:
        data = await self.execute("serviceDomainCreate", SERVICE_DOMAIN_CREATE, payload.to_variables())
        return self._field("serviceDomainCreate", data, "serviceDomainCreate", ExposedDomain)

    async def delete_service(self, payload: DeletePayload) -> bool:
        data = await self.execute("serviceDelete", SERVICE_DELETE, payload.to_variables())
        return bool(data.get("serviceDelete"))

    async def fetch_project_name(self, project_id: str) -> str:
        """Lookup used by `doctor` to prove the token can see the project."""

        data = await self.execute("project", PROJECT_QUERY, {"id": project_id})
        project = data.get("project")
        if not isinstance(project, dict) or not isinstance(project.get("name"), str):
            raise TransportFailure("project: response is missing 'project.name'", operation="project")
        return project["name"]
