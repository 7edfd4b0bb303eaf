"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los payloads se serializan tal cual los espera la API GraphQL (camelCase)
  mediante alias, sin diccionarios armados a mano.

Nota:
- Estos modelos describen *qué* se envía y recibe, no *cómo* viaja.
- Todos son inmutables: se crean una vez por ejecución y no se tocan más.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_variables(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ServiceIdentity(BaseModel):
    """Identidad generada para el servicio hijo.

    Por qué existe:
    - El token aleatorio evita colisiones entre ejecuciones concurrentes sin
      consultar al backend.
    - El nombre expone la profundidad para que sea visible en el dashboard.
    """

    model_config = ConfigDict(frozen=True)

    token: str = Field(
        ...,
        min_length=1,
        description="Identificador aleatorio, corto y no adivinable.",
    )
    level: int = Field(
        ...,
        ge=1,
        description="Nivel de recursión del servicio hijo (padre + 1).",
    )

    @property
    def name(self) -> str:
        return f"{self.token}_level_{self.level}"


class SourceBinding(BaseModel):
    """Repositorio fuente del servicio hijo (owner/name@branch).

    Los valores vacíos se propagan tal cual; no se validan aquí.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(default="", description="Owner del repositorio.")
    name: str = Field(default="", description="Nombre del repositorio.")
    branch: str = Field(default="", description="Rama a desplegar.")

    @property
    def repo(self) -> str:
        return f"{self.owner}/{self.name}"


class ServiceCreateInput(_WireModel):
    project_id: str
    environment_id: str | None = None
    name: str | None = None
    branch: str | None = None
    source: dict[str, str] | None = None
    variables: dict[str, str] | None = None


class CreatePayload(_WireModel):
    input: ServiceCreateInput


class ServiceConnectInput(_WireModel):
    repo: str | None = None
    branch: str | None = None
    image: str | None = None


class AttachPayload(_WireModel):
    id: str
    input: ServiceConnectInput


class ServiceDomainCreateInput(_WireModel):
    service_id: str
    environment_id: str


class DomainPayload(_WireModel):
    input: ServiceDomainCreateInput


class DeletePayload(_WireModel):
    id: str


class ProvisionedService(BaseModel):
    """Servicio creado por el backend (sistema de registro)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1, description="Identificador asignado por el backend.")
    name: str | None = Field(default=None, description="Nombre registrado en el backend.")


class ConnectedService(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None


class ExposedDomain(BaseModel):
    """Hostname público asignado al servicio: la única salida exitosa del flujo."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    domain: str = Field(..., min_length=1, description="Hostname accesible externamente.")
    id: str | None = Field(default=None, description="Identificador del dominio en el backend.")


class GraphQLErrorItem(BaseModel):
    """Error estructurado reportado por el backend en `errors[]`.

    Tolerante a formas raras (`message: null`, `extensions: null`, paths con
    objetos): un error del backend nunca debe perderse por su forma.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str = Field(default="unknown error")
    path: list[str | int] | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("message", mode="before")
    @classmethod
    def _coerce_message(cls, value: object) -> str:
        if value is None or value == "":
            return "unknown error"
        return value if isinstance(value, str) else str(value)

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: object) -> list[str | int] | None:
        if not isinstance(value, list):
            return None
        return [p if isinstance(p, (str, int)) and not isinstance(p, bool) else str(p) for p in value]

    @field_validator("extensions", mode="before")
    @classmethod
    def _coerce_extensions(cls, value: object) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @classmethod
    def from_raw(cls, item: object) -> "GraphQLErrorItem":
        if isinstance(item, dict):
            try:
                return cls.model_validate(item)
            except ValidationError:
                return cls(message=str(item.get("message") or item))
        return cls(message=str(item))

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path: {'.'.join(str(p) for p in self.path)})"
        return self.message


def parse_graphql_errors(value: object) -> list[GraphQLErrorItem]:
    """Normaliza `errors` (null, string suelto, lista heterogénea) a items."""

    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [GraphQLErrorItem.from_raw(item) for item in value]


class GraphQLResponse(BaseModel):
    """Sobre `{data, errors}` de cualquier respuesta GraphQL."""

    model_config = ConfigDict(extra="ignore")

    data: dict[str, Any] | None = None
    errors: list[GraphQLErrorItem] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def _normalize_errors(cls, value: object) -> list[GraphQLErrorItem]:
        return parse_graphql_errors(value)
