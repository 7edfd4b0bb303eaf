"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) en un único valor
  inmutable que se construye una vez al arrancar el proceso.
- Permite que adaptadores (HTTP/GraphQL) y servicios lean config de forma
  consistente sin consultar `os.environ` por su cuenta.

Nota: los nombres `RAILWAY_*` y `LEVEL` son los que inyecta la plataforma en
cada servicio desplegado, por eso no llevan prefijo.
"""

from __future__ import annotations

import httpx
from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import SourceBinding
from core.errors import ConfigurationError

DEFAULT_GRAPHQL_ENDPOINT = "https://backboard.railway.app/graphql/v2"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/web/adapters.
    - `frozen=True`: ninguna ejecución puede mutar la config de otra.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        frozen=True,
    )

    railway_token: str = Field(
        default="",
        description="Bearer token para la API GraphQL de la plataforma.",
    )
    railway_project_id: str = Field(
        default="",
        description="Proyecto donde se crean los servicios hijos.",
    )
    railway_environment_id: str = Field(
        default="",
        description="Entorno (environment) destino dentro del proyecto.",
    )
    railway_git_repo_owner: str = Field(
        default="",
        description="Owner del repositorio fuente del servicio hijo.",
    )
    railway_git_repo_name: str = Field(
        default="",
        description="Nombre del repositorio fuente del servicio hijo.",
    )
    railway_git_branch: str = Field(
        default="",
        description="Rama del repositorio fuente.",
    )
    level: int = Field(
        default=0,
        ge=0,
        description="Profundidad de recursión de esta instancia (0 = raíz).",
    )

    graphql_endpoint: str = Field(
        default=DEFAULT_GRAPHQL_ENDPOINT,
        min_length=8,
        validation_alias=AliasChoices("REPLICATOR_GRAPHQL_ENDPOINT", "graphql_endpoint"),
        description="Endpoint GraphQL único del backend de aprovisionamiento.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        validation_alias=AliasChoices("REPLICATOR_HTTP_TIMEOUT_SECONDS", "http_timeout_seconds"),
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="railway-replicator/0.1",
        min_length=1,
        validation_alias=AliasChoices("REPLICATOR_USER_AGENT", "user_agent"),
        description="User-Agent para las llamadas al backend.",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        le=5,
        validation_alias=AliasChoices("REPLICATOR_MAX_RETRIES", "max_retries"),
        description="Reintentos ante fallos de conexión (la request nunca llegó al backend).",
    )
    cleanup_on_failure: bool = Field(
        default=False,
        validation_alias=AliasChoices("REPLICATOR_CLEANUP_ON_FAILURE", "cleanup_on_failure"),
        description="Borrar el servicio creado si un paso posterior falla.",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("REPLICATOR_LOG_LEVEL", "log_level"),
        description="Nivel de logging para CLI/web.",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _coerce_level(cls, value: object) -> int:
        # Ausente, no numérico o negativo cuenta como raíz; nunca es un error.
        if value is None or isinstance(value, bool):
            return 0
        try:
            parsed = int(str(value).strip())
        except ValueError:
            return 0
        return parsed if parsed >= 0 else 0

    @field_validator("graphql_endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        try:
            url = httpx.URL(value.strip())
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid GraphQL endpoint {value!r}: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"GraphQL endpoint must be an absolute http(s) URL, got {value!r}")
        return str(url)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper() or "INFO"
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return normalized

    @property
    def next_level(self) -> int:
        """Nivel que recibe el servicio hijo."""

        return self.level + 1

    def source_binding(self) -> SourceBinding:
        return SourceBinding(
            owner=self.railway_git_repo_owner,
            name=self.railway_git_repo_name,
            branch=self.railway_git_branch,
        )

    def require_token(self) -> None:
        """Falla rápido si no hay credencial (solo al arrancar, nunca por request)."""

        if not self.railway_token.strip():
            raise ConfigurationError(
                "RAILWAY_TOKEN is not set; cannot authenticate against the provisioning backend.",
                setting="RAILWAY_TOKEN",
            )


def load_settings(*, require_token: bool = True, **overrides: object) -> AppSettings:
    """Construye y valida la configuración del proceso.

    `overrides` permite a tests/CLI fijar valores sin tocar el entorno.
    """

    try:
        settings = AppSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        loc = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigurationError(f"Invalid configuration: {exc}", setting=loc) from exc

    if require_token:
        settings.require_token()
    return settings
