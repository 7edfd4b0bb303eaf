"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y autenticación para el backend GraphQL.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` autenticado con defaults seguros.

    Por qué un builder:
    - Centraliza timeout/headers para que todas las operaciones se comporten igual.
    - El token solo vive en el header; nunca se loguea.
    """

    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.railway_token}",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
