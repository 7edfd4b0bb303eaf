"""Shared fixtures for the replicator test suite."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from core.config import AppSettings
from core.domain.models import (
    AttachPayload,
    ConnectedService,
    CreatePayload,
    DeletePayload,
    DomainPayload,
    ExposedDomain,
    ProvisionedService,
)

ENDPOINT = "https://backboard.test/graphql/v2"

_ENV_VARS = (
    "RAILWAY_TOKEN",
    "RAILWAY_PROJECT_ID",
    "RAILWAY_ENVIRONMENT_ID",
    "RAILWAY_GIT_REPO_OWNER",
    "RAILWAY_GIT_REPO_NAME",
    "RAILWAY_GIT_BRANCH",
    "LEVEL",
    "REPLICATOR_GRAPHQL_ENDPOINT",
    "REPLICATOR_HTTP_TIMEOUT_SECONDS",
    "REPLICATOR_USER_AGENT",
    "REPLICATOR_MAX_RETRIES",
    "REPLICATOR_CLEANUP_ON_FAILURE",
    "REPLICATOR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_settings(**overrides: Any) -> AppSettings:
    values: dict[str, Any] = {
        "railway_token": "tok-secret",
        "railway_project_id": "proj_1",
        "railway_environment_id": "env_1",
        "railway_git_repo_owner": "octo",
        "railway_git_repo_name": "replicator",
        "railway_git_branch": "main",
        "level": 3,
        "graphql_endpoint": ENDPOINT,
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


# ---------------------------------------------------------------------------
# Fake backend (orchestration tests)
# ---------------------------------------------------------------------------

class FakeBackend:
    """In-memory backend; each response is a value or an exception to raise."""

    def __init__(
        self,
        *,
        create: Any = None,
        connect: Any = None,
        domain: Any = None,
        delete: Any = True,
    ) -> None:
        self.create = create if create is not None else ProvisionedService(id="svc_123")
        self.connect = connect if connect is not None else ConnectedService(id="svc_123")
        self.domain = domain if domain is not None else ExposedDomain(domain="svc123.example.app")
        self.delete = delete
        self.calls: list[tuple[str, Any]] = []

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def payload(self, name: str) -> Any:
        return next(p for call, p in self.calls if call == name)

    @staticmethod
    def _resolve(value: Any) -> Any:
        if isinstance(value, BaseException):
            raise value
        return value

    async def create_service(self, payload: CreatePayload) -> ProvisionedService:
        self.calls.append(("create", payload))
        return self._resolve(self.create)

    async def connect_service(self, payload: AttachPayload) -> ConnectedService:
        self.calls.append(("connect", payload))
        return self._resolve(self.connect)

    async def create_service_domain(self, payload: DomainPayload) -> ExposedDomain:
        self.calls.append(("domain", payload))
        return self._resolve(self.domain)

    async def delete_service(self, payload: DeletePayload) -> bool:
        self.calls.append(("delete", payload))
        return self._resolve(self.delete)


# ---------------------------------------------------------------------------
# GraphQL mock transport (client and end-to-end tests)
# ---------------------------------------------------------------------------

OPERATIONS = ("serviceCreate", "serviceConnect", "serviceDomainCreate", "serviceDelete", "project")

Responder = Callable[[httpx.Request, dict[str, Any]], httpx.Response]


def operation_of(body: dict[str, Any]) -> str:
    query = body["query"]
    for name in OPERATIONS:
        if f"{name}(" in query:
            return name
    raise AssertionError(f"unknown operation in query: {query!r}")


class GraphQLStub:
    """Builds an `httpx.MockTransport` that answers per GraphQL operation.

    A response entry is a JSON body (dict), an `httpx.Response`, an exception
    to raise, or a list of those consumed one per call.
    """

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = {k: (list(v) if isinstance(v, list) else v) for k, v in responses.items()}
        self.requests: list[tuple[str, httpx.Request, dict[str, Any]]] = []

    def count(self, operation: str) -> int:
        return sum(1 for op, _, _ in self.requests if op == operation)

    def variables(self, operation: str) -> dict[str, Any]:
        return next(body["variables"] for op, _, body in self.requests if op == operation)

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        operation = operation_of(body)
        self.requests.append((operation, request, body))

        entry = self.responses.get(operation)
        if isinstance(entry, list):
            entry = entry.pop(0)
        if entry is None:
            raise AssertionError(f"unexpected call to {operation}")
        if isinstance(entry, BaseException):
            raise entry
        if isinstance(entry, httpx.Response):
            return entry
        return httpx.Response(200, json=entry)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def ok_create(service_id: str = "svc_123") -> dict[str, Any]:
    return {"data": {"serviceCreate": {"id": service_id, "name": "child"}}}


def ok_connect(service_id: str = "svc_123") -> dict[str, Any]:
    return {"data": {"serviceConnect": {"id": service_id}}}


def ok_domain(domain: str = "svc123.example.app") -> dict[str, Any]:
    return {"data": {"serviceDomainCreate": {"id": "dom_1", "domain": domain}}}
