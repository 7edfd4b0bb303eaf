"""GraphQL client: request construction and failure classification."""

from __future__ import annotations

import json

import httpx
import pytest

from adapters import railway_backend
from adapters.railway_backend import RailwayBackend
from conftest import ENDPOINT, GraphQLStub, make_settings, ok_connect, ok_create, ok_domain
from core.domain.models import GraphQLErrorItem, ServiceIdentity, SourceBinding
from core.errors import BackendFailure, TransportFailure, WorkflowErrorKind
from core.services.payloads import (
    build_create_payload,
    build_delete_payload,
    build_domain_payload,
    build_source_attach_payload,
)


def _create_payload():
    identity = ServiceIdentity(token="abc", level=1)
    return build_create_payload(identity, 1, "proj_1", "env_1", {"RAILWAY_TOKEN": "tok"})


def _backend(stub: GraphQLStub, **overrides) -> RailwayBackend:
    return RailwayBackend(make_settings(**overrides), transport=stub.transport)


class TestRequest:
    @pytest.mark.asyncio
    async def test_authenticated_post_to_single_endpoint(self):
        stub = GraphQLStub({"serviceCreate": ok_create()})
        async with _backend(stub) as backend:
            await backend.create_service(_create_payload())

        _, request, body = stub.requests[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers["Authorization"] == "Bearer tok-secret"
        assert set(body) == {"query", "variables"}
        assert body["variables"]["input"]["projectId"] == "proj_1"

    @pytest.mark.asyncio
    async def test_each_operation_sends_its_document(self):
        stub = GraphQLStub(
            {
                "serviceCreate": ok_create(),
                "serviceConnect": ok_connect(),
                "serviceDomainCreate": ok_domain(),
                "serviceDelete": {"data": {"serviceDelete": True}},
            }
        )
        async with _backend(stub) as backend:
            service = await backend.create_service(_create_payload())
            await backend.connect_service(build_source_attach_payload(service.id, SourceBinding(owner="o", name="r")))
            exposed = await backend.create_service_domain(build_domain_payload(service.id, "env_1"))
            deleted = await backend.delete_service(build_delete_payload(service.id))

        assert service.id == "svc_123"
        assert exposed.domain == "svc123.example.app"
        assert deleted is True
        assert [op for op, _, _ in stub.requests] == [
            "serviceCreate",
            "serviceConnect",
            "serviceDomainCreate",
            "serviceDelete",
        ]
        assert stub.variables("serviceConnect") == {
            "id": "svc_123",
            "input": {"repo": "o/r", "branch": "", "image": None},
        }

    @pytest.mark.asyncio
    async def test_project_lookup(self):
        stub = GraphQLStub({"project": {"data": {"project": {"name": "spawner"}}}})
        async with _backend(stub) as backend:
            assert await backend.fetch_project_name("proj_1") == "spawner"
        assert stub.variables("project") == {"id": "proj_1"}


class TestBackendFailures:
    @pytest.mark.asyncio
    async def test_errors_win_over_data(self):
        body = ok_create()
        body["errors"] = [{"message": "Problem processing request"}]
        stub = GraphQLStub({"serviceCreate": body})

        async with _backend(stub) as backend:
            with pytest.raises(BackendFailure) as excinfo:
                await backend.create_service(_create_payload())

        failure = excinfo.value
        assert failure.kind is WorkflowErrorKind.BACKEND
        assert failure.operation == "serviceCreate"
        assert failure.messages == ["Problem processing request"]

    @pytest.mark.asyncio
    async def test_messages_are_joined_and_kept_structured(self):
        stub = GraphQLStub(
            {
                "serviceCreate": {
                    "data": None,
                    "errors": [
                        {"message": "project not found", "path": ["serviceCreate"]},
                        "not authorized",
                    ],
                }
            }
        )
        async with _backend(stub) as backend:
            with pytest.raises(BackendFailure) as excinfo:
                await backend.create_service(_create_payload())

        failure = excinfo.value
        assert str(failure) == "project not found (path: serviceCreate); not authorized"
        assert all(isinstance(err, GraphQLErrorItem) for err in failure.errors)
        assert failure.errors[0].path == ["serviceCreate"]

    @pytest.mark.asyncio
    async def test_errors_on_http_error_status_are_backend_failures(self):
        response = httpx.Response(400, json={"errors": [{"message": "bad input"}]})
        stub = GraphQLStub({"serviceDomainCreate": response})
        async with _backend(stub) as backend:
            with pytest.raises(BackendFailure, match="bad input"):
                await backend.create_service_domain(build_domain_payload("svc", "env"))


class TestTransportFailures:
    @pytest.mark.asyncio
    async def test_connection_error(self):
        stub = GraphQLStub({"serviceCreate": httpx.ConnectError("connection refused")})
        async with _backend(stub) as backend:
            with pytest.raises(TransportFailure) as excinfo:
                await backend.create_service(_create_payload())

        assert excinfo.value.kind is WorkflowErrorKind.TRANSPORT
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_read_timeout_is_never_retried(self):
        stub = GraphQLStub({"serviceCreate": [httpx.ReadTimeout("slow"), ok_create()]})
        async with _backend(stub, max_retries=3) as backend:
            with pytest.raises(TransportFailure):
                await backend.create_service(_create_payload())
        assert stub.count("serviceCreate") == 1

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        stub = GraphQLStub({"serviceCreate": httpx.Response(502, text="<html>Bad Gateway</html>")})
        async with _backend(stub) as backend:
            with pytest.raises(TransportFailure, match="malformed response"):
                await backend.create_service(_create_payload())

    @pytest.mark.asyncio
    async def test_http_error_without_graphql_errors(self):
        stub = GraphQLStub({"serviceCreate": httpx.Response(500, json={"data": None})})
        async with _backend(stub) as backend:
            with pytest.raises(TransportFailure, match="HTTP 500"):
                await backend.create_service(_create_payload())

    @pytest.mark.asyncio
    async def test_missing_data(self):
        stub = GraphQLStub({"serviceCreate": {"data": None}})
        async with _backend(stub) as backend:
            with pytest.raises(TransportFailure, match="no data"):
                await backend.create_service(_create_payload())

    @pytest.mark.asyncio
    async def test_missing_operation_field(self):
        stub = GraphQLStub({"serviceDomainCreate": {"data": {"serviceDomainCreate": None}}})
        async with _backend(stub) as backend:
            with pytest.raises(TransportFailure, match="serviceDomainCreate"):
                await backend.create_service_domain(build_domain_payload("svc", "env"))

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        stub = GraphQLStub({"serviceCreate": httpx.Response(200, content=json.dumps([1, 2]).encode())})
        async with _backend(stub) as backend:
            with pytest.raises(TransportFailure, match="unexpected response shape"):
                await backend.create_service(_create_payload())


class TestRetryPolicy:
    @pytest.fixture(autouse=True)
    def no_backoff(self, monkeypatch):
        monkeypatch.setattr(railway_backend, "_backoff_seconds", lambda attempt: 0.0)

    @pytest.mark.asyncio
    async def test_no_retries_by_default(self):
        stub = GraphQLStub({"serviceCreate": [httpx.ConnectError("down"), ok_create()]})
        async with _backend(stub) as backend:
            with pytest.raises(TransportFailure):
                await backend.create_service(_create_payload())
        assert stub.count("serviceCreate") == 1

    @pytest.mark.asyncio
    async def test_connect_errors_are_retried_when_enabled(self):
        stub = GraphQLStub(
            {
                "serviceCreate": [
                    httpx.ConnectError("down"),
                    httpx.ConnectTimeout("still down"),
                    ok_create("svc_9"),
                ]
            }
        )
        async with _backend(stub, max_retries=2) as backend:
            service = await backend.create_service(_create_payload())
        assert service.id == "svc_9"
        assert stub.count("serviceCreate") == 3

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self):
        stub = GraphQLStub({"serviceCreate": [httpx.ConnectError("down")] * 5})
        async with _backend(stub, max_retries=1) as backend:
            with pytest.raises(TransportFailure):
                await backend.create_service(_create_payload())
        assert stub.count("serviceCreate") == 2

    @pytest.mark.asyncio
    async def test_backend_failures_are_not_retried(self):
        stub = GraphQLStub({"serviceCreate": [{"errors": [{"message": "nope"}]}, ok_create()]})
        async with _backend(stub, max_retries=3) as backend:
            with pytest.raises(BackendFailure):
                await backend.create_service(_create_payload())
        assert stub.count("serviceCreate") == 1


class TestIrregularBackendErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("errors", "expected"),
        [
            ([{"message": "quota exceeded", "extensions": None}], "quota exceeded"),
            ([{"message": None}], "unknown error"),
            ([42], "42"),
            ([{"message": "boom", "path": [{"k": 1}]}], "boom (path: {'k': 1})"),
            ("single string", "single string"),
        ],
    )
    async def test_any_error_entry_is_a_backend_failure(self, errors, expected):
        body = ok_create()
        body["errors"] = errors
        stub = GraphQLStub({"serviceCreate": body})

        async with _backend(stub) as backend:
            with pytest.raises(BackendFailure) as excinfo:
                await backend.create_service(_create_payload())

        assert str(excinfo.value) == expected
        assert len(excinfo.value.errors) == 1
        assert isinstance(excinfo.value.errors[0], GraphQLErrorItem)

    @pytest.mark.asyncio
    async def test_errors_win_over_malformed_data(self):
        stub = GraphQLStub({"serviceCreate": {"data": [1, 2], "errors": [{"message": "denied"}]}})
        async with _backend(stub) as backend:
            with pytest.raises(BackendFailure, match="denied"):
                await backend.create_service(_create_payload())

    @pytest.mark.asyncio
    async def test_empty_error_list_is_not_a_failure(self):
        body = ok_create()
        body["errors"] = []
        stub = GraphQLStub({"serviceCreate": body})
        async with _backend(stub) as backend:
            assert (await backend.create_service(_create_payload())).id == "svc_123"


class TestInvalidEndpoint:
    @pytest.mark.asyncio
    async def test_unparseable_url_is_a_transport_failure(self):
        settings = make_settings().model_copy(update={"graphql_endpoint": "http://[::1"})
        stub = GraphQLStub({})
        async with RailwayBackend(settings, transport=stub.transport) as backend:
            with pytest.raises(TransportFailure) as excinfo:
                await backend.create_service(_create_payload())
        assert isinstance(excinfo.value.__cause__, httpx.InvalidURL)
        assert stub.requests == []
