"""Payload builders for the three provisioning calls.

All inputs are plain strings coming from `AppSettings`; an unset value is an
empty string and is forwarded as-is. None of these functions can fail.
"""

from __future__ import annotations

from typing import Mapping

from core.domain.models import (
    AttachPayload,
    CreatePayload,
    DeletePayload,
    DomainPayload,
    ServiceConnectInput,
    ServiceCreateInput,
    ServiceDomainCreateInput,
    ServiceIdentity,
    SourceBinding,
)

LEVEL_VARIABLE = "LEVEL"
TOKEN_VARIABLE = "RAILWAY_TOKEN"


def build_child_variables(
    level: int,
    token: str,
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Variables the child service sees when it boots.

    The child gets its own depth and the bearer token so it can provision
    the next level in turn.
    """

    variables = dict(extra or {})
    variables[LEVEL_VARIABLE] = str(level)
    variables[TOKEN_VARIABLE] = token
    return variables


def build_create_payload(
    identity: ServiceIdentity,
    level: int,
    project_id: str,
    environment_id: str,
    variables: Mapping[str, str],
) -> CreatePayload:
    # Source and branch are attached in a separate call once the service exists.
    return CreatePayload(
        input=ServiceCreateInput(
            project_id=project_id,
            environment_id=environment_id,
            name=identity.name,
            branch=None,
            source=None,
            variables={**variables, LEVEL_VARIABLE: str(level)},
        )
    )


def build_source_attach_payload(service_id: str, source: SourceBinding) -> AttachPayload:
    return AttachPayload(
        id=service_id,
        input=ServiceConnectInput(repo=source.repo, branch=source.branch, image=None),
    )


def build_domain_payload(service_id: str, environment_id: str) -> DomainPayload:
    return DomainPayload(
        input=ServiceDomainCreateInput(service_id=service_id, environment_id=environment_id)
    )


def build_delete_payload(service_id: str) -> DeletePayload:
    return DeletePayload(id=service_id)
