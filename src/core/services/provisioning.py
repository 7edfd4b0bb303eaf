"""Provisioning orchestration.

This module sequences the three remote calls that turn the current instance
into a parent: create the child service, connect it to the source
repository, and expose a public domain. The calls are strictly sequential
because each one needs the service id returned by the first. The first
failure stops the run; nothing after it is attempted.

Presentation layers (CLI, web page) call `provision` or `run_provisioning`
and only render the result, keeping side-effects out of the core logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from adapters.railway_backend import RailwayBackend
from core.config import AppSettings
from core.domain.models import ServiceIdentity
from core.domain.state import ProvisioningState
from core.errors import WorkflowError
from core.interfaces.backend import ProvisioningBackend
from core.services import identity as identity_generator
from core.services.payloads import (
    build_child_variables,
    build_create_payload,
    build_delete_payload,
    build_domain_payload,
    build_source_attach_payload,
)

logger = logging.getLogger(__name__)


@dataclass
class ProvisioningHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    transition: Callable[[ProvisioningState, ProvisioningState], None] | None = None
    warning: Callable[[str], None] | None = None


@dataclass
class ProvisioningOutcome:
    """Result of one provisioning run."""

    identity: ServiceIdentity
    state: ProvisioningState = ProvisioningState.START
    service_id: str | None = None
    domain: str | None = None
    error: WorkflowError | None = None
    failed_at: ProvisioningState | None = None
    cleanup_attempted: bool = False
    cleaned_up: bool = False
    cleanup_error: WorkflowError | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is ProvisioningState.DOMAIN_EXPOSED

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] | None = None
        if self.error is not None:
            error = {
                "kind": self.error.kind.value,
                "operation": self.error.operation,
                "message": str(self.error),
                "messages": list(getattr(self.error, "messages", [str(self.error)])),
            }
        return {
            "service_name": self.identity.name,
            "level": self.identity.level,
            "state": self.state.value,
            "service_id": self.service_id,
            "domain": self.domain,
            "error": error,
            "failed_at": self.failed_at.value if self.failed_at else None,
            "cleanup": {
                "attempted": self.cleanup_attempted,
                "succeeded": self.cleaned_up,
                "error": str(self.cleanup_error) if self.cleanup_error else None,
            },
            "warnings": list(self.warnings),
        }


class ProvisioningWorkflow:
    """Runs Start -> Created -> SourceAttached -> DomainExposed once.

    An instance is single-use; concurrent runs each build their own.
    """

    def __init__(
        self,
        settings: AppSettings,
        backend: ProvisioningBackend,
        *,
        hooks: ProvisioningHooks | None = None,
        identity: ServiceIdentity | None = None,
    ) -> None:
        self._settings = settings
        self._backend = backend
        self._hooks = hooks or ProvisioningHooks()
        self._identity = identity or identity_generator.generate(settings.level)

    @property
    def identity(self) -> ServiceIdentity:
        return self._identity

    async def execute(self) -> ProvisioningOutcome:
        settings = self._settings
        outcome = ProvisioningOutcome(identity=self._identity)
        logger.info("Provisioning %s (level %d)", self._identity.name, self._identity.level)

        try:
            create_payload = build_create_payload(
                self._identity,
                self._identity.level,
                settings.railway_project_id,
                settings.railway_environment_id,
                build_child_variables(self._identity.level, settings.railway_token),
            )
            service = await self._backend.create_service(create_payload)
            outcome.service_id = service.id
            self._advance(outcome, ProvisioningState.CREATED)

            attach_payload = build_source_attach_payload(service.id, settings.source_binding())
            await self._backend.connect_service(attach_payload)
            self._advance(outcome, ProvisioningState.SOURCE_ATTACHED)

            domain_payload = build_domain_payload(service.id, settings.railway_environment_id)
            exposed = await self._backend.create_service_domain(domain_payload)
            outcome.domain = exposed.domain
            self._advance(outcome, ProvisioningState.DOMAIN_EXPOSED)
        except WorkflowError as exc:
            logger.warning(
                "Provisioning %s failed after state %s: %s",
                self._identity.name,
                outcome.state.value,
                exc,
            )
            outcome.error = exc
            outcome.failed_at = outcome.state
            self._advance(outcome, ProvisioningState.FAILED)
            await self._compensate(outcome)
        return outcome

    def _advance(self, outcome: ProvisioningOutcome, target: ProvisioningState) -> None:
        previous = outcome.state
        if not previous.can_transition_to(target):
            raise RuntimeError(f"illegal transition {previous.value} -> {target.value}")
        outcome.state = target
        logger.info("%s: %s -> %s", self._identity.name, previous.value, target.value)
        if self._hooks.transition:
            self._hooks.transition(previous, target)

    async def _compensate(self, outcome: ProvisioningOutcome) -> None:
        if outcome.service_id is None:
            return
        if not self._settings.cleanup_on_failure:
            self._warn(
                outcome,
                f"service {outcome.service_id} was left in place after the failure",
            )
            return

        outcome.cleanup_attempted = True
        try:
            outcome.cleaned_up = await self._backend.delete_service(
                build_delete_payload(outcome.service_id)
            )
        except WorkflowError as exc:
            outcome.cleanup_error = exc
            self._warn(outcome, f"cleanup of service {outcome.service_id} failed: {exc}")
            return
        if outcome.cleaned_up:
            logger.info("Deleted orphaned service %s", outcome.service_id)
        else:
            self._warn(outcome, f"backend did not confirm deletion of {outcome.service_id}")

    def _warn(self, outcome: ProvisioningOutcome, message: str) -> None:
        logger.warning(message)
        outcome.warnings.append(message)
        if self._hooks.warning:
            self._hooks.warning(message)


async def provision(
    settings: AppSettings,
    backend: ProvisioningBackend | None = None,
    *,
    hooks: ProvisioningHooks | None = None,
) -> ProvisioningOutcome:
    """Run the workflow once and return the full outcome (never raises WorkflowError)."""

    if backend is not None:
        return await ProvisioningWorkflow(settings, backend, hooks=hooks).execute()

    async with RailwayBackend(settings) as railway:
        return await ProvisioningWorkflow(settings, railway, hooks=hooks).execute()


async def run_provisioning(
    settings: AppSettings,
    backend: ProvisioningBackend | None = None,
    *,
    hooks: ProvisioningHooks | None = None,
) -> str:
    """Run the workflow once and return the new service's public domain.

    Raises the first `WorkflowError` encountered, unchanged.
    """

    outcome = await provision(settings, backend, hooks=hooks)
    if outcome.error is not None:
        raise outcome.error
    assert outcome.domain is not None
    return outcome.domain
