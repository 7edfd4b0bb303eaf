"""Provisioning run states.

A run only moves forward through the happy path; `FAILED` is absorbing and
reachable from every non-terminal state. Keeping the table in the domain
layer lets the orchestrator, the CLI and the web page share it.
"""

from __future__ import annotations

from enum import Enum


class ProvisioningState(str, Enum):
    """Lifecycle of a single provisioning run."""

    START = "start"
    CREATED = "created"
    SOURCE_ATTACHED = "source_attached"
    DOMAIN_EXPOSED = "domain_exposed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProvisioningState.DOMAIN_EXPOSED, ProvisioningState.FAILED)

    def can_transition_to(self, target: "ProvisioningState") -> bool:
        if self.is_terminal:
            return False
        if target is ProvisioningState.FAILED:
            return True
        return _NEXT.get(self) is target

    def label(self) -> str:
        """Human readable label for progress output and logging."""

        return self.value.replace("_", " ")


_NEXT: dict[ProvisioningState, ProvisioningState] = {
    ProvisioningState.START: ProvisioningState.CREATED,
    ProvisioningState.CREATED: ProvisioningState.SOURCE_ATTACHED,
    ProvisioningState.SOURCE_ATTACHED: ProvisioningState.DOMAIN_EXPOSED,
}
