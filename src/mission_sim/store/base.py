"""Storage seams consumed by the lifecycle service."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from mission_sim.domain.models import Account, Deployment, MissionResult, Operative
from mission_sim.domain.types import DeploymentStatus


class DeploymentStore(Protocol):
    def create(self, deployment: Deployment) -> Deployment:
        """Insert ``deployment`` and mark its operative held, as one unit.

        Raises ``ResourceBusy`` if the operative is already held and
        ``AlreadyInProgress`` if the account or operative already has an active
        deployment on the same mission. Either both effects happen or neither.
        """
        ...

    def get(self, deployment_id: str) -> Deployment | None: ...

    def transition(
        self,
        deployment_id: str,
        *,
        expected: DeploymentStatus,
        target: DeploymentStatus,
        finished_at: datetime,
        result: MissionResult | None = None,
    ) -> tuple[bool, Deployment]:
        """Compare-and-set on status.

        Swaps only if the stored status equals ``expected``, releasing the
        operative in the same step. Returns ``(won, current_record)``.
        """
        ...

    def delete(self, deployment_id: str) -> Deployment | None: ...

    def find_active(
        self,
        *,
        operative_id: str | None = None,
        account_id: str | None = None,
        mission_id: str | None = None,
    ) -> list[Deployment]: ...

    def for_account(self, account_id: str) -> list[Deployment]: ...


class OperativeDirectory(Protocol):
    def get_operative(self, operative_id: str) -> Operative | None: ...

    def get_account(self, account_id: str) -> Account: ...

    def apply_rewards(self, deployment: Deployment) -> bool:
        """Credit a completed deployment's result once; False if already credited."""
        ...
