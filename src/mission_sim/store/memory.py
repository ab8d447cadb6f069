"""Thread-safe in-process store for deployments, operatives and accounts."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime

from mission_sim.domain.errors import (
    AlreadyInProgress,
    DeploymentNotFound,
    OperativeNotFound,
    ResourceBusy,
)
from mission_sim.domain.models import Account, Deployment, MissionResult, Operative
from mission_sim.domain.types import DeploymentStatus

logger = logging.getLogger(__name__)


def _copy_account(account: Account) -> Account:
    return replace(
        account,
        lore_unlocks=list(account.lore_unlocks),
        achievements=list(account.achievements),
    )


class InMemoryStore:
    """Implements both the deployment store and the operative directory.

    A single re-entrant lock guards every read-modify-write, which gives the
    "one active deployment per operative" constraint and the status
    compare-and-set their atomicity. Records handed out are copies.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._deployments: dict[str, Deployment] = {}
        self._operatives: dict[str, Operative] = {}
        self._accounts: dict[str, Account] = {}
        self._rewarded: set[str] = set()

    # Operative directory

    def add_operative(self, operative: Operative) -> Operative:
        with self._lock:
            self._operatives[operative.id] = replace(operative)
            self._accounts.setdefault(operative.account_id, Account(id=operative.account_id))
            return replace(operative)

    def get_operative(self, operative_id: str) -> Operative | None:
        with self._lock:
            operative = self._operatives.get(operative_id)
            return replace(operative) if operative is not None else None

    def list_operatives(self, account_id: str | None = None) -> list[Operative]:
        with self._lock:
            return [
                replace(op)
                for op in self._operatives.values()
                if account_id is None or op.account_id == account_id
            ]

    def get_account(self, account_id: str) -> Account:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                return Account(id=account_id)
            return _copy_account(account)

    def apply_rewards(self, deployment: Deployment) -> bool:
        if deployment.result is None:
            return False
        with self._lock:
            if deployment.id in self._rewarded:
                logger.debug("Rewards for %s already applied", deployment.id)
                return False
            operative = self._operatives.get(deployment.operative_id)
            if operative is None:
                raise OperativeNotFound(f"operative {deployment.operative_id} not found")
            account = self._accounts.setdefault(deployment.account_id, Account(id=deployment.account_id))
            result = deployment.result
            rewards = result.rewards

            operative.experience += rewards.experience
            operative.mission_count += 1

            account.points += rewards.points
            account.timeline_shift += rewards.timeline_shift
            if result.overall_success:
                account.missions_succeeded += 1
            else:
                account.missions_failed += 1
            for unlock in rewards.lore_unlocks:
                if unlock not in account.lore_unlocks:
                    account.lore_unlocks.append(unlock)
            for achievement in rewards.achievements:
                if achievement not in account.achievements:
                    account.achievements.append(achievement)
            self._rewarded.add(deployment.id)
            return True

    # Deployment store

    def create(self, deployment: Deployment) -> Deployment:
        with self._lock:
            operative = self._operatives.get(deployment.operative_id)
            if operative is None:
                raise OperativeNotFound(f"operative {deployment.operative_id} not found")
            for existing in self._active():
                if existing.mission_id == deployment.mission_id and (
                    existing.operative_id == deployment.operative_id
                    or existing.account_id == deployment.account_id
                ):
                    raise AlreadyInProgress(
                        f"mission {deployment.mission_id} already in progress as {existing.id}"
                    )
            if operative.exclusivity_held:
                raise ResourceBusy(
                    f"operative {operative.id} is held by deployment {operative.held_by}"
                )
            self._deployments[deployment.id] = deployment
            operative.exclusivity_held = True
            operative.held_by = deployment.id
            return deployment

    def get(self, deployment_id: str) -> Deployment | None:
        with self._lock:
            return self._deployments.get(deployment_id)

    def transition(
        self,
        deployment_id: str,
        *,
        expected: DeploymentStatus,
        target: DeploymentStatus,
        finished_at: datetime,
        result: MissionResult | None = None,
    ) -> tuple[bool, Deployment]:
        with self._lock:
            current = self._deployments.get(deployment_id)
            if current is None:
                raise DeploymentNotFound(f"deployment {deployment_id} not found")
            if current.status is not expected:
                return False, current
            updated = current.finish(target, finished_at, result)
            self._deployments[deployment_id] = updated
            self._release(updated)
            return True, updated

    def delete(self, deployment_id: str) -> Deployment | None:
        with self._lock:
            removed = self._deployments.pop(deployment_id, None)
            if removed is not None:
                self._release(removed)
            return removed

    def find_active(
        self,
        *,
        operative_id: str | None = None,
        account_id: str | None = None,
        mission_id: str | None = None,
    ) -> list[Deployment]:
        with self._lock:
            return [
                d
                for d in self._active()
                if (operative_id is None or d.operative_id == operative_id)
                and (account_id is None or d.account_id == account_id)
                and (mission_id is None or d.mission_id == mission_id)
            ]

    def for_account(self, account_id: str) -> list[Deployment]:
        with self._lock:
            found = [d for d in self._deployments.values() if d.account_id == account_id]
        return sorted(found, key=lambda d: d.created_at)

    def _active(self) -> list[Deployment]:
        return [d for d in self._deployments.values() if d.status is DeploymentStatus.ACTIVE]

    def _release(self, deployment: Deployment) -> None:
        operative = self._operatives.get(deployment.operative_id)
        if operative is not None and operative.held_by == deployment.id:
            operative.exclusivity_held = False
            operative.held_by = None
