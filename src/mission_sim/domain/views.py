"""Read models returned to callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from mission_sim.domain.models import MissionResult
from mission_sim.domain.types import (
    DeploymentStatus,
    MissionCategory,
    OperativeCategory,
    PhaseVisibility,
    RiskTier,
    TensionLevel,
)


@dataclass(frozen=True)
class PhaseView:
    phase_id: int
    name: str
    visibility: PhaseVisibility
    success: bool | None = None
    roll: int | None = None
    threshold: int | None = None
    tension: TensionLevel | None = None
    narrative: str | None = None
    first_person_report: str | None = None
    image_prompt: str | None = None
    revealed_at: datetime | None = None

    @property
    def revealed(self) -> bool:
        return self.visibility is not PhaseVisibility.PENDING


@dataclass(frozen=True)
class DeploymentView:
    deployment_id: str
    mission_id: str
    operative_id: str
    approach: RiskTier
    status: DeploymentStatus
    created_at: datetime
    completes_at: datetime
    progress: int
    current_phase: int
    next_reveal_at: datetime | None
    time_remaining: timedelta
    phases: tuple[PhaseView, ...]
    result: MissionResult | None = None

    @property
    def revealed_count(self) -> int:
        return sum(1 for phase in self.phases if phase.revealed)


@dataclass(frozen=True)
class DeployReceipt:
    deployment_id: str
    status: DeploymentStatus
    completes_at: datetime


@dataclass(frozen=True)
class CompatibilityBreakdown:
    category: OperativeCategory
    mission_category: MissionCategory
    base: float
    experience_bonus: float
    level_bonus: float
    preference_adjustment: float
    overall: float


@dataclass(frozen=True)
class MissionProgress:
    mission_id: str
    title: str
    sequence: int | None
    unlocked: bool
    completed: bool
    active_deployment_id: str | None
