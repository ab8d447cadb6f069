"""Catalog, operative and deployment records."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from mission_sim.domain.types import (
    DeploymentStatus,
    MissionCategory,
    OperativeCategory,
    PhaseTag,
    RiskTier,
    TensionLevel,
)


@dataclass(frozen=True)
class PhaseNarrativeTemplates:
    success: str
    failure: str


@dataclass(frozen=True)
class MissionPhase:
    id: int
    name: str
    weight: float
    tag: PhaseTag
    templates: PhaseNarrativeTemplates | None = None


@dataclass(frozen=True)
class SuccessRange:
    min: float
    max: float

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2.0


@dataclass(frozen=True)
class ApproachRewards:
    points: int = 100
    experience: int = 50


@dataclass(frozen=True)
class FinalNarrativeTemplates:
    perfect_success: str | None = None
    success: str | None = None
    failure: str | None = None
    total_failure: str | None = None


@dataclass(frozen=True)
class Approach:
    tier: RiskTier
    name: str
    description: str
    success_rate: SuccessRange
    duration: timedelta
    rewards: ApproachRewards
    timeline_shift: SuccessRange | None = None
    narratives: FinalNarrativeTemplates = field(default_factory=FinalNarrativeTemplates)

    @property
    def base_success_rate(self) -> float:
        return self.success_rate.midpoint


@dataclass(frozen=True)
class CompatibilityPreferences:
    preferred: tuple[OperativeCategory, ...] = ()
    bonus: float = 0.0
    penalty: float = 0.0


@dataclass(frozen=True)
class Prerequisite:
    mission_id: str
    require_success: bool = False


@dataclass(frozen=True)
class MissionTemplate:
    id: str
    title: str
    description: str
    location: str
    primary_category: MissionCategory
    phases: tuple[MissionPhase, ...]
    approaches: dict[RiskTier, Approach]
    compatibility: CompatibilityPreferences = field(default_factory=CompatibilityPreferences)
    sequence: int | None = None
    prerequisite: Prerequisite | None = None
    repeatable: bool = True

    def approach(self, tier: RiskTier) -> Approach | None:
        return self.approaches.get(tier)


@dataclass()
class Operative:
    id: str
    account_id: str
    name: str
    category: OperativeCategory
    experience: int = 0
    mission_count: int = 0
    exclusivity_held: bool = False
    held_by: str | None = None

    @property
    def level(self) -> int:
        return level_for_experience(self.experience)


@dataclass()
class Account:
    id: str
    points: int = 0
    missions_succeeded: int = 0
    missions_failed: int = 0
    timeline_shift: float = 0.0
    lore_unlocks: list[str] = field(default_factory=list)
    achievements: list[str] = field(default_factory=list)

    @property
    def rank(self) -> str:
        points = self.points
        wins = self.missions_succeeded
        shift = self.timeline_shift
        if points >= 10000 and wins >= 100 and shift >= 50:
            return "legend"
        if points >= 5000 and wins >= 50 and shift >= 25:
            return "commander"
        if points >= 2000 and wins >= 20 and shift >= 10:
            return "specialist"
        if points >= 500 and wins >= 5:
            return "operative"
        return "recruit"


@dataclass(frozen=True)
class PhaseOutcome:
    phase_id: int
    name: str
    success: bool
    roll: int
    threshold: int
    tension: TensionLevel
    narrative: str
    first_person_report: str
    image_prompt: str
    used_fallback: bool = False


@dataclass(frozen=True)
class RewardPayload:
    points: int
    experience: int
    timeline_shift: float
    lore_unlocks: tuple[str, ...] = ()
    achievements: tuple[str, ...] = ()


@dataclass(frozen=True)
class MissionResult:
    overall_success: bool
    successful_phases: int
    narrative: str
    first_person_report: str
    rewards: RewardPayload


@dataclass(frozen=True)
class Deployment:
    """One operative undertaking one mission.

    Outcomes are fixed at creation; only ``status``, ``finished_at`` and
    (when absent) ``result`` ever change, and only through the store's guarded
    transition.
    """

    id: str
    operative_id: str
    account_id: str
    mission_id: str
    approach: RiskTier
    created_at: datetime
    completes_at: datetime
    final_success_rate: float
    phase_outcomes: tuple[PhaseOutcome, ...]
    reveal_schedule: tuple[float, ...]
    status: DeploymentStatus = DeploymentStatus.ACTIVE
    result: MissionResult | None = None
    finished_at: datetime | None = None

    @property
    def duration(self) -> timedelta:
        return self.completes_at - self.created_at

    def is_expired(self, now: datetime) -> bool:
        return now >= self.completes_at

    def finish(
        self, status: DeploymentStatus, finished_at: datetime, result: MissionResult | None
    ) -> "Deployment":
        return replace(
            self,
            status=status,
            finished_at=finished_at,
            result=self.result if self.result is not None else result,
        )


def level_for_experience(experience: int) -> int:
    return math.isqrt(max(0, experience) // 100) + 1
