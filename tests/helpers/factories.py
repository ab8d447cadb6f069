from __future__ import annotations

from datetime import timedelta
from types import MappingProxyType
from typing import Sequence

from mission_sim.domain.models import (
    Approach,
    ApproachRewards,
    CompatibilityPreferences,
    Deployment,
    MissionPhase,
    MissionTemplate,
    Operative,
    PhaseOutcome,
    Prerequisite,
    SuccessRange,
)
from mission_sim.domain.types import (
    DeploymentStatus,
    MissionCategory,
    OperativeCategory,
    PhaseTag,
    RiskTier,
    TensionLevel,
)
from mission_sim.narrative.provider import FallbackNarrativeProvider, TemplateNarrativeProvider
from mission_sim.rules.catalog import MissionCatalog
from mission_sim.service import DeploymentService
from mission_sim.store.memory import InMemoryStore
from mission_sim.systems.outcomes import OutcomeGenerator
from mission_sim.systems.reveal import reveal_schedule
from tests.helpers.fakes import EPOCH, ManualClock, scripted_dice

DEFAULT_TAGS = (
    PhaseTag.INFILTRATION,
    PhaseTag.ANALYSIS,
    PhaseTag.EXECUTION,
    PhaseTag.COMBAT,
    PhaseTag.EXTRACTION,
)
DEFAULT_WEIGHTS = (20, 25, 25, 20, 10)


def make_phases(
    tags: Sequence[PhaseTag] = DEFAULT_TAGS, weights: Sequence[float] = DEFAULT_WEIGHTS
) -> tuple[MissionPhase, ...]:
    return tuple(
        MissionPhase(id=i + 1, name=f"Phase {i + 1}", weight=w, tag=t)
        for i, (t, w) in enumerate(zip(tags, weights))
    )


def make_approach(
    tier: RiskTier = RiskTier.MEDIUM,
    *,
    rate: tuple[float, float] = (0.65, 0.75),
    minutes: int = 60,
) -> Approach:
    return Approach(
        tier=tier,
        name=f"{tier.value} approach",
        description="",
        success_rate=SuccessRange(*rate),
        duration=timedelta(minutes=minutes),
        rewards=ApproachRewards(),
        timeline_shift=SuccessRange(4, 6),
    )


def make_mission(
    mission_id: str = "m-1",
    *,
    phases: tuple[MissionPhase, ...] | None = None,
    approaches: Sequence[Approach] | None = None,
    category: MissionCategory = MissionCategory.INVESTIGATE,
    prerequisite: str | None = None,
    require_success: bool = False,
    repeatable: bool = True,
    sequence: int | None = None,
) -> MissionTemplate:
    approaches = approaches or [make_approach(tier) for tier in RiskTier]
    return MissionTemplate(
        id=mission_id,
        title=f"Mission {mission_id}",
        description="",
        location="Sector 7",
        primary_category=category,
        phases=phases or make_phases(),
        approaches={a.tier: a for a in approaches},
        compatibility=CompatibilityPreferences(),
        sequence=sequence,
        prerequisite=Prerequisite(prerequisite, require_success) if prerequisite else None,
        repeatable=repeatable,
    )


def make_operative(
    operative_id: str = "op-1",
    *,
    account_id: str = "acct-1",
    category: OperativeCategory = OperativeCategory.ADAPTIVE,
    experience: int = 0,
) -> Operative:
    return Operative(
        id=operative_id,
        account_id=account_id,
        name=operative_id.title(),
        category=category,
        experience=experience,
    )


def make_catalog(*missions: MissionTemplate) -> MissionCatalog:
    if not missions:
        return MissionCatalog.load()
    return MissionCatalog(missions=MappingProxyType({m.id: m for m in missions}))


def make_service(
    *missions: MissionTemplate,
    operatives: Sequence[Operative] = (),
    rolls: Sequence[int] = (10, 30, 50, 70, 90),
    provider=None,
    store: InMemoryStore | None = None,
    clock: ManualClock | None = None,
) -> tuple[DeploymentService, InMemoryStore, ManualClock]:
    store = store if store is not None else InMemoryStore()
    clock = clock or ManualClock()
    for operative in operatives or [make_operative()]:
        store.add_operative(operative)
    if provider is None:
        provider = TemplateNarrativeProvider()
    service = DeploymentService(
        make_catalog(*missions),
        store,
        store,
        OutcomeGenerator(provider),
        clock=clock,
        dice_factory=scripted_dice(rolls),
    )
    return service, store, clock


def make_deployment(
    *,
    phase_count: int = 5,
    weights: Sequence[float] | None = None,
    minutes: int = 60,
    status: DeploymentStatus = DeploymentStatus.ACTIVE,
    successes: Sequence[bool] | None = None,
) -> Deployment:
    weights = list(weights) if weights is not None else (
        list(DEFAULT_WEIGHTS) if phase_count == 5 else [1] * phase_count
    )
    phases = tuple(
        MissionPhase(id=i + 1, name=f"Phase {i + 1}", weight=weights[i], tag=PhaseTag.ANALYSIS)
        for i in range(phase_count)
    )
    successes = list(successes) if successes is not None else [True] * phase_count
    outcomes = tuple(
        PhaseOutcome(
            phase_id=p.id,
            name=p.name,
            success=successes[i],
            roll=50,
            threshold=60,
            tension=TensionLevel.LOW,
            narrative=f"narrative {p.id}",
            first_person_report=f"report {p.id}",
            image_prompt=f"image {p.id}",
        )
        for i, p in enumerate(phases)
    )
    return Deployment(
        id="dep-test",
        operative_id="op-1",
        account_id="acct-1",
        mission_id="m-1",
        approach=RiskTier.MEDIUM,
        created_at=EPOCH,
        completes_at=EPOCH + timedelta(minutes=minutes),
        final_success_rate=0.6,
        phase_outcomes=outcomes,
        reveal_schedule=reveal_schedule(phases),
        status=status,
    )


def fallback_provider(primary, *, timeout: float = 0.2) -> FallbackNarrativeProvider:
    return FallbackNarrativeProvider(primary, timeout=timeout, max_workers=2)
