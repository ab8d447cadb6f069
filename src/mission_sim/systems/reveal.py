"""Time-gated disclosure of precomputed phase outcomes.

Nothing here mutates a deployment. The view is a pure function of the stored
record and ``now``, so any number of readers may call it concurrently and the
revealed count never goes backwards as ``now`` advances.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

from mission_sim.domain.models import Deployment, MissionPhase, PhaseOutcome
from mission_sim.domain.types import DeploymentStatus, PhaseVisibility
from mission_sim.domain.views import DeploymentView, PhaseView


def reveal_schedule(phases: Sequence[MissionPhase]) -> tuple[float, ...]:
    """Cumulative reveal fractions from phase weights.

    Weights 20/25/25/20/10 give ``(0.2, 0.45, 0.7, 0.9, 1.0)``. When every
    weight is zero the phases are spaced evenly. The last entry is always 1.0.
    """
    count = len(phases)
    if count == 0:
        return ()
    total = sum(phase.weight for phase in phases)
    if total <= 0:
        fractions = [(i + 1) / count for i in range(count)]
    else:
        fractions = []
        running = 0.0
        for phase in phases:
            running += phase.weight
            fractions.append(running / total)
    fractions[-1] = 1.0
    return tuple(fractions)


def elapsed_fraction(deployment: Deployment, now: datetime) -> float:
    total = deployment.completes_at - deployment.created_at
    if total <= timedelta(0):
        return 1.0
    fraction = (now - deployment.created_at) / total
    return max(0.0, min(1.0, fraction))


def revealed_count(deployment: Deployment, now: datetime) -> int:
    if deployment.status is not DeploymentStatus.ACTIVE:
        return len(deployment.phase_outcomes)
    fraction = elapsed_fraction(deployment, now)
    return sum(1 for mark in deployment.reveal_schedule if fraction >= mark)


def reveal_time(deployment: Deployment, index: int) -> datetime:
    return deployment.created_at + deployment.duration * deployment.reveal_schedule[index]


def _revealed(outcome: PhaseOutcome, revealed_at: datetime | None) -> PhaseView:
    return PhaseView(
        phase_id=outcome.phase_id,
        name=outcome.name,
        visibility=PhaseVisibility.SUCCESS if outcome.success else PhaseVisibility.FAILURE,
        success=outcome.success,
        roll=outcome.roll,
        threshold=outcome.threshold,
        tension=outcome.tension,
        narrative=outcome.narrative,
        first_person_report=outcome.first_person_report,
        image_prompt=outcome.image_prompt,
        revealed_at=revealed_at,
    )


def _pending(outcome: PhaseOutcome) -> PhaseView:
    return PhaseView(phase_id=outcome.phase_id, name=outcome.name, visibility=PhaseVisibility.PENDING)


def revealed_view(deployment: Deployment, now: datetime) -> DeploymentView:
    shown = revealed_count(deployment, now)
    active = deployment.status is DeploymentStatus.ACTIVE

    phases = []
    for index, outcome in enumerate(deployment.phase_outcomes):
        if index < shown:
            phases.append(_revealed(outcome, reveal_time(deployment, index) if active else None))
        else:
            phases.append(_pending(outcome))

    if active:
        progress = int(elapsed_fraction(deployment, now) * 100)
        remaining = max(timedelta(0), deployment.completes_at - now)
        next_reveal = reveal_time(deployment, shown) if shown < len(phases) else None
    else:
        progress = 100
        remaining = timedelta(0)
        next_reveal = None

    return DeploymentView(
        deployment_id=deployment.id,
        mission_id=deployment.mission_id,
        operative_id=deployment.operative_id,
        approach=deployment.approach,
        status=deployment.status,
        created_at=deployment.created_at,
        completes_at=deployment.completes_at,
        progress=progress,
        current_phase=min(shown + 1, len(phases)) if active else len(phases),
        next_reveal_at=next_reveal,
        time_remaining=remaining,
        phases=tuple(phases),
        result=deployment.result if deployment.status is DeploymentStatus.COMPLETED else None,
    )
