"""One-shot simulation of every phase of a deployment.

The generator runs once, at deploy time. Each phase threshold starts from the
final success rate and is shifted by recent failures, phase position,
category/tag affinity and approach/tag friction, then clamped. Rolls come from
an injected dice object so the threshold logic is testable with fixed rolls.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Protocol, Sequence

from mission_sim.domain.content import MissionRequest, PhaseRequest
from mission_sim.domain.models import (
    Approach,
    MissionPhase,
    MissionResult,
    MissionTemplate,
    Operative,
    PhaseOutcome,
)
from mission_sim.domain.types import OperativeCategory, PhaseTag, RiskTier, TensionLevel
from mission_sim.narrative import templates
from mission_sim.narrative.provider import NarrativeProvider
from mission_sim.systems.rewards import calculate_rewards

logger = logging.getLogger(__name__)

MAX_SUCCESS_RATE = 0.95
MIN_THRESHOLD = 0.10
MAX_THRESHOLD = 0.90
CASCADE_PENALTY = 0.15
CASCADE_WINDOW = 2
DIFFICULTY_CURVE = (0.05, 0.0, -0.05, -0.10, -0.15)
AFFINITY_BONUS = 0.10
STEALTH_PENALTY = 0.10

CATEGORY_AFFINITY: dict[OperativeCategory, frozenset[PhaseTag]] = {
    OperativeCategory.ANALYTICAL: frozenset({PhaseTag.ANALYSIS}),
    OperativeCategory.AGGRESSIVE: frozenset({PhaseTag.INFILTRATION, PhaseTag.COMBAT}),
    OperativeCategory.DIPLOMATIC: frozenset({PhaseTag.SOCIAL}),
    OperativeCategory.ADAPTIVE: frozenset(),
}


class Dice(Protocol):
    def roll(self) -> int: ...


def to_percent(fraction: float) -> int:
    """Round half up to a whole percent."""
    return math.floor(fraction * 100 + 0.5)


def final_success_rate(base_success_rate: float, compatibility: float) -> float:
    return min(MAX_SUCCESS_RATE, base_success_rate * compatibility)


def difficulty_offset(index: int, count: int) -> float:
    """Position offset along the difficulty curve.

    Five phases map onto the curve exactly; other counts interpolate it
    linearly from first to last phase.
    """
    last = len(DIFFICULTY_CURVE) - 1
    if count == len(DIFFICULTY_CURVE):
        return DIFFICULTY_CURVE[index]
    if count <= 1:
        return DIFFICULTY_CURVE[0]
    position = index / (count - 1) * last
    lower = math.floor(position)
    if lower >= last:
        return DIFFICULTY_CURVE[last]
    frac = position - lower
    return DIFFICULTY_CURVE[lower] + (DIFFICULTY_CURVE[lower + 1] - DIFFICULTY_CURVE[lower]) * frac


def phase_threshold(
    rate: float,
    index: int,
    count: int,
    previous: Sequence[bool],
    category: OperativeCategory,
    tag: PhaseTag,
    tier: RiskTier,
) -> float:
    recent_failures = sum(1 for ok in previous[-CASCADE_WINDOW:] if not ok)
    threshold = rate - CASCADE_PENALTY * recent_failures
    threshold += difficulty_offset(index, count)
    if tag in CATEGORY_AFFINITY.get(category, frozenset()):
        threshold += AFFINITY_BONUS
    if tier is RiskTier.HIGH and tag is PhaseTag.STEALTH:
        threshold -= STEALTH_PENALTY
    return max(MIN_THRESHOLD, min(MAX_THRESHOLD, threshold))


def tension_level(index: int, count: int, failures: int) -> TensionLevel:
    """Presentation-only escalation; ``failures`` includes the current phase."""
    progress = index / count if count else 1.0
    if failures >= 3 or (index >= count - 2 and failures >= 2):
        return TensionLevel.CRITICAL
    if progress > 0.6 and failures >= 1:
        return TensionLevel.HIGH
    if progress > 0.3 or failures >= 1:
        return TensionLevel.MEDIUM
    return TensionLevel.LOW


def required_successes(phase_count: int) -> int:
    """``ceil(0.6 * phase_count)`` in integer arithmetic."""
    return (3 * phase_count + 4) // 5


def overall_success(successful_phases: int, phase_count: int) -> bool:
    return successful_phases >= required_successes(phase_count)


def resolve_successes(
    rate: float,
    rolls: Sequence[int],
    phases: Sequence[MissionPhase],
    category: OperativeCategory,
    tier: RiskTier,
) -> list[tuple[bool, int]]:
    """Success flag and percent threshold per phase for fixed rolls."""
    results: list[tuple[bool, int]] = []
    previous: list[bool] = []
    for index, (phase, roll) in enumerate(zip(phases, rolls)):
        threshold = to_percent(
            phase_threshold(rate, index, len(phases), previous, category, phase.tag, tier)
        )
        success = roll <= threshold
        previous.append(success)
        results.append((success, threshold))
    return results


@dataclass(frozen=True)
class GeneratedOutcome:
    final_success_rate: float
    phase_outcomes: tuple[PhaseOutcome, ...]
    result: MissionResult


class OutcomeGenerator:
    def __init__(self, provider: NarrativeProvider) -> None:
        self.provider = provider

    def generate(
        self,
        mission: MissionTemplate,
        approach: Approach,
        operative: Operative,
        compatibility: float,
        dice: Dice,
    ) -> GeneratedOutcome:
        rate = final_success_rate(approach.base_success_rate, compatibility)
        count = len(mission.phases)
        outcomes: list[PhaseOutcome] = []
        previous: list[bool] = []
        previous_narrative: str | None = None
        failures = 0

        for index, phase in enumerate(mission.phases):
            roll = dice.roll()
            if not 1 <= roll <= 100:
                raise ValueError(f"dice roll out of range: {roll}")
            threshold = to_percent(
                phase_threshold(
                    rate, index, count, previous, operative.category, phase.tag, approach.tier
                )
            )
            success = roll <= threshold
            if not success:
                failures += 1
            tension = tension_level(index, count, failures)
            logger.debug(
                "Phase %d/%d %s: roll %d vs %d%% -> %s (%s)",
                index + 1,
                count,
                phase.name,
                roll,
                threshold,
                "success" if success else "failure",
                tension.value,
            )

            content = self.provider.phase(
                PhaseRequest(
                    mission=mission,
                    approach=approach,
                    operative=operative,
                    phase=phase,
                    phase_index=index,
                    success=success,
                    roll=roll,
                    tension=tension,
                    previous_narrative=previous_narrative,
                )
            )
            outcomes.append(
                PhaseOutcome(
                    phase_id=phase.id,
                    name=phase.name,
                    success=success,
                    roll=roll,
                    threshold=threshold,
                    tension=tension,
                    narrative=content.narrative,
                    first_person_report=content.first_person_report,
                    image_prompt=templates.image_prompt(mission, phase, success, tension),
                    used_fallback=content.from_fallback,
                )
            )
            previous.append(success)
            previous_narrative = content.narrative

        wins = sum(1 for outcome in outcomes if outcome.success)
        won = overall_success(wins, count)
        final = self.provider.mission(
            MissionRequest(
                mission=mission,
                approach=approach,
                operative=operative,
                overall_success=won,
                successful_phases=wins,
                phase_summaries=tuple(
                    f"{o.name}: {'success' if o.success else 'failure'}" for o in outcomes
                ),
            )
        )
        rewards = calculate_rewards(
            overall_success=won,
            successful_phases=wins,
            phase_count=count,
            tier=approach.tier,
            base=approach.rewards,
            shift_range=approach.timeline_shift,
        )
        return GeneratedOutcome(
            final_success_rate=rate,
            phase_outcomes=tuple(outcomes),
            result=MissionResult(
                overall_success=won,
                successful_phases=wins,
                narrative=final.narrative,
                first_person_report=final.first_person_report,
                rewards=rewards,
            ),
        )
