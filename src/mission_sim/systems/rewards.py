"""Table-driven reward calculation.

``value = base * success_multiplier * phase_multiplier * risk_multiplier``
where the phase multiplier runs from 0.5 (no phases won) to 1.5 (all won).
No randomness is involved.
"""

from __future__ import annotations

import math

from mission_sim.domain.models import ApproachRewards, RewardPayload, SuccessRange
from mission_sim.domain.types import RiskTier

SUCCESS_MULTIPLIER = {True: 1.0, False: 0.4}
RISK_MULTIPLIER = {
    RiskTier.LOW: 1.0,
    RiskTier.MEDIUM: 1.2,
    RiskTier.HIGH: 1.5,
}
FAILURE_SHIFT_FRACTION = 0.3
LORE_THRESHOLD = 0.8

LORE_FRAGMENT = "lore_fragment"
PERFECT_LORE = "perfect_execution_lore"
ACHIEVEMENT_SUCCESS = "mission_success"
ACHIEVEMENT_FLAWLESS = "flawless_victory"
ACHIEVEMENT_HIGH_RISK = "high_risk_success"

# Float products like 100 * 0.4 * 1.1 land a hair under the integer.
_EPSILON = 1e-9


def phase_multiplier(successful_phases: int, phase_count: int) -> float:
    if phase_count <= 0:
        return 0.5
    return 0.5 + successful_phases / phase_count


def timeline_shift(overall_success: bool, shift_range: SuccessRange | None) -> float:
    if shift_range is None:
        return 0.0
    base = shift_range.midpoint
    if overall_success:
        return base
    return float(math.floor(base * FAILURE_SHIFT_FRACTION + _EPSILON))


def calculate_rewards(
    *,
    overall_success: bool,
    successful_phases: int,
    phase_count: int,
    tier: RiskTier,
    base: ApproachRewards | None = None,
    shift_range: SuccessRange | None = None,
) -> RewardPayload:
    if base is None:
        base = ApproachRewards()
    multiplier = (
        SUCCESS_MULTIPLIER[overall_success]
        * phase_multiplier(successful_phases, phase_count)
        * RISK_MULTIPLIER[tier]
    )
    points = math.floor(base.points * multiplier + _EPSILON)
    experience = math.floor(base.experience * multiplier + _EPSILON)

    lore: list[str] = []
    perfect = phase_count > 0 and successful_phases == phase_count
    if overall_success and successful_phases >= phase_count * LORE_THRESHOLD:
        lore.append(LORE_FRAGMENT)
    if perfect:
        lore.append(PERFECT_LORE)

    achievements: list[str] = []
    if overall_success:
        achievements.append(ACHIEVEMENT_SUCCESS)
        if perfect:
            achievements.append(ACHIEVEMENT_FLAWLESS)
        if tier is RiskTier.HIGH:
            achievements.append(ACHIEVEMENT_HIGH_RISK)

    return RewardPayload(
        points=points,
        experience=experience,
        timeline_shift=timeline_shift(overall_success, shift_range),
        lore_unlocks=tuple(lore),
        achievements=tuple(achievements),
    )
