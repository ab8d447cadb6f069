"""Operative-versus-mission fit scoring.

The score is the matrix base for (operative category, mission category) plus
an experience bonus with diminishing returns, a level bonus and an optional
preference adjustment from the template. It never drops below the matrix base
and never exceeds :data:`MAX_SCORE`.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from mission_sim.domain.models import CompatibilityPreferences
from mission_sim.domain.types import MissionCategory, OperativeCategory
from mission_sim.domain.views import CompatibilityBreakdown

CategoryKey = Union[OperativeCategory, str]
MissionKey = Union[MissionCategory, str]

MAX_SCORE = 0.95
NEUTRAL_BASE = 0.7
MAX_EXPERIENCE_BONUS = 0.15
MAX_LEVEL_BONUS = 0.10

COMPATIBILITY_MATRIX: dict[str, dict[str, float]] = {
    OperativeCategory.ANALYTICAL.value: {
        MissionCategory.SABOTAGE.value: 0.60,
        MissionCategory.EXPOSE.value: 0.90,
        MissionCategory.ORGANIZE.value: 0.70,
        MissionCategory.INVESTIGATE.value: 0.95,
        MissionCategory.INFILTRATE.value: 0.80,
    },
    OperativeCategory.AGGRESSIVE.value: {
        MissionCategory.SABOTAGE.value: 0.95,
        MissionCategory.EXPOSE.value: 0.70,
        MissionCategory.ORGANIZE.value: 0.60,
        MissionCategory.INVESTIGATE.value: 0.60,
        MissionCategory.INFILTRATE.value: 0.80,
    },
    OperativeCategory.DIPLOMATIC.value: {
        MissionCategory.SABOTAGE.value: 0.50,
        MissionCategory.EXPOSE.value: 0.80,
        MissionCategory.ORGANIZE.value: 0.95,
        MissionCategory.INVESTIGATE.value: 0.70,
        MissionCategory.INFILTRATE.value: 0.90,
    },
    OperativeCategory.ADAPTIVE.value: {
        MissionCategory.SABOTAGE.value: 0.80,
        MissionCategory.EXPOSE.value: 0.80,
        MissionCategory.ORGANIZE.value: 0.80,
        MissionCategory.INVESTIGATE.value: 0.80,
        MissionCategory.INFILTRATE.value: 0.85,
    },
}


def _key(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else value


def base_fraction(category: CategoryKey, mission_category: MissionKey) -> float:
    """Matrix lookup; unknown categories fall back to :data:`NEUTRAL_BASE`."""
    row = COMPATIBILITY_MATRIX.get(_key(category))
    if row is None:
        return NEUTRAL_BASE
    return row.get(_key(mission_category), NEUTRAL_BASE)


def experience_bonus(experience: int) -> float:
    if experience <= 0:
        return 0.0
    return min(MAX_EXPERIENCE_BONUS, experience / 1000 * 0.1)


def level_bonus(level: int) -> float:
    if level <= 1:
        return 0.0
    return min(MAX_LEVEL_BONUS, (level - 1) * 0.02)


def preference_adjustment(category: CategoryKey, preferences: CompatibilityPreferences | None) -> float:
    if preferences is None or not preferences.preferred:
        return 0.0
    if _key(category) in {_key(c) for c in preferences.preferred}:
        return abs(preferences.bonus)
    return -abs(preferences.penalty)


def breakdown(
    category: CategoryKey,
    experience: int,
    level: int,
    mission_category: MissionKey,
    preferences: CompatibilityPreferences | None = None,
) -> CompatibilityBreakdown:
    base = base_fraction(category, mission_category)
    exp_bonus = experience_bonus(experience)
    lvl_bonus = level_bonus(level)
    adjustment = preference_adjustment(category, preferences)
    overall = min(MAX_SCORE, max(base, base + exp_bonus + lvl_bonus + adjustment))
    return CompatibilityBreakdown(
        category=category,
        mission_category=mission_category,
        base=base,
        experience_bonus=exp_bonus,
        level_bonus=lvl_bonus,
        preference_adjustment=adjustment,
        overall=overall,
    )


def score(
    category: CategoryKey,
    experience: int,
    level: int,
    mission_category: MissionKey,
    preferences: CompatibilityPreferences | None = None,
) -> float:
    return breakdown(category, experience, level, mission_category, preferences).overall
