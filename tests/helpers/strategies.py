from __future__ import annotations

from hypothesis import strategies as st

from mission_sim.domain.models import CompatibilityPreferences, MissionPhase
from mission_sim.domain.types import MissionCategory, OperativeCategory, PhaseTag, RiskTier


def categories() -> st.SearchStrategy[OperativeCategory]:
    return st.sampled_from(list(OperativeCategory))


def mission_categories() -> st.SearchStrategy[MissionCategory]:
    return st.sampled_from(list(MissionCategory))


def tiers() -> st.SearchStrategy[RiskTier]:
    return st.sampled_from(list(RiskTier))


def rolls(count: int) -> st.SearchStrategy[list[int]]:
    return st.lists(st.integers(min_value=1, max_value=100), min_size=count, max_size=count)


def preferences() -> st.SearchStrategy[CompatibilityPreferences]:
    return st.builds(
        CompatibilityPreferences,
        preferred=st.lists(categories(), max_size=2, unique=True).map(tuple),
        bonus=st.floats(min_value=0.0, max_value=0.3),
        penalty=st.floats(min_value=-0.3, max_value=0.0),
    )


@st.composite
def phase_lists(draw, min_size: int = 1, max_size: int = 8) -> tuple[MissionPhase, ...]:
    tags = draw(st.lists(st.sampled_from(list(PhaseTag)), min_size=min_size, max_size=max_size))
    weights = draw(
        st.lists(
            st.integers(min_value=0, max_value=50), min_size=len(tags), max_size=len(tags)
        )
    )
    return tuple(
        MissionPhase(id=i + 1, name=f"Phase {i + 1}", weight=float(w), tag=t)
        for i, (t, w) in enumerate(zip(tags, weights))
    )
