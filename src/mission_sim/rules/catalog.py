"""Data-driven mission catalog."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from mission_sim.domain.models import (
    Approach,
    ApproachRewards,
    CompatibilityPreferences,
    FinalNarrativeTemplates,
    MissionPhase,
    MissionTemplate,
    PhaseNarrativeTemplates,
    Prerequisite,
    SuccessRange,
)
from mission_sim.domain.types import MissionCategory, OperativeCategory, PhaseTag, RiskTier

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "missions.json"


class CatalogError(ValueError):
    """Error loading or validating the mission catalog."""


@dataclass(frozen=True)
class MissionCatalog:
    """Immutable, read-only view over mission templates."""

    missions: Mapping[str, MissionTemplate]

    @staticmethod
    def load(path: Path = DEFAULT_CATALOG_PATH) -> "MissionCatalog":
        """Load catalog from a JSON file."""
        data = _load_json(path)
        return MissionCatalog.from_data(data, source=str(path))

    @staticmethod
    def from_data(data: dict[str, Any], *, source: str = "<memory>") -> "MissionCatalog":
        if not isinstance(data, dict):
            raise CatalogError(f"{source}: top level must be object")
        if "missions" not in data:
            raise CatalogError(f"{source}: missing 'missions' key")
        if not isinstance(data["missions"], list):
            raise CatalogError(f"{source}: 'missions' must be array")
        templates: dict[str, MissionTemplate] = {}
        for item in data["missions"]:
            template = _parse_mission(item, source)
            if template.id in templates:
                raise CatalogError(f"{source}: duplicate mission id {template.id!r}")
            templates[template.id] = template
        _check_prerequisites(templates, source)
        return MissionCatalog(missions=MappingProxyType(templates))

    def get(self, mission_id: str) -> MissionTemplate | None:
        return self.missions.get(mission_id)

    def __iter__(self) -> Iterator[MissionTemplate]:
        return iter(sorted(self.missions.values(), key=_sort_key))

    def __len__(self) -> int:
        return len(self.missions)

    def __contains__(self, mission_id: object) -> bool:
        return mission_id in self.missions


class MissionRepository:
    """Explicit add/update path for catalog changes.

    Each mutation publishes a new immutable snapshot; readers holding an older
    snapshot keep seeing a consistent catalog.
    """

    def __init__(self, catalog: MissionCatalog) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> MissionCatalog:
        return self._catalog

    def add(self, template: MissionTemplate) -> MissionCatalog:
        if template.id in self._catalog:
            raise CatalogError(f"mission {template.id!r} already exists")
        return self._publish({**self._catalog.missions, template.id: template})

    def update(self, template: MissionTemplate) -> MissionCatalog:
        if template.id not in self._catalog:
            raise CatalogError(f"mission {template.id!r} does not exist")
        return self._publish({**self._catalog.missions, template.id: template})

    def _publish(self, missions: dict[str, MissionTemplate]) -> MissionCatalog:
        _check_prerequisites(missions, "<repository>")
        self._catalog = replace(self._catalog, missions=MappingProxyType(missions))
        return self._catalog


def _sort_key(template: MissionTemplate) -> tuple[int, str]:
    return (template.sequence if template.sequence is not None else 1_000_000, template.id)


def _load_json(path: Path) -> dict[str, Any]:
    """Load JSON file."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise CatalogError(f"Catalog file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Invalid JSON in {path}: {exc}") from exc


def _enum(enum_cls, value: Any, where: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise CatalogError(f"{where}: unknown {enum_cls.__name__} {value!r}") from exc


def _object(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise CatalogError(f"{where}: must be object, got {type(value).__name__}")
    return value


def _array(value: Any, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise CatalogError(f"{where}: must be array, got {type(value).__name__}")
    return value


def _float(value: Any, where: str) -> float:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CatalogError(f"{where}: must be a number, got {value!r}")
    return float(value)


def _int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CatalogError(f"{where}: must be an integer, got {value!r}")
    return value


def _text(value: Any, where: str) -> str | None:
    if value is not None and not isinstance(value, str):
        raise CatalogError(f"{where}: must be a string, got {type(value).__name__}")
    return value


def _range(item: Any, where: str) -> SuccessRange:
    if not isinstance(item, dict):
        raise CatalogError(f"{where}: must be object with min/max")
    low = _float(item.get("min", 0.0), f"{where}.min")
    high = _float(item.get("max", low), f"{where}.max")
    if low > high:
        raise CatalogError(f"{where}: min {low} exceeds max {high}")
    return SuccessRange(min=low, max=high)


def _parse_mission(item: Any, source: str) -> MissionTemplate:
    if not isinstance(item, dict):
        raise CatalogError(f"{source}: mission entry must be object")
    mission_id = item.get("id")
    if not isinstance(mission_id, str) or not mission_id:
        raise CatalogError(f"{source}: mission.id must be string")
    where = f"{source}: mission {mission_id}"

    phases_data = item.get("phases", [])
    if not isinstance(phases_data, list) or not phases_data:
        raise CatalogError(f"{where}: phases must be a non-empty array")
    phases = tuple(_parse_phase(p, f"{where} phase") for p in phases_data)
    if len({p.id for p in phases}) != len(phases):
        raise CatalogError(f"{where}: duplicate phase ids")

    approaches_data = item.get("approaches", [])
    if not isinstance(approaches_data, list) or not approaches_data:
        raise CatalogError(f"{where}: approaches must be a non-empty array")
    approaches: dict[RiskTier, Approach] = {}
    for entry in approaches_data:
        approach = _parse_approach(entry, f"{where} approach")
        approaches[approach.tier] = approach

    prerequisite = None
    prereq_data = item.get("prerequisite")
    if prereq_data is not None:
        if not isinstance(prereq_data, dict) or not isinstance(prereq_data.get("missionId"), str):
            raise CatalogError(f"{where}: prerequisite.missionId must be string")
        prerequisite = Prerequisite(
            mission_id=prereq_data["missionId"],
            require_success=bool(prereq_data.get("requireSuccess", False)),
        )

    compat = _object(item.get("compatibility", {}), f"{where} compatibility")
    preferred = _array(compat.get("preferred", []), f"{where} compatibility.preferred")
    preferences = CompatibilityPreferences(
        preferred=tuple(_enum(OperativeCategory, c, where) for c in preferred),
        bonus=_float(compat.get("bonus", 0.0), f"{where} compatibility.bonus"),
        penalty=_float(compat.get("penalty", 0.0), f"{where} compatibility.penalty"),
    )

    sequence = item.get("sequence")
    return MissionTemplate(
        id=mission_id,
        title=str(item.get("title", mission_id)),
        description=str(item.get("description", "")),
        location=str(item.get("location", "the operational zone")),
        primary_category=_enum(MissionCategory, item.get("primaryCategory"), where),
        phases=phases,
        approaches=approaches,
        compatibility=preferences,
        sequence=_int(sequence, f"{where} sequence") if sequence is not None else None,
        prerequisite=prerequisite,
        repeatable=bool(item.get("repeatable", True)),
    )


def _parse_phase(item: Any, where: str) -> MissionPhase:
    if not isinstance(item, dict):
        raise CatalogError(f"{where}: entry must be object")
    phase_id = item.get("id")
    if not isinstance(phase_id, int):
        raise CatalogError(f"{where}: id must be integer")
    weight = _float(item.get("weight", 1.0), f"{where} {phase_id} weight")
    if weight < 0:
        raise CatalogError(f"{where} {phase_id}: weight must be >= 0")
    templates = None
    templates_data = item.get("templates")
    if templates_data is not None:
        if not isinstance(templates_data, dict):
            raise CatalogError(f"{where} {phase_id}: templates must be object")
        templates = PhaseNarrativeTemplates(
            success=str(templates_data.get("success", "")),
            failure=str(templates_data.get("failure", "")),
        )
    return MissionPhase(
        id=phase_id,
        name=str(item.get("name", f"Phase {phase_id}")),
        weight=weight,
        tag=_enum(PhaseTag, item.get("tag"), f"{where} {phase_id}"),
        templates=templates,
    )


def _parse_approach(item: Any, where: str) -> Approach:
    if not isinstance(item, dict):
        raise CatalogError(f"{where}: entry must be object")
    tier = _enum(RiskTier, item.get("tier"), where)
    where = f"{where} {tier.value}"
    minutes = item.get("durationMinutes")
    if not isinstance(minutes, (int, float)) or minutes <= 0:
        raise CatalogError(f"{where}: durationMinutes must be a positive number")
    success_rate = _range(item.get("successRate"), f"{where} successRate")
    if not 0.0 < success_rate.min <= success_rate.max <= 1.0:
        raise CatalogError(f"{where}: successRate must lie in (0, 1]")
    shift_data = item.get("timelineShift")
    rewards = _object(item.get("rewards", {}), f"{where} rewards")
    narratives = _object(item.get("narratives", {}), f"{where} narratives")
    return Approach(
        tier=tier,
        name=str(item.get("name", tier.value)),
        description=str(item.get("description", "")),
        success_rate=success_rate,
        duration=timedelta(minutes=minutes),
        rewards=ApproachRewards(
            points=_int(rewards.get("points", 100), f"{where} rewards.points"),
            experience=_int(rewards.get("experience", 50), f"{where} rewards.experience"),
        ),
        timeline_shift=_range(shift_data, f"{where} timelineShift") if shift_data is not None else None,
        narratives=FinalNarrativeTemplates(
            perfect_success=_text(narratives.get("perfectSuccess"), f"{where} narratives.perfectSuccess"),
            success=_text(narratives.get("success"), f"{where} narratives.success"),
            failure=_text(narratives.get("failure"), f"{where} narratives.failure"),
            total_failure=_text(narratives.get("totalFailure"), f"{where} narratives.totalFailure"),
        ),
    )


def _check_prerequisites(missions: Mapping[str, MissionTemplate], source: str) -> None:
    for template in missions.values():
        prereq = template.prerequisite
        if prereq is None:
            continue
        if prereq.mission_id == template.id:
            raise CatalogError(f"{source}: mission {template.id} lists itself as prerequisite")
        if prereq.mission_id not in missions:
            raise CatalogError(
                f"{source}: mission {template.id} requires unknown mission {prereq.mission_id}"
            )
