"""Starting operative roster loaded from JSON."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from mission_sim.domain.models import Operative
from mission_sim.domain.types import OperativeCategory
from mission_sim.rules.catalog import CatalogError, _enum, _load_json

DEFAULT_ROSTER_PATH = Path(__file__).resolve().parents[1] / "data" / "roster.json"


def load_roster(path: Path = DEFAULT_ROSTER_PATH) -> list[Operative]:
    return roster_from_data(_load_json(path), source=str(path))


def roster_from_data(data: dict[str, Any], *, source: str = "<memory>") -> list[Operative]:
    entries = data.get("operatives")
    if not isinstance(entries, list):
        raise CatalogError(f"{source}: 'operatives' must be array")
    roster: list[Operative] = []
    seen: set[str] = set()
    for item in entries:
        if not isinstance(item, dict):
            raise CatalogError(f"{source}: operative entry must be object")
        op_id = item.get("id")
        account_id = item.get("accountId")
        if not isinstance(op_id, str) or not isinstance(account_id, str):
            raise CatalogError(f"{source}: operative id and accountId must be strings")
        if op_id in seen:
            raise CatalogError(f"{source}: duplicate operative id {op_id!r}")
        seen.add(op_id)
        experience = item.get("experience", 0)
        if not isinstance(experience, int) or experience < 0:
            raise CatalogError(f"{source}: operative {op_id} experience must be a non-negative integer")
        roster.append(
            Operative(
                id=op_id,
                account_id=account_id,
                name=str(item.get("name", op_id)),
                category=_enum(OperativeCategory, item.get("category"), f"{source}: operative {op_id}"),
                experience=experience,
            )
        )
    return roster
