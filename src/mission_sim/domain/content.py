"""Narrative content exchanged with content providers.

Providers return one of the content kinds below. Raw provider payloads are
parsed with :func:`parse_content` at the provider boundary, so nothing
loosely typed is ever stored on a deployment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypeAlias, Union

from mission_sim.domain.errors import GenerationFailure
from mission_sim.domain.models import Approach, MissionPhase, MissionTemplate, Operative
from mission_sim.domain.types import TensionLevel

EMOTIONAL_TONES = ("confident", "tense", "desperate", "triumphant", "analytical")


@dataclass(frozen=True)
class PhaseContent:
    narrative: str
    first_person_report: str
    key_events: tuple[str, ...] = ()
    emotional_tone: str = "analytical"
    from_fallback: bool = False
    kind: Literal["phase"] = "phase"


@dataclass(frozen=True)
class MissionContent:
    narrative: str
    first_person_report: str
    image_prompt: str | None = None
    from_fallback: bool = False
    kind: Literal["mission"] = "mission"


NarrativeContent: TypeAlias = Union[PhaseContent, MissionContent]


@dataclass(frozen=True)
class PhaseRequest:
    mission: MissionTemplate
    approach: Approach
    operative: Operative
    phase: MissionPhase
    phase_index: int
    success: bool
    roll: int
    tension: TensionLevel
    previous_narrative: str | None


@dataclass(frozen=True)
class MissionRequest:
    mission: MissionTemplate
    approach: Approach
    operative: Operative
    overall_success: bool
    successful_phases: int
    phase_summaries: tuple[str, ...]


def _require_text(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise GenerationFailure(f"content field '{key}' must be a non-empty string")
    return value.strip()


def parse_content(kind: str, payload: Any) -> NarrativeContent:
    """Validate a provider payload into a typed content record."""
    if not isinstance(payload, dict):
        raise GenerationFailure(f"{kind} content must be an object, got {type(payload).__name__}")

    if kind == "phase":
        events = payload.get("keyEvents", payload.get("key_events", []))
        if not isinstance(events, list) or not all(isinstance(e, str) for e in events):
            raise GenerationFailure("content field 'keyEvents' must be a list of strings")
        tone = payload.get("emotionalTone", payload.get("emotional_tone", "analytical"))
        if tone not in EMOTIONAL_TONES:
            raise GenerationFailure(f"unknown emotional tone: {tone!r}")
        return PhaseContent(
            narrative=_require_text(payload, "narrative"),
            first_person_report=_require_text(payload, "firstPersonReport"),
            key_events=tuple(events),
            emotional_tone=tone,
        )

    if kind == "mission":
        image_prompt = payload.get("imagePrompt")
        if image_prompt is not None and not isinstance(image_prompt, str):
            raise GenerationFailure("content field 'imagePrompt' must be a string")
        return MissionContent(
            narrative=_require_text(payload, "narrative"),
            first_person_report=_require_text(payload, "firstPersonReport"),
            image_prompt=image_prompt,
        )

    raise GenerationFailure(f"unknown content kind: {kind!r}")
