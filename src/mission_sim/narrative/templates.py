"""Deterministic narration used when no generated text is available."""

from __future__ import annotations

from mission_sim.domain.content import MissionRequest, PhaseRequest
from mission_sim.domain.models import MissionPhase, MissionTemplate
from mission_sim.domain.types import PhaseTag, TensionLevel

TAG_TEMPLATES: dict[PhaseTag, tuple[str, str]] = {
    PhaseTag.INFILTRATION: (
        "The operative slipped past the outer defenses without raising an alarm.",
        "Perimeter security caught the first approach and forced a costly detour.",
    ),
    PhaseTag.ANALYSIS: (
        "The captured data resolved into a clear picture of the target's operation.",
        "The data refused to line up. Key patterns stayed buried in the noise.",
    ),
    PhaseTag.SOCIAL: (
        "The contacts listened, and trust was established on the first meeting.",
        "The contacts grew suspicious and went quiet before anything was agreed.",
    ),
    PhaseTag.STEALTH: (
        "The operative moved unseen through the monitored zone.",
        "A sensor sweep caught a trace of movement and the zone went into lockdown.",
    ),
    PhaseTag.COMBAT: (
        "Direct resistance was met and overwhelmed before reinforcements arrived.",
        "The confrontation went badly and the operative had to break contact.",
    ),
    PhaseTag.EXECUTION: (
        "The plan went off exactly as briefed. The objective is in hand.",
        "Countermeasures triggered at the critical moment and the objective slipped away.",
    ),
    PhaseTag.EXTRACTION: (
        "Clean extraction. Nothing was left behind to trace.",
        "Extraction was compromised and traces of the operation were left behind.",
    ),
}

TENSION_MOODS: dict[TensionLevel, str] = {
    TensionLevel.LOW: "calm, methodical atmosphere, cool blue tones",
    TensionLevel.MEDIUM: "focused determination, neon accents, rising tension",
    TensionLevel.HIGH: "urgent, high stakes, dramatic red lighting",
    TensionLevel.CRITICAL: "desperate, chaotic, alarms flashing, everything on the line",
}

TENSION_TONES: dict[TensionLevel, str] = {
    TensionLevel.LOW: "Steady so far.",
    TensionLevel.MEDIUM: "Pressure is building.",
    TensionLevel.HIGH: "Margins are thin now.",
    TensionLevel.CRITICAL: "Everything is on the line.",
}


def phase_narrative(phase: MissionPhase, success: bool) -> str:
    if phase.templates is not None:
        text = phase.templates.success if success else phase.templates.failure
        if text:
            return text
    on_success, on_failure = TAG_TEMPLATES[phase.tag]
    return on_success if success else on_failure


def phase_report(request: PhaseRequest) -> str:
    verdict = "Objective achieved" if request.success else "Objective missed"
    return (
        f"{request.operative.name}, phase {request.phase_index + 1} ({request.phase.name}): "
        f"{verdict}. {TENSION_TONES[request.tension]}"
    )


def image_prompt(mission: MissionTemplate, phase: MissionPhase, success: bool, tension: TensionLevel) -> str:
    outcome = "triumphant moment" if success else "setback, things going wrong"
    return (
        f"Cyberpunk scene, {mission.location}, {phase.name.lower()} during '{mission.title}', "
        f"{outcome}, {TENSION_MOODS[tension]}"
    )


def final_narrative(request: MissionRequest) -> str:
    approach = request.approach
    total = len(request.mission.phases)
    wins = request.successful_phases
    narratives = approach.narratives
    if request.overall_success and wins == total and narratives.perfect_success:
        return narratives.perfect_success
    if request.overall_success and narratives.success:
        return narratives.success
    if not request.overall_success and wins == 0 and narratives.total_failure:
        return narratives.total_failure
    if not request.overall_success and narratives.failure:
        return narratives.failure

    if request.overall_success:
        return (
            f"Mission '{request.mission.title}' succeeded at {request.mission.location}. "
            f"The {approach.name} approach carried {wins} of {total} phases."
        )
    return (
        f"Mission '{request.mission.title}' failed at {request.mission.location}. "
        f"The {approach.name} approach carried only {wins} of {total} phases."
    )


def final_report(request: MissionRequest) -> str:
    total = len(request.mission.phases)
    if request.overall_success:
        return (
            f"{request.operative.name} reporting. {request.successful_phases} of {total} phases "
            f"went our way. The timeline moved."
        )
    return (
        f"{request.operative.name} reporting. Only {request.successful_phases} of {total} phases "
        f"held. We regroup and try again."
    )
