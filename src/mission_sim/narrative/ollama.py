"""Narrative provider backed by an Ollama-compatible ``/api/generate`` endpoint."""

from __future__ import annotations

import json
import logging

import httpx

from mission_sim.domain.content import (
    MissionContent,
    MissionRequest,
    PhaseContent,
    PhaseRequest,
    parse_content,
)
from mission_sim.domain.errors import GenerationFailure

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"

PHASE_PROMPT = """You narrate one phase of a covert mission in a cyberpunk resistance story.
Mission: {title} at {location}. Approach: {approach} ({tier} risk).
Operative: {operative} ({category}, level {level}).
Phase {number}: {phase} [{tag}]. Roll {roll}. Outcome: {outcome}. Tension: {tension}.
Previous phase: {previous}
Reply with JSON only: {{"narrative": str, "firstPersonReport": str, "keyEvents": [str], "emotionalTone": one of confident|tense|desperate|triumphant|analytical}}"""

MISSION_PROMPT = """You write the debrief for a covert mission in a cyberpunk resistance story.
Mission: {title} at {location}. Approach: {approach} ({tier} risk).
Operative: {operative}. Phases won: {wins} of {total}. Overall: {outcome}.
Phase log:
{log}
Reply with JSON only: {{"narrative": str, "firstPersonReport": str, "imagePrompt": str}}"""


class OllamaNarrativeProvider:
    """Generate narration through an LLM over HTTP.

    Every failure (transport, status, malformed JSON, schema mismatch) is
    raised as :class:`GenerationFailure`; retries and timeouts belong to the
    wrapping fallback provider.
    """

    def __init__(
        self,
        model: str,
        *,
        base_url: str = DEFAULT_OLLAMA_URL,
        timeout: float = 8.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def phase(self, request: PhaseRequest) -> PhaseContent:
        prompt = PHASE_PROMPT.format(
            title=request.mission.title,
            location=request.mission.location,
            approach=request.approach.name,
            tier=request.approach.tier.value,
            operative=request.operative.name,
            category=request.operative.category.value,
            level=request.operative.level,
            number=request.phase_index + 1,
            phase=request.phase.name,
            tag=request.phase.tag.value,
            roll=request.roll,
            outcome="success" if request.success else "failure",
            tension=request.tension.value,
            previous=request.previous_narrative or "none",
        )
        return parse_content("phase", self._generate(prompt))

    def mission(self, request: MissionRequest) -> MissionContent:
        prompt = MISSION_PROMPT.format(
            title=request.mission.title,
            location=request.mission.location,
            approach=request.approach.name,
            tier=request.approach.tier.value,
            operative=request.operative.name,
            wins=request.successful_phases,
            total=len(request.mission.phases),
            outcome="success" if request.overall_success else "failure",
            log="\n".join(request.phase_summaries) or "none",
        )
        return parse_content("mission", self._generate(prompt))

    def _generate(self, prompt: str) -> object:
        payload = {"model": self.model, "prompt": prompt, "stream": False, "format": "json"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(f"{self.base_url}/api/generate", json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("Timeout calling %s: %s", self.model, exc)
            raise GenerationFailure(f"timeout calling {self.model}") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("HTTP error calling %s: %s", self.model, exc)
            raise GenerationFailure(f"HTTP {exc.response.status_code} from {self.model}") from exc
        except httpx.RequestError as exc:
            logger.warning("Request error calling %s: %s", self.model, exc)
            raise GenerationFailure(f"request to {self.model} failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationFailure(f"{self.model} returned a non-JSON body") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise GenerationFailure(f"{self.model} response has no 'response' text")
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise GenerationFailure(f"{self.model} produced invalid JSON content") from exc
