"""Narrative content providers.

A provider turns a phase or mission request into typed content. Real
providers may raise :class:`GenerationFailure` or hang; wrap them in
:class:`FallbackNarrativeProvider` so callers always get content back within
a bounded time.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import replace
from typing import Callable, Protocol, TypeVar

from mission_sim.domain.content import MissionContent, MissionRequest, PhaseContent, PhaseRequest
from mission_sim.domain.types import TensionLevel
from mission_sim.narrative import templates

logger = logging.getLogger(__name__)

T = TypeVar("T")

TONE_BY_TENSION = {
    TensionLevel.LOW: "confident",
    TensionLevel.MEDIUM: "analytical",
    TensionLevel.HIGH: "tense",
    TensionLevel.CRITICAL: "desperate",
}


class NarrativeProvider(Protocol):
    def phase(self, request: PhaseRequest) -> PhaseContent: ...

    def mission(self, request: MissionRequest) -> MissionContent: ...


class TemplateNarrativeProvider:
    """Deterministic text keyed by (phase, success). Never fails."""

    def phase(self, request: PhaseRequest) -> PhaseContent:
        last = request.phase_index == len(request.mission.phases) - 1
        tone = "triumphant" if request.success and last else TONE_BY_TENSION[request.tension]
        return PhaseContent(
            narrative=templates.phase_narrative(request.phase, request.success),
            first_person_report=templates.phase_report(request),
            key_events=(request.phase.name,),
            emotional_tone=tone,
        )

    def mission(self, request: MissionRequest) -> MissionContent:
        return MissionContent(
            narrative=templates.final_narrative(request),
            first_person_report=templates.final_report(request),
        )


class FallbackNarrativeProvider:
    """Compose a primary provider with a fallback under a timeout.

    Any error from the primary, or no answer within ``timeout`` seconds,
    yields the fallback's content flagged with ``from_fallback``.
    """

    def __init__(
        self,
        primary: NarrativeProvider,
        fallback: NarrativeProvider | None = None,
        *,
        timeout: float = 8.0,
        max_workers: int = 4,
    ) -> None:
        self.primary = primary
        self.fallback = fallback or TemplateNarrativeProvider()
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="narrative")

    def phase(self, request: PhaseRequest) -> PhaseContent:
        return self._call(self.primary.phase, self.fallback.phase, request, "phase")

    def mission(self, request: MissionRequest) -> MissionContent:
        return self._call(self.primary.mission, self.fallback.mission, request, "mission")

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _call(self, primary: Callable[..., T], fallback: Callable[..., T], request, kind: str) -> T:
        try:
            future = self._executor.submit(primary, request)
            return future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning(
                "Narrative provider timed out after %.1fs for %s %s; using fallback",
                self.timeout,
                kind,
                request.mission.id,
            )
        except Exception as exc:
            logger.warning(
                "Narrative provider failed for %s %s; using fallback: %s",
                kind,
                request.mission.id,
                exc,
            )
        return replace(fallback(request), from_fallback=True)
