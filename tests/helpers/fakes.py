from __future__ import annotations

import itertools
import threading
from datetime import datetime, timedelta, timezone
from typing import Iterable

from mission_sim.domain.content import MissionContent, MissionRequest, PhaseContent, PhaseRequest
from mission_sim.domain.errors import GenerationFailure
from mission_sim.store.memory import InMemoryStore

EPOCH = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


class ManualClock:
    def __init__(self, start: datetime = EPOCH) -> None:
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, **kwargs) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(**kwargs)
            return self._now

    def set(self, moment: datetime) -> None:
        with self._lock:
            self._now = moment


class ScriptedDice:
    """Replays ``rolls`` in order, cycling when exhausted."""

    def __init__(self, rolls: Iterable[int]) -> None:
        self._rolls = itertools.cycle(list(rolls))

    def roll(self) -> int:
        return next(self._rolls)


def scripted_dice(rolls: Iterable[int]):
    rolls = list(rolls)
    return lambda deployment_id: ScriptedDice(rolls)


class FailingProvider:
    def __init__(self) -> None:
        self.calls = 0

    def phase(self, request: PhaseRequest) -> PhaseContent:
        self.calls += 1
        raise GenerationFailure("provider offline")

    def mission(self, request: MissionRequest) -> MissionContent:
        self.calls += 1
        raise RuntimeError("provider exploded")


class SlowProvider:
    """Blocks until released; stands in for a hung remote service."""

    def __init__(self) -> None:
        self.release = threading.Event()

    def phase(self, request: PhaseRequest) -> PhaseContent:
        self.release.wait(timeout=5)
        return PhaseContent(narrative="late", first_person_report="late")

    def mission(self, request: MissionRequest) -> MissionContent:
        self.release.wait(timeout=5)
        return MissionContent(narrative="late", first_person_report="late")


class BrokenStore(InMemoryStore):
    """Store whose inserts fail after validation."""

    def create(self, deployment):
        raise OSError("disk full")
