"""Deployment lifecycle: deploy, status, completion and administrative overrides.

There is no scheduler. A deployment past its ``completes_at`` stays active in
storage until someone reads it; :meth:`DeploymentService.get_status` then
completes it through :meth:`DeploymentService._complete`, the single
completion path shared with abandon and force-complete. Only the caller that
wins the store's status compare-and-set applies rewards.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from mission_sim.config import Settings
from mission_sim.domain.content import MissionRequest
from mission_sim.domain.errors import (
    AlreadyInProgress,
    DeploymentNotFound,
    InvalidApproach,
    MissionAlreadyCompleted,
    MissionError,
    MissionNotFound,
    OperativeNotFound,
    PersistenceFailure,
    PrerequisiteNotMet,
    ResourceBusy,
    ValidationError,
)
from mission_sim.domain.models import (
    Deployment,
    MissionResult,
    MissionTemplate,
    Operative,
)
from mission_sim.domain.types import DeploymentStatus, RiskTier
from mission_sim.domain.views import (
    CompatibilityBreakdown,
    DeploymentView,
    DeployReceipt,
    MissionProgress,
)
from mission_sim.narrative import templates
from mission_sim.narrative.provider import FallbackNarrativeProvider, TemplateNarrativeProvider
from mission_sim.rules.catalog import MissionCatalog, MissionRepository
from mission_sim.rules.roster import load_roster
from mission_sim.sim.clock import Clock, SystemClock
from mission_sim.sim.rng import SeededDice, fresh_seed
from mission_sim.store.base import DeploymentStore, OperativeDirectory
from mission_sim.store.memory import InMemoryStore
from mission_sim.systems import compatibility
from mission_sim.systems.outcomes import Dice, OutcomeGenerator, overall_success
from mission_sim.systems.reveal import reveal_schedule, revealed_view
from mission_sim.systems.rewards import calculate_rewards

logger = logging.getLogger(__name__)


def _new_deployment_id() -> str:
    return f"dep-{uuid.uuid4().hex}"


class DeploymentService:
    def __init__(
        self,
        missions: MissionRepository | MissionCatalog,
        store: DeploymentStore,
        directory: OperativeDirectory,
        generator: OutcomeGenerator,
        *,
        clock: Clock | None = None,
        dice_factory: Callable[[str], Dice] | None = None,
        id_factory: Callable[[], str] = _new_deployment_id,
    ) -> None:
        if isinstance(missions, MissionCatalog):
            missions = MissionRepository(missions)
        self.missions = missions
        self.store = store
        self.directory = directory
        self.generator = generator
        self.clock = clock or SystemClock()
        if dice_factory is None:
            seed = fresh_seed()
            dice_factory = lambda deployment_id: SeededDice(seed, deployment_id)  # noqa: E731
        self._dice_factory = dice_factory
        self._id_factory = id_factory

    @property
    def catalog(self) -> MissionCatalog:
        return self.missions.catalog

    # Lookups

    def get_mission(self, mission_id: str) -> MissionTemplate:
        mission = self.catalog.get(mission_id)
        if mission is None:
            raise MissionNotFound(f"mission {mission_id} not found")
        return mission

    def get_operative(self, operative_id: str) -> Operative:
        if not operative_id:
            raise ValidationError("operative id is required")
        operative = self.directory.get_operative(operative_id)
        if operative is None:
            raise OperativeNotFound(f"operative {operative_id} not found")
        return operative

    def preview_compatibility(self, operative_id: str, mission_id: str) -> CompatibilityBreakdown:
        mission = self.get_mission(mission_id)
        operative = self.get_operative(operative_id)
        return compatibility.breakdown(
            operative.category,
            operative.experience,
            operative.level,
            mission.primary_category,
            mission.compatibility,
        )

    def list_missions(self, account_id: str) -> list[MissionProgress]:
        """Per-account board built from stored records.

        Reads never complete deployments here: a run past its timer shows as
        active until :meth:`get_status` reads it.
        """
        history = self.store.for_account(account_id)
        board = []
        for mission in self.catalog:
            runs = [d for d in history if d.mission_id == mission.id]
            active = next((d for d in runs if d.status is DeploymentStatus.ACTIVE), None)
            board.append(
                MissionProgress(
                    mission_id=mission.id,
                    title=mission.title,
                    sequence=mission.sequence,
                    unlocked=_prerequisite_met(mission, history),
                    completed=any(d.status is DeploymentStatus.COMPLETED for d in runs),
                    active_deployment_id=active.id if active is not None else None,
                )
            )
        return board

    def list_deployments(self, account_id: str) -> list[DeploymentView]:
        """Views of stored records as they are; expired runs are not completed here."""
        now = self.clock.now()
        return [revealed_view(d, now) for d in self.store.for_account(account_id)]

    # Lifecycle

    def deploy(self, operative_id: str, mission_id: str, approach: RiskTier | str) -> DeployReceipt:
        mission = self.get_mission(mission_id)
        try:
            tier = RiskTier(approach)
        except ValueError as exc:
            raise InvalidApproach(f"unknown approach {approach!r}") from exc
        chosen = mission.approach(tier)
        if chosen is None:
            raise InvalidApproach(f"mission {mission_id} has no {tier.value} approach")
        operative = self.get_operative(operative_id)

        if self.store.find_active(operative_id=operative.id, mission_id=mission.id) or self.store.find_active(
            account_id=operative.account_id, mission_id=mission.id
        ):
            raise AlreadyInProgress(f"mission {mission_id} is already in progress")
        if operative.exclusivity_held:
            raise ResourceBusy(f"operative {operative.id} is held by deployment {operative.held_by}")

        history = self.store.for_account(operative.account_id)
        if not mission.repeatable and any(
            d.mission_id == mission.id and d.status is DeploymentStatus.COMPLETED for d in history
        ):
            raise MissionAlreadyCompleted(f"mission {mission_id} cannot be repeated")
        if not _prerequisite_met(mission, history):
            raise PrerequisiteNotMet(
                f"mission {mission_id} requires {mission.prerequisite.mission_id} to be completed"
                + (" successfully" if mission.prerequisite.require_success else "")
            )

        score = compatibility.score(
            operative.category,
            operative.experience,
            operative.level,
            mission.primary_category,
            mission.compatibility,
        )
        deployment_id = self._id_factory()
        generated = self.generator.generate(
            mission, chosen, operative, score, self._dice_factory(deployment_id)
        )
        now = self.clock.now()
        deployment = Deployment(
            id=deployment_id,
            operative_id=operative.id,
            account_id=operative.account_id,
            mission_id=mission.id,
            approach=tier,
            created_at=now,
            completes_at=now + chosen.duration,
            final_success_rate=generated.final_success_rate,
            phase_outcomes=generated.phase_outcomes,
            reveal_schedule=reveal_schedule(mission.phases),
            result=generated.result,
        )

        try:
            self.store.create(deployment)
        except MissionError:
            raise
        except Exception as exc:
            logger.error("Failed to persist deployment %s: %s", deployment_id, exc)
            raise PersistenceFailure(f"could not persist deployment {deployment_id}") from exc

        logger.info(
            "Deployment %s accepted: operative=%s mission=%s approach=%s rate=%.2f",
            deployment_id,
            operative.id,
            mission.id,
            tier.value,
            generated.final_success_rate,
        )
        return DeployReceipt(
            deployment_id=deployment.id,
            status=deployment.status,
            completes_at=deployment.completes_at,
        )

    def get_status(self, deployment_id: str) -> DeploymentView:
        deployment = self._load(deployment_id)
        now = self.clock.now()
        if deployment.status is DeploymentStatus.ACTIVE and deployment.is_expired(now):
            deployment = self._complete(deployment, DeploymentStatus.COMPLETED)
        return revealed_view(deployment, now)

    def abandon(self, deployment_id: str) -> DeploymentView:
        deployment = self._complete(self._load(deployment_id), DeploymentStatus.ABANDONED)
        return revealed_view(deployment, self.clock.now())

    def force_complete(self, deployment_id: str) -> DeploymentView:
        deployment = self._complete(self._load(deployment_id), DeploymentStatus.COMPLETED)
        return revealed_view(deployment, self.clock.now())

    def clear(self, deployment_id: str) -> None:
        removed = self.store.delete(deployment_id)
        if removed is None:
            raise DeploymentNotFound(f"deployment {deployment_id} not found")
        logger.info("Deployment %s cleared", deployment_id)

    def _load(self, deployment_id: str) -> Deployment:
        deployment = self.store.get(deployment_id)
        if deployment is None:
            raise DeploymentNotFound(f"deployment {deployment_id} not found")
        return deployment

    def _complete(self, deployment: Deployment, target: DeploymentStatus) -> Deployment:
        if deployment.status.is_terminal:
            return deployment
        result = deployment.result or self._rebuild_result(deployment)
        won, current = self.store.transition(
            deployment.id,
            expected=DeploymentStatus.ACTIVE,
            target=target,
            finished_at=self.clock.now(),
            result=result,
        )
        if not won:
            logger.debug("Deployment %s already %s", deployment.id, current.status.value)
            return current
        if current.status is DeploymentStatus.COMPLETED:
            self.directory.apply_rewards(current)
        logger.info("Deployment %s %s", current.id, current.status.value)
        return current

    def _rebuild_result(self, deployment: Deployment) -> MissionResult:
        mission = self.get_mission(deployment.mission_id)
        approach = mission.approach(deployment.approach)
        operative = self.get_operative(deployment.operative_id)
        count = len(deployment.phase_outcomes)
        wins = sum(1 for outcome in deployment.phase_outcomes if outcome.success)
        won = overall_success(wins, count)
        request = MissionRequest(
            mission=mission,
            approach=approach,
            operative=operative,
            overall_success=won,
            successful_phases=wins,
            phase_summaries=(),
        )
        return MissionResult(
            overall_success=won,
            successful_phases=wins,
            narrative=templates.final_narrative(request),
            first_person_report=templates.final_report(request),
            rewards=calculate_rewards(
                overall_success=won,
                successful_phases=wins,
                phase_count=count,
                tier=approach.tier,
                base=approach.rewards,
                shift_range=approach.timeline_shift,
            ),
        )


def _prerequisite_met(mission: MissionTemplate, history: list[Deployment]) -> bool:
    prereq = mission.prerequisite
    if prereq is None:
        return True
    for deployment in history:
        if deployment.mission_id != prereq.mission_id:
            continue
        if deployment.status is not DeploymentStatus.COMPLETED:
            continue
        if not prereq.require_success:
            return True
        if deployment.result is not None and deployment.result.overall_success:
            return True
    return False


def build_service(settings: Settings, *, clock: Clock | None = None) -> DeploymentService:
    """Wire the default in-process service from settings."""
    catalog = MissionCatalog.load(settings.catalog_path)
    store = InMemoryStore()
    for operative in load_roster():
        store.add_operative(operative)

    if settings.narrative_backend == "ollama":
        from mission_sim.narrative.ollama import OllamaNarrativeProvider

        primary = OllamaNarrativeProvider(
            settings.ollama_model,
            base_url=settings.ollama_url,
            timeout=settings.narrative_timeout,
        )
    else:
        primary = TemplateNarrativeProvider()
    provider = FallbackNarrativeProvider(primary, timeout=settings.narrative_timeout)

    seed = settings.rng_seed if settings.rng_seed is not None else fresh_seed()
    logger.info(
        "Mission service ready: %d missions, narrative=%s", len(catalog), settings.narrative_backend
    )
    return DeploymentService(
        MissionRepository(catalog),
        store,
        store,
        OutcomeGenerator(provider),
        clock=clock,
        dice_factory=lambda deployment_id: SeededDice(seed, deployment_id),
    )
