from __future__ import annotations

from mission_sim.domain.models import Account, MissionResult, MissionTemplate, Operative
from mission_sim.domain.views import (
    CompatibilityBreakdown,
    DeploymentView,
    DeployReceipt,
    MissionProgress,
    PhaseView,
)
from mission_server.api import schemas


def build_mission_detail(mission: MissionTemplate) -> schemas.MissionDetail:
    return schemas.MissionDetail(
        id=mission.id,
        title=mission.title,
        description=mission.description,
        location=mission.location,
        primary_category=mission.primary_category.value,
        sequence=mission.sequence,
        repeatable=mission.repeatable,
        prerequisite_mission_id=mission.prerequisite.mission_id if mission.prerequisite else None,
        preferred_categories=[c.value for c in mission.compatibility.preferred],
        approaches=[
            schemas.ApproachInfo(
                tier=approach.tier.value,
                name=approach.name,
                description=approach.description,
                success_rate=schemas.SuccessRange(
                    min=approach.success_rate.min, max=approach.success_rate.max
                ),
                duration_minutes=approach.duration.total_seconds() / 60,
                timeline_shift=(
                    schemas.SuccessRange(
                        min=approach.timeline_shift.min, max=approach.timeline_shift.max
                    )
                    if approach.timeline_shift is not None
                    else None
                ),
                points=approach.rewards.points,
                experience=approach.rewards.experience,
            )
            for approach in mission.approaches.values()
        ],
        phases=[
            schemas.PhaseInfo(id=p.id, name=p.name, weight=p.weight, tag=p.tag.value)
            for p in mission.phases
        ],
    )


def build_board(account_id: str, board: list[MissionProgress]) -> schemas.MissionBoardResponse:
    return schemas.MissionBoardResponse(
        account_id=account_id,
        missions=[
            schemas.MissionBoardEntry(
                mission_id=entry.mission_id,
                title=entry.title,
                sequence=entry.sequence,
                unlocked=entry.unlocked,
                completed=entry.completed,
                active_deployment_id=entry.active_deployment_id,
            )
            for entry in board
        ],
    )


def build_compatibility(
    operative_id: str, mission_id: str, breakdown: CompatibilityBreakdown
) -> schemas.CompatibilityResponse:
    return schemas.CompatibilityResponse(
        operative_id=operative_id,
        mission_id=mission_id,
        category=breakdown.category.value,
        mission_category=breakdown.mission_category.value,
        base=breakdown.base,
        experience_bonus=breakdown.experience_bonus,
        level_bonus=breakdown.level_bonus,
        preference_adjustment=breakdown.preference_adjustment,
        overall=breakdown.overall,
    )


def build_deploy_response(receipt: DeployReceipt) -> schemas.DeployResponse:
    return schemas.DeployResponse(
        deployment_id=receipt.deployment_id,
        status=receipt.status.value,
        completes_at=receipt.completes_at,
    )


def _phase(view: PhaseView) -> schemas.PhaseStatus:
    return schemas.PhaseStatus(
        phase_id=view.phase_id,
        name=view.name,
        status=view.visibility.value,
        success=view.success,
        roll=view.roll,
        threshold=view.threshold,
        tension=view.tension.value if view.tension is not None else None,
        narrative=view.narrative,
        first_person_report=view.first_person_report,
        image_prompt=view.image_prompt,
        revealed_at=view.revealed_at,
    )


def _result(result: MissionResult | None) -> schemas.ResultInfo | None:
    if result is None:
        return None
    rewards = result.rewards
    return schemas.ResultInfo(
        overall_success=result.overall_success,
        successful_phases=result.successful_phases,
        narrative=result.narrative,
        first_person_report=result.first_person_report,
        rewards=schemas.RewardInfo(
            points=rewards.points,
            experience=rewards.experience,
            timeline_shift=rewards.timeline_shift,
            lore_unlocks=list(rewards.lore_unlocks),
            achievements=list(rewards.achievements),
        ),
    )


def build_status_response(view: DeploymentView) -> schemas.DeploymentStatusResponse:
    return schemas.DeploymentStatusResponse(
        deployment_id=view.deployment_id,
        mission_id=view.mission_id,
        operative_id=view.operative_id,
        approach=view.approach.value,
        status=view.status.value,
        created_at=view.created_at,
        completes_at=view.completes_at,
        progress=view.progress,
        current_phase=view.current_phase,
        next_reveal_at=view.next_reveal_at,
        time_remaining_seconds=view.time_remaining.total_seconds(),
        phases=[_phase(p) for p in view.phases],
        result=_result(view.result),
    )


def build_operative(operative: Operative) -> schemas.OperativeResponse:
    return schemas.OperativeResponse(
        id=operative.id,
        account_id=operative.account_id,
        name=operative.name,
        category=operative.category.value,
        experience=operative.experience,
        level=operative.level,
        mission_count=operative.mission_count,
        exclusivity_held=operative.exclusivity_held,
        held_by=operative.held_by,
    )


def build_account(account: Account) -> schemas.AccountResponse:
    return schemas.AccountResponse(
        id=account.id,
        rank=account.rank,
        points=account.points,
        missions_succeeded=account.missions_succeeded,
        missions_failed=account.missions_failed,
        timeline_shift=account.timeline_shift,
        lore_unlocks=list(account.lore_unlocks),
        achievements=list(account.achievements),
    )
