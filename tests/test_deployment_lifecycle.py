from __future__ import annotations

from datetime import timedelta

import pytest

from mission_sim.domain.errors import (
    AlreadyInProgress,
    DeploymentNotFound,
    InvalidApproach,
    MissionAlreadyCompleted,
    MissionNotFound,
    OperativeNotFound,
    PersistenceFailure,
    PrerequisiteNotMet,
    ResourceBusy,
    ValidationError,
)
from mission_sim.domain.types import DeploymentStatus, OperativeCategory, RiskTier
from tests.helpers.factories import (
    fallback_provider,
    make_approach,
    make_mission,
    make_deployment,
    make_operative,
    make_service,
)
from tests.helpers.fakes import EPOCH, BrokenStore, FailingProvider
from tests.helpers.invariants import assert_exclusivity, assert_no_leak

ALWAYS_WIN = (1,)
ALWAYS_LOSE = (100,)


def test_deploy_creates_active_deployment_and_holds_operative():
    service, store, _ = make_service(make_mission())

    receipt = service.deploy("op-1", "m-1", "medium")

    assert receipt.status is DeploymentStatus.ACTIVE
    assert receipt.completes_at == EPOCH + timedelta(minutes=60)
    operative = store.get_operative("op-1")
    assert operative.exclusivity_held is True
    assert operative.held_by == receipt.deployment_id
    deployment = store.get(receipt.deployment_id)
    assert len(deployment.phase_outcomes) == 5
    assert deployment.result is not None
    assert_exclusivity(store)


def test_status_before_expiry_reveals_nothing_early():
    service, _, clock = make_service(make_mission())
    receipt = service.deploy("op-1", "m-1", RiskTier.MEDIUM)

    view = service.get_status(receipt.deployment_id)
    assert view.status is DeploymentStatus.ACTIVE
    assert view.revealed_count == 0
    assert view.result is None
    assert_no_leak(view)

    clock.advance(minutes=30)
    view = service.get_status(receipt.deployment_id)
    assert view.revealed_count == 2
    assert view.status is DeploymentStatus.ACTIVE


def test_busy_operative_rejected():
    service, store, _ = make_service(make_mission("m-1"), make_mission("m-2"))
    service.deploy("op-1", "m-1", "low")

    with pytest.raises(ResourceBusy):
        service.deploy("op-1", "m-2", "low")
    assert len(store.find_active()) == 1


def test_same_mission_twice_for_account_is_in_progress():
    ops = [make_operative("op-1"), make_operative("op-2")]
    service, _, _ = make_service(make_mission(), operatives=ops)
    service.deploy("op-1", "m-1", "low")

    with pytest.raises(AlreadyInProgress):
        service.deploy("op-2", "m-1", "low")
    with pytest.raises(AlreadyInProgress):
        service.deploy("op-1", "m-1", "low")


def test_validation_and_lookup_errors():
    mission = make_mission(approaches=[make_approach(RiskTier.LOW)])
    service, store, _ = make_service(mission)

    with pytest.raises(MissionNotFound):
        service.deploy("op-1", "ghost", "low")
    with pytest.raises(InvalidApproach):
        service.deploy("op-1", "m-1", "reckless")
    with pytest.raises(InvalidApproach):
        service.deploy("op-1", "m-1", "high")
    with pytest.raises(OperativeNotFound):
        service.deploy("op-404", "m-1", "low")
    with pytest.raises(ValidationError):
        service.deploy("", "m-1", "low")
    assert store.find_active() == []
    assert store.get_operative("op-1").exclusivity_held is False


def test_lazy_completion_on_read_after_expiry():
    service, store, clock = make_service(make_mission(), rolls=ALWAYS_WIN)
    receipt = service.deploy("op-1", "m-1", "medium")

    clock.set(receipt.completes_at + timedelta(seconds=1))
    view = service.get_status(receipt.deployment_id)

    assert view.status is DeploymentStatus.COMPLETED
    assert view.revealed_count == 5
    assert view.result is not None and view.result.overall_success is True
    operative = store.get_operative("op-1")
    assert operative.exclusivity_held is False
    assert operative.experience == view.result.rewards.experience == 90
    assert operative.mission_count == 1

    again = service.get_status(receipt.deployment_id)
    assert again.result == view.result
    assert store.get_operative("op-1").experience == 90
    account = store.get_account("acct-1")
    assert account.points == 180
    assert account.missions_succeeded == 1


def test_missing_result_is_rebuilt_on_completion():
    service, store, clock = make_service(make_mission())
    store.create(make_deployment())

    clock.advance(minutes=61)
    view = service.get_status("dep-test")

    assert view.status is DeploymentStatus.COMPLETED
    assert view.result is not None
    assert view.result.overall_success is True
    assert view.result.successful_phases == 5
    assert (view.result.rewards.points, view.result.rewards.experience) == (180, 90)
    assert view.result.narrative
    operative = store.get_operative("op-1")
    assert operative.experience == 90
    assert operative.exclusivity_held is False
    assert store.get_account("acct-1").points == 180
    assert store.get("dep-test").result == view.result


def test_completion_records_failure_on_account():
    service, store, clock = make_service(make_mission(), rolls=ALWAYS_LOSE)
    receipt = service.deploy("op-1", "m-1", "medium")
    clock.advance(hours=2)

    view = service.get_status(receipt.deployment_id)
    assert view.result.overall_success is False
    account = store.get_account("acct-1")
    assert account.missions_failed == 1
    assert account.points == 24


def test_outcomes_never_change_after_creation():
    service, store, clock = make_service(make_mission())
    receipt = service.deploy("op-1", "m-1", "medium")
    stored = store.get(receipt.deployment_id).phase_outcomes
    clock.advance(hours=1)
    service.get_status(receipt.deployment_id)
    after = store.get(receipt.deployment_id)
    assert after.phase_outcomes == stored
    assert after.completes_at == receipt.completes_at


def test_abandon_frees_operative_without_rewards():
    service, store, clock = make_service(make_mission(), rolls=ALWAYS_WIN)
    receipt = service.deploy("op-1", "m-1", "medium")

    view = service.abandon(receipt.deployment_id)

    assert view.status is DeploymentStatus.ABANDONED
    assert view.revealed_count == 5
    assert view.result is None
    assert store.get_operative("op-1").exclusivity_held is False
    assert store.get_operative("op-1").experience == 0

    clock.advance(hours=3)
    assert service.get_status(receipt.deployment_id).status is DeploymentStatus.ABANDONED
    assert service.force_complete(receipt.deployment_id).status is DeploymentStatus.ABANDONED
    assert store.get_account("acct-1").points == 0


def test_force_complete_applies_rewards_once():
    service, store, _ = make_service(make_mission(), rolls=ALWAYS_WIN)
    receipt = service.deploy("op-1", "m-1", "medium")

    first = service.force_complete(receipt.deployment_id)
    second = service.force_complete(receipt.deployment_id)

    assert first.status is DeploymentStatus.COMPLETED
    assert second.result == first.result
    assert store.get_operative("op-1").experience == 90
    assert store.get_operative("op-1").exclusivity_held is False


def test_operative_can_redeploy_after_completion():
    service, _, clock = make_service(make_mission())
    first = service.deploy("op-1", "m-1", "low")
    clock.advance(hours=2)
    service.get_status(first.deployment_id)

    second = service.deploy("op-1", "m-1", "low")
    assert second.deployment_id != first.deployment_id


def test_prerequisite_must_be_completed():
    first = make_mission("m-1", sequence=1)
    second = make_mission("m-2", sequence=2, prerequisite="m-1")
    ops = [make_operative("op-1"), make_operative("op-2")]
    service, _, clock = make_service(first, second, operatives=ops)

    with pytest.raises(PrerequisiteNotMet):
        service.deploy("op-1", "m-2", "low")

    receipt = service.deploy("op-1", "m-1", "low")
    with pytest.raises(PrerequisiteNotMet):
        service.deploy("op-2", "m-2", "low")

    clock.advance(hours=2)
    service.get_status(receipt.deployment_id)
    service.deploy("op-2", "m-2", "low")


def test_prerequisite_requiring_success():
    first = make_mission("m-1")
    second = make_mission("m-2", prerequisite="m-1", require_success=True)
    service, _, _ = make_service(first, second, rolls=ALWAYS_LOSE)

    receipt = service.deploy("op-1", "m-1", "low")
    service.force_complete(receipt.deployment_id)

    with pytest.raises(PrerequisiteNotMet):
        service.deploy("op-1", "m-2", "low")


def test_abandoned_prerequisite_does_not_count():
    first = make_mission("m-1")
    second = make_mission("m-2", prerequisite="m-1")
    service, _, _ = make_service(first, second)
    receipt = service.deploy("op-1", "m-1", "low")
    service.abandon(receipt.deployment_id)

    with pytest.raises(PrerequisiteNotMet):
        service.deploy("op-1", "m-2", "low")


def test_non_repeatable_mission():
    service, _, _ = make_service(make_mission(repeatable=False))
    receipt = service.deploy("op-1", "m-1", "low")
    service.force_complete(receipt.deployment_id)

    with pytest.raises(MissionAlreadyCompleted):
        service.deploy("op-1", "m-1", "low")


def test_persistence_failure_leaves_nothing_behind():
    store = BrokenStore()
    service, _, _ = make_service(make_mission(), store=store)

    with pytest.raises(PersistenceFailure):
        service.deploy("op-1", "m-1", "low")

    assert store.find_active() == []
    assert store.for_account("acct-1") == []
    assert store.get_operative("op-1").exclusivity_held is False


def test_failing_narrator_never_blocks_deploy():
    failing = FailingProvider()
    provider = fallback_provider(failing)
    try:
        service, store, _ = make_service(make_mission(), provider=provider)
        receipt = service.deploy("op-1", "m-1", "medium")
    finally:
        provider.close()

    deployment = store.get(receipt.deployment_id)
    assert all(outcome.used_fallback for outcome in deployment.phase_outcomes)
    assert all(outcome.narrative for outcome in deployment.phase_outcomes)
    assert deployment.result.narrative


def test_unknown_deployment():
    service, _, _ = make_service(make_mission())
    with pytest.raises(DeploymentNotFound):
        service.get_status("dep-missing")
    with pytest.raises(DeploymentNotFound):
        service.abandon("dep-missing")
    with pytest.raises(DeploymentNotFound):
        service.clear("dep-missing")


def test_clear_removes_deployment_and_frees_operative():
    service, store, _ = make_service(make_mission())
    receipt = service.deploy("op-1", "m-1", "low")

    service.clear(receipt.deployment_id)

    assert store.get(receipt.deployment_id) is None
    assert store.get_operative("op-1").exclusivity_held is False
    service.deploy("op-1", "m-1", "low")


def test_mission_board_tracks_progress():
    first = make_mission("m-1", sequence=1)
    second = make_mission("m-2", sequence=2, prerequisite="m-1")
    service, _, _ = make_service(first, second)

    board = {entry.mission_id: entry for entry in service.list_missions("acct-1")}
    assert board["m-1"].unlocked and not board["m-2"].unlocked

    receipt = service.deploy("op-1", "m-1", "low")
    board = {entry.mission_id: entry for entry in service.list_missions("acct-1")}
    assert board["m-1"].active_deployment_id == receipt.deployment_id

    service.force_complete(receipt.deployment_id)
    board = {entry.mission_id: entry for entry in service.list_missions("acct-1")}
    assert board["m-1"].completed and board["m-2"].unlocked
    assert [d.deployment_id for d in service.list_deployments("acct-1")] == [receipt.deployment_id]


def test_board_reflects_expiry_only_after_status_read():
    first = make_mission("m-1", sequence=1)
    second = make_mission("m-2", sequence=2, prerequisite="m-1")
    service, _, clock = make_service(first, second)
    receipt = service.deploy("op-1", "m-1", "low")

    clock.advance(hours=2)
    board = {entry.mission_id: entry for entry in service.list_missions("acct-1")}
    assert board["m-1"].active_deployment_id == receipt.deployment_id
    assert not board["m-1"].completed and not board["m-2"].unlocked
    assert service.list_deployments("acct-1")[0].status is DeploymentStatus.ACTIVE

    service.get_status(receipt.deployment_id)
    board = {entry.mission_id: entry for entry in service.list_missions("acct-1")}
    assert board["m-1"].completed and board["m-2"].unlocked
    assert board["m-1"].active_deployment_id is None


def test_preview_compatibility():
    operative = make_operative(category=OperativeCategory.ANALYTICAL, experience=400)
    service, _, _ = make_service(make_mission(), operatives=[operative])

    preview = service.preview_compatibility("op-1", "m-1")

    assert preview.base == 0.95
    assert preview.overall == 0.95
    assert preview.level_bonus == pytest.approx(0.04)
