from __future__ import annotations

from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule, run_state_machine_as_test

from mission_sim.domain.errors import AlreadyInProgress, PrerequisiteNotMet, ResourceBusy
from mission_sim.domain.types import DeploymentStatus
from tests.helpers.factories import make_mission, make_operative, make_service
from tests.helpers.invariants import (
    assert_exclusivity,
    assert_no_leak,
    assert_reveal_prefix,
    assert_terminal_consistent,
)

OPERATIVES = ("op-1", "op-2", "op-3")
MISSIONS = ("m-1", "m-2", "m-3")


class LifecycleStateMachine(RuleBasedStateMachine):
    def __init__(self) -> None:
        super().__init__()
        missions = [
            make_mission("m-1"),
            make_mission("m-2"),
            make_mission("m-3", prerequisite="m-1"),
        ]
        operatives = [
            make_operative("op-1", account_id="acct-a"),
            make_operative("op-2", account_id="acct-a"),
            make_operative("op-3", account_id="acct-b"),
        ]
        self.service, self.store, self.clock = make_service(
            *missions, operatives=operatives, rolls=(5, 40, 70, 95, 20, 60)
        )
        self.deployments: list[str] = []
        self.revealed: dict[str, int] = {}

    @rule(
        operative=st.sampled_from(OPERATIVES),
        mission=st.sampled_from(MISSIONS),
        approach=st.sampled_from(["low", "medium", "high"]),
    )
    def deploy(self, operative: str, mission: str, approach: str) -> None:
        try:
            receipt = self.service.deploy(operative, mission, approach)
        except (ResourceBusy, AlreadyInProgress, PrerequisiteNotMet):
            return
        self.deployments.append(receipt.deployment_id)

    @rule(minutes=st.integers(min_value=1, max_value=90))
    def advance_clock(self, minutes: int) -> None:
        self.clock.advance(minutes=minutes)

    @precondition(lambda self: self.deployments)
    @rule(data=st.data())
    def read_status(self, data) -> None:
        deployment_id = data.draw(st.sampled_from(self.deployments))
        view = self.service.get_status(deployment_id)
        assert_no_leak(view)
        assert_reveal_prefix(view)
        assert view.revealed_count >= self.revealed.get(deployment_id, 0)
        self.revealed[deployment_id] = view.revealed_count

    @precondition(lambda self: self.deployments)
    @rule(data=st.data())
    def abandon(self, data) -> None:
        deployment_id = data.draw(st.sampled_from(self.deployments))
        before = self.store.get(deployment_id).status
        view = self.service.abandon(deployment_id)
        if before is DeploymentStatus.ACTIVE:
            assert view.status is DeploymentStatus.ABANDONED
        else:
            assert view.status is before

    @invariant()
    def exclusivity_holds(self) -> None:
        assert_exclusivity(self.store)

    @invariant()
    def experience_matches_completed_results(self) -> None:
        expected = {op: 0 for op in OPERATIVES}
        for deployment_id in self.deployments:
            deployment = self.store.get(deployment_id)
            assert_terminal_consistent(deployment)
            if deployment.status is DeploymentStatus.COMPLETED:
                expected[deployment.operative_id] += deployment.result.rewards.experience
        for op in OPERATIVES:
            assert self.store.get_operative(op).experience == expected[op]


def test_lifecycle_state_machine() -> None:
    run_state_machine_as_test(
        LifecycleStateMachine,
        settings=settings(max_examples=25, stateful_step_count=30, deadline=None),
    )
