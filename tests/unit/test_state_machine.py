"""Unit tests for the per-step execution state machine."""

from __future__ import annotations

import pytest

from voice_flow_orchestrator.orchestrator.flows.models import (
    FlowStep,
    FlowStepExecution,
    StepStatus,
)
from voice_flow_orchestrator.orchestrator.flows.state_machine import (
    IllegalTransitionError,
    transition,
)

STEP = FlowStep(id="s1", name="S1", instructions="", action_name="A")


def test_transition_rejects_illegal_transitions() -> None:
    pending = FlowStepExecution(step=STEP)

    with pytest.raises(IllegalTransitionError):
        transition(current=pending, to=StepStatus.SUCCEEDED)


def test_terminal_states_cannot_change() -> None:
    skipped = transition(current=FlowStepExecution(step=STEP), to=StepStatus.SKIPPED)

    with pytest.raises(IllegalTransitionError):
        transition(current=skipped, to=StepStatus.RUNNING)


def test_transition_keeps_earlier_fields() -> None:
    running = transition(
        current=FlowStepExecution(step=STEP), to=StepStatus.RUNNING, input={"query": "q"}
    )
    done = transition(current=running, to=StepStatus.SUCCEEDED, result={"id": "p1"})

    assert done.status is StepStatus.SUCCEEDED
    assert done.input == {"query": "q"}
    assert done.to_json() == {
        "step": "S1",
        "status": "succeeded",
        "action": "A",
        "input": {"query": "q"},
        "result": {"id": "p1"},
    }
