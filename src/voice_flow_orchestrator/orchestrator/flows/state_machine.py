"""Per-step state machine used by sequential flow execution.

    PENDING -> RUNNING -> SUCCEEDED | FAILED
    PENDING -> SKIPPED                (unbound step, or an earlier step failed)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from voice_flow_orchestrator.orchestrator.flows.models import FlowStepExecution, StepStatus

ALLOWED_TRANSITIONS: dict[StepStatus, set[StepStatus]] = {
    StepStatus.PENDING: {StepStatus.RUNNING, StepStatus.SKIPPED},
    StepStatus.RUNNING: {StepStatus.SUCCEEDED, StepStatus.FAILED},
    StepStatus.SUCCEEDED: set(),
    StepStatus.FAILED: set(),
    StepStatus.SKIPPED: set(),
}

TERMINAL_STATES = frozenset({StepStatus.SUCCEEDED, StepStatus.FAILED, StepStatus.SKIPPED})


class IllegalTransitionError(ValueError):
    pass


def transition(
    *,
    current: FlowStepExecution,
    to: StepStatus,
    input: Mapping[str, Any] | None = None,  # noqa: A002
    result: Any = None,
    error: str | None = None,
) -> FlowStepExecution:
    allowed = ALLOWED_TRANSITIONS.get(current.status, set())
    if to not in allowed:
        raise IllegalTransitionError(
            f"Illegal transition for step {current.step.name!r}: "
            f"{current.status.value} -> {to.value}"
        )
    return replace(
        current,
        status=to,
        input=input if input is not None else current.input,
        result=result if result is not None else current.result,
        error=error if error is not None else current.error,
    )
