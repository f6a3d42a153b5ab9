"""In-memory flow model.

`Flow.steps` is materialized by traversing the graph; it is never stored.
Executions are ephemeral records of one run and are never persisted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from voice_flow_orchestrator.orchestrator.actions.registry import Action


@dataclass(frozen=True, slots=True)
class FlowStep:
    """One step of a flow.

    `action` is None for an unbound step. `action_name` keeps the name of the
    linked Action node even when that name is not in the registry.
    """

    id: str
    name: str
    instructions: str
    action: Action | None = None
    action_name: str | None = None

    @property
    def is_bound(self) -> bool:
        return self.action is not None


@dataclass(frozen=True, slots=True)
class Flow:
    id: str
    name: str
    description: str
    input_schema: Mapping[str, Any] | str
    steps: tuple[FlowStep, ...] = ()

    @property
    def actions(self) -> tuple[Action, ...]:
        """Bound actions in step order, each listed once."""

        seen: dict[str, Action] = {}
        for step in self.steps:
            if step.action is not None and step.action.name not in seen:
                seen[step.action.name] = step.action
        return tuple(seen.values())

    @property
    def unbound_steps(self) -> tuple[FlowStep, ...]:
        return tuple(step for step in self.steps if not step.is_bound)


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class FlowStepExecution:
    step: FlowStep
    status: StepStatus = StepStatus.PENDING
    input: Mapping[str, Any] | None = None
    result: Any = None
    error: str | None = None

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {"step": self.step.name, "status": self.status.value}
        if self.step.action_name is not None:
            out["action"] = self.step.action_name
        if self.input is not None:
            out["input"] = dict(self.input)
        if self.result is not None:
            out["result"] = self.result
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True, slots=True)
class FlowExecution:
    flow: Flow
    steps: tuple[FlowStepExecution, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return all(s.status in {StepStatus.SUCCEEDED, StepStatus.SKIPPED} for s in self.steps)

    @property
    def failed_step(self) -> FlowStepExecution | None:
        for execution in self.steps:
            if execution.status is StepStatus.FAILED:
                return execution
        return None

    def to_json(self) -> dict[str, object]:
        return {
            "flow": self.flow.name,
            "succeeded": self.succeeded,
            "steps": [execution.to_json() for execution in self.steps],
        }
