"""Deterministic, step-by-step flow execution.

Steps run strictly in chain order. The language model only turns the caller's
request and earlier results into each action's input, and writes the final
summary. Execution stops at the first failing step; later steps are skipped.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from voice_flow_orchestrator.orchestrator.flows.agent import message_text
from voice_flow_orchestrator.orchestrator.flows.loader import FlowLoader
from voice_flow_orchestrator.orchestrator.flows.models import (
    Flow,
    FlowExecution,
    FlowStep,
    FlowStepExecution,
    StepStatus,
)
from voice_flow_orchestrator.orchestrator.flows.prompts import (
    NONE_PROVIDED,
    RESULTS_SYSTEM_PROMPT,
    STEP_INPUT_SYSTEM_PROMPT,
)
from voice_flow_orchestrator.orchestrator.flows.state_machine import transition

logger = logging.getLogger(__name__)


class StepInputBuilder(Protocol):
    async def build(
        self,
        *,
        flow: Flow,
        step: FlowStep,
        request: str,
        previous: Sequence[FlowStepExecution],
    ) -> dict[str, Any]: ...


class ModelStepInputBuilder:
    """Ask the model for arguments matching the step action's input schema."""

    def __init__(self, model: BaseChatModel) -> None:
        self._model = model

    async def build(
        self,
        *,
        flow: Flow,
        step: FlowStep,
        request: str,
        previous: Sequence[FlowStepExecution],
    ) -> dict[str, Any]:
        action = step.action
        if action is None:
            raise ValueError(f"Step {step.name!r} has no action")

        schema = dict(action.input_schema)
        schema.setdefault("title", action.name)
        schema.setdefault("description", action.description)

        prompt = STEP_INPUT_SYSTEM_PROMPT.format(
            flow_name=flow.name,
            action_name=action.name,
            step_name=step.name,
            instructions=step.instructions or NONE_PROVIDED,
            action_description=action.description,
            previous_results=json.dumps(
                [execution.to_json() for execution in previous], indent=2, default=str
            ),
        )
        structured = self._model.with_structured_output(schema)
        result = await structured.ainvoke(
            [SystemMessage(content=prompt), HumanMessage(content=request)]
        )
        return dict(result or {})


class SequentialFlowRunner:
    def __init__(
        self,
        loader: FlowLoader,
        model: BaseChatModel,
        *,
        input_builder: StepInputBuilder | None = None,
    ) -> None:
        self._loader = loader
        self._model = model
        self._input_builder = input_builder or ModelStepInputBuilder(model)

    async def run(self, flow_identifier: str, request: str) -> str:
        flow = await self._loader.load_flow(flow_identifier)
        execution = await self.execute(flow, request)
        return await self.summarize(execution, request)

    async def execute(self, flow: Flow, request: str) -> FlowExecution:
        executions = [FlowStepExecution(step=step) for step in flow.steps]
        halted = False

        for index, pending in enumerate(executions):
            step = pending.step
            if halted:
                executions[index] = transition(
                    current=pending, to=StepStatus.SKIPPED, error="Skipped after earlier failure"
                )
                continue
            if step.action is None:
                logger.warning(
                    "Skipping unbound step", extra={"flow": flow.name, "step": step.name}
                )
                executions[index] = transition(
                    current=pending, to=StepStatus.SKIPPED, error="No action bound to step"
                )
                continue

            running = transition(current=pending, to=StepStatus.RUNNING)
            payload: dict[str, Any] | None = None
            try:
                payload = await self._input_builder.build(
                    flow=flow,
                    step=step,
                    request=request,
                    previous=[e for e in executions[:index] if e.status is StepStatus.SUCCEEDED],
                )
                result = await step.action.execute(payload)
            except Exception as exc:
                logger.exception(
                    "Flow step failed",
                    extra={"flow": flow.name, "step": step.name, "action": step.action.name},
                )
                executions[index] = transition(
                    current=running, to=StepStatus.FAILED, input=payload, error=str(exc)
                )
                halted = True
                continue

            logger.info("Flow step succeeded", extra={"flow": flow.name, "step": step.name})
            executions[index] = transition(
                current=running, to=StepStatus.SUCCEEDED, input=payload, result=result
            )

        return FlowExecution(flow=flow, steps=tuple(executions))

    async def summarize(self, execution: FlowExecution, request: str) -> str:
        context = json.dumps(execution.to_json(), indent=2, default=str)
        response = await self._model.ainvoke(
            [
                SystemMessage(content=RESULTS_SYSTEM_PROMPT.format(context=context)),
                HumanMessage(content=request),
            ]
        )
        return message_text(response).strip()
