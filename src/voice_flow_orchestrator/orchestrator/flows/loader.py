"""Materialize flows from the graph.

A flow's steps are found by following `NEXT` edges from its `START` step until a
step has no successor. Each step's `EXECUTES` target is resolved against the
action registry.
"""

from __future__ import annotations

import logging
from typing import Protocol

from voice_flow_orchestrator.orchestrator.actions.registry import ActionRegistry
from voice_flow_orchestrator.orchestrator.flows.models import Flow, FlowStep
from voice_flow_orchestrator.orchestrator.graph.nodes import ActionNode, FlowNode, FlowStepNode

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 100


class FlowNotFoundError(LookupError):
    pass


class NoStartStepError(LookupError):
    """The flow has no `START` edge and cannot be executed."""


class CyclicFlowError(RuntimeError):
    """Following `NEXT` edges revisited a step or exceeded the step budget."""


class FlowGraph(Protocol):
    """Read side of the flow graph needed for traversal."""

    async def get_flow_by_id(self, flow_id: str) -> FlowNode | None: ...

    async def get_flow_by_name(self, name: str) -> FlowNode | None: ...

    async def list_flows(self) -> list[FlowNode]: ...

    async def find_start_step(self, flow_id: str) -> FlowStepNode | None: ...

    async def find_next_step(self, step_id: str) -> FlowStepNode | None: ...

    async def find_step_action(self, step_id: str) -> ActionNode | None: ...


class FlowLoader:
    def __init__(
        self,
        graph: FlowGraph,
        registry: ActionRegistry,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._graph = graph
        self._registry = registry
        self._max_steps = max_steps

    async def load_flow(self, identifier: str) -> Flow:
        """Load a flow addressed by id, falling back to name.

        Raises:
            FlowNotFoundError: No flow has this id or name.
            NoStartStepError: The flow has no start step.
            CyclicFlowError: The step chain does not terminate.
        """

        node = await self._graph.get_flow_by_id(identifier)
        if node is None:
            node = await self._graph.get_flow_by_name(identifier)
        if node is None:
            raise FlowNotFoundError(f"Flow {identifier!r} not found")
        return await self._materialize(node)

    async def load_flow_by_id(self, flow_id: str) -> Flow:
        node = await self._graph.get_flow_by_id(flow_id)
        if node is None:
            raise FlowNotFoundError(f"Flow with ID {flow_id} not found")
        return await self._materialize(node)

    async def load_flow_by_name(self, name: str) -> Flow:
        node = await self._graph.get_flow_by_name(name)
        if node is None:
            raise FlowNotFoundError(f"Flow with name {name} not found")
        return await self._materialize(node)

    async def load_all_flows(self) -> list[Flow]:
        """Load every usable flow.

        Flows without a start step or with a cyclic chain are logged and left out.
        """

        flows: list[Flow] = []
        for node in await self._graph.list_flows():
            try:
                flows.append(await self._materialize(node))
            except (NoStartStepError, CyclicFlowError) as exc:
                logger.warning(
                    "Skipping unusable flow",
                    extra={"flow_id": node.id, "flow": node.name, "reason": str(exc)},
                )
        return flows

    async def _materialize(self, node: FlowNode) -> Flow:
        start = await self._graph.find_start_step(node.id)
        if start is None:
            raise NoStartStepError(f"Flow {node.name!r} ({node.id}) has no start step")

        steps: list[FlowStep] = []
        visited: set[str] = set()
        current: FlowStepNode | None = start
        while current is not None:
            if current.id in visited:
                raise CyclicFlowError(
                    f"Flow {node.name!r} revisits step {current.name!r} ({current.id})"
                )
            if len(steps) >= self._max_steps:
                raise CyclicFlowError(
                    f"Flow {node.name!r} exceeds the limit of {self._max_steps} steps"
                )
            visited.add(current.id)
            steps.append(await self._bind(current))
            current = await self._graph.find_next_step(current.id)

        logger.debug("Loaded flow", extra={"flow": node.name, "steps": len(steps)})
        return Flow(
            id=node.id,
            name=node.name,
            description=node.description,
            input_schema=node.input_schema,
            steps=tuple(steps),
        )

    async def _bind(self, node: FlowStepNode) -> FlowStep:
        action_node = await self._graph.find_step_action(node.id)
        if action_node is None:
            return FlowStep(id=node.id, name=node.name, instructions=node.instructions)

        action = self._registry.get(action_node.name)
        if action is None:
            logger.warning(
                "Step executes an action that is not registered",
                extra={"step": node.name, "action": action_node.name},
            )
        return FlowStep(
            id=node.id,
            name=node.name,
            instructions=node.instructions,
            action=action,
            action_name=action_node.name,
        )
