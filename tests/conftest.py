"""Test configuration and fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from unittest.mock import AsyncMock

import pytest

from voice_flow_orchestrator.orchestrator.actions.registry import Action, ActionRegistry
from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings
from voice_flow_orchestrator.orchestrator.graph.nodes import ActionNode, FlowNode, FlowStepNode

REQUIRED_ENV = {
    "ULTRAVOX_API_KEY": "uv-test-key",
    "NEO4J_URI": "bolt://localhost:7687",
    "NEO4J_USER": "neo4j",
    "NEO4J_PASSWORD": "secret",
    "BASE_DOMAIN": "calls.example.com",
}


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every required environment variable."""
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    return dict(REQUIRED_ENV)


@pytest.fixture
def settings(settings_env: dict[str, str]) -> OrchestratorSettings:
    """Provide validated settings that ignore any local .env file."""
    return OrchestratorSettings(_env_file=None)


def make_action(name: str, result: object = None, description: str | None = None) -> Action:
    return Action(
        name=name,
        description=description or f"{name} description",
        input_schema={"type": "object", "properties": {"query": {"type": "string"}}},
        output_schema={"type": "object"},
        execute=AsyncMock(return_value=result if result is not None else {"ok": name}),
    )


@dataclass
class InMemoryFlowGraph:
    """Dict-backed stand-in for the flow graph read side."""

    flows: dict[str, FlowNode] = field(default_factory=dict)
    steps: dict[str, FlowStepNode] = field(default_factory=dict)
    actions: dict[str, ActionNode] = field(default_factory=dict)
    start: dict[str, str] = field(default_factory=dict)
    next: dict[str, str] = field(default_factory=dict)
    executes: dict[str, str] = field(default_factory=dict)

    def add_flow(self, flow_id: str, name: str, description: str = "") -> FlowNode:
        node = FlowNode(id=flow_id, name=name, description=description, input_schema={})
        self.flows[flow_id] = node
        return node

    def add_step(
        self,
        step_id: str,
        name: str,
        *,
        action: str | None = None,
        flow: str | None = None,
        after: str | None = None,
    ) -> FlowStepNode:
        node = FlowStepNode(id=step_id, name=name, instructions=f"do {name}")
        self.steps[step_id] = node
        if action is not None:
            action_id = f"action-{action}"
            self.actions.setdefault(action_id, ActionNode(id=action_id, name=action))
            self.executes[step_id] = action_id
        if flow is not None:
            self.start[flow] = step_id
        if after is not None:
            self.next[after] = step_id
        return node

    async def get_flow_by_id(self, flow_id: str) -> FlowNode | None:
        return self.flows.get(flow_id)

    async def get_flow_by_name(self, name: str) -> FlowNode | None:
        return next((f for f in self.flows.values() if f.name == name), None)

    async def list_flows(self) -> list[FlowNode]:
        return sorted(self.flows.values(), key=lambda f: f.name)

    async def find_start_step(self, flow_id: str) -> FlowStepNode | None:
        step_id = self.start.get(flow_id)
        return self.steps.get(step_id) if step_id else None

    async def find_next_step(self, step_id: str) -> FlowStepNode | None:
        next_id = self.next.get(step_id)
        return self.steps.get(next_id) if next_id else None

    async def find_step_action(self, step_id: str) -> ActionNode | None:
        action_id = self.executes.get(step_id)
        return self.actions.get(action_id) if action_id else None


@pytest.fixture
def graph() -> InMemoryFlowGraph:
    """Provide a two-step flow F: S1 (A) -> S2 (B)."""
    g = InMemoryFlowGraph()
    g.add_flow("flow-1", "F", "Find a page and update it")
    g.add_step("step-1", "S1", action="A", flow="flow-1")
    g.add_step("step-2", "S2", action="B", after="step-1")
    return g


@pytest.fixture
def registry() -> ActionRegistry:
    """Provide a registry holding actions A and B."""
    return ActionRegistry([make_action("A"), make_action("B")])


@pytest.fixture
def action_factory():
    """Provide a factory for actions with mocked executors."""
    return make_action
