"""Typed views of the Action, Flow and FlowStep nodes stored in the graph."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from voice_flow_orchestrator.orchestrator.graph.store import NodeNotFoundError

logger = logging.getLogger(__name__)

# Schemas are persisted as JSON text. A value that fails to parse is kept as the raw string.
Schema = dict[str, Any] | str


class AmbiguousNameError(LookupError):
    """Raised when a name resolves to more than one node of the same label."""


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    name: str


class ActionNode(_Node):
    description: str = ""
    input_schema: Schema = Field(default_factory=dict, alias="inputSchema")
    output_schema: Schema = Field(default_factory=dict, alias="outputSchema")
    embedding: list[float] | None = None


class FlowNode(_Node):
    description: str = ""
    input_schema: Schema = Field(default_factory=dict, alias="inputSchema")


class FlowStepNode(_Node):
    instructions: str = ""


def parse_schema(raw: Any, *, label: str, field_name: str) -> Schema:
    """Decode a schema property stored as JSON text.

    A decode failure is logged and the raw text is returned instead of failing the read.
    """

    if raw is None:
        return {}
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.error(
            "Failed to parse persisted schema", extra={"label": label, "field": field_name}
        )
        return raw


def parse_action_node(properties: dict[str, Any]) -> ActionNode:
    data = dict(properties)
    data["inputSchema"] = parse_schema(
        data.get("inputSchema"), label="Action", field_name="inputSchema"
    )
    data["outputSchema"] = parse_schema(
        data.get("outputSchema"), label="Action", field_name="outputSchema"
    )
    return ActionNode.model_validate(data)


def parse_flow_node(properties: dict[str, Any]) -> FlowNode:
    data = dict(properties)
    data["inputSchema"] = parse_schema(
        data.get("inputSchema"), label="Flow", field_name="inputSchema"
    )
    return FlowNode.model_validate(data)


def parse_flow_step_node(properties: dict[str, Any]) -> FlowStepNode:
    return FlowStepNode.model_validate(properties)


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


NodeT = TypeVar("NodeT", bound=_Node)


@dataclass(frozen=True, slots=True)
class NameLookup(Generic[NodeT]):
    """Explicit result of resolving a node by its (non-unique) name."""

    label: str
    name: str
    matches: tuple[NodeT, ...]

    @property
    def status(self) -> LookupStatus:
        if not self.matches:
            return LookupStatus.NOT_FOUND
        if len(self.matches) > 1:
            return LookupStatus.AMBIGUOUS
        return LookupStatus.FOUND

    def require(self) -> NodeT:
        """Return the single match or raise."""

        status = self.status
        if status is LookupStatus.NOT_FOUND:
            raise NodeNotFoundError(f"{self.label} with name {self.name!r} not found")
        if status is LookupStatus.AMBIGUOUS:
            ids = ", ".join(node.id for node in self.matches)
            raise AmbiguousNameError(
                f"{self.label} name {self.name!r} matches {len(self.matches)} nodes: {ids}"
            )
        return self.matches[0]
