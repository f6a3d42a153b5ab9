"""Voice tools the call agent can invoke mid-call over HTTP.

A tool handler receives the JSON request body and returns a `ToolResponse`.
Its headers let the tool signal special response types to Ultravox, such as a
stage change.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from voice_flow_orchestrator.orchestrator.voice.stages import (
    STAGES,
    Stage,
    list_stages,
    require_stage,
)

logger = logging.getLogger(__name__)

PARAMETER_LOCATION_BODY = "PARAMETER_LOCATION_BODY"
RESPONSE_TYPE_HEADER = "X-Ultravox-Response-Type"


class VoiceToolName(str, Enum):
    CHANGE_STAGE = "changeStage"


@dataclass(frozen=True, slots=True)
class ToolResponse:
    body: Any = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)


ToolHandler = Callable[[Mapping[str, Any]], Awaitable[ToolResponse]]


@dataclass(frozen=True, slots=True)
class DynamicParameter:
    """A tool argument the voice model fills in."""

    name: str
    schema: Mapping[str, Any]
    required: bool = True
    location: str = PARAMETER_LOCATION_BODY

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.name,
            "location": self.location,
            "schema": dict(self.schema),
            "required": self.required,
        }


@dataclass(frozen=True, slots=True)
class VoiceTool:
    name: str
    description: str
    instructions: str
    handler: ToolHandler = field(repr=False, compare=False)
    dynamic_parameters: tuple[DynamicParameter, ...] = ()

    def to_selected_tool(self, base_url: str) -> dict[str, object]:
        """Ultravox `selectedTools` entry that calls this tool back at `base_url`."""

        return {
            "temporaryTool": {
                "modelToolName": self.name,
                "description": self.description,
                "dynamicParameters": [p.to_json() for p in self.dynamic_parameters],
                "http": {"baseUrlPattern": base_url, "httpMethod": "POST"},
            }
        }


class VoiceToolRegistry:
    def __init__(self, tools: Iterable[VoiceTool] = ()) -> None:
        self._tools = {tool.name: tool for tool in tools}

    def get(self, name: str) -> VoiceTool | None:
        return self._tools.get(name)

    def list(self) -> tuple[str, ...]:  # noqa: A003 (registry contract)
        return tuple(self._tools)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._tools


def _requested_stage(body: Mapping[str, Any]) -> str:
    # Older clients nest tool arguments under "parameters".
    stage = body.get("stage")
    if stage is None and isinstance(body.get("parameters"), Mapping):
        stage = body["parameters"].get("stage")
    if not isinstance(stage, str) or not stage:
        raise ValueError("Missing 'stage' parameter")
    return stage


def stage_system_prompt(stage: Stage, tools: Iterable[VoiceTool]) -> str:
    instructions = "\n\n".join(tool.instructions for tool in tools if tool.instructions)
    if not instructions:
        return stage.system_prompt
    return f"{stage.system_prompt}\n\n{instructions}"


def change_stage_tool() -> VoiceTool:
    stage_lines = "\n".join(f"{stage.name}: {stage.description}" for stage in STAGES.values())
    instructions = (
        "You have access to a tool called changeStage. You can use this tool to change the "
        "stage of the conversation when it's appropriate.\n"
        "Here are the stages you can change to, and their descriptions:\n"
        f"{stage_lines}"
    )

    async def handle(body: Mapping[str, Any]) -> ToolResponse:
        stage = require_stage(_requested_stage(body))
        logger.info("Changing call stage", extra={"stage": stage.name})
        return ToolResponse(
            body={
                "systemPrompt": stage.system_prompt,
                "toolResultText": f"(New Stage: {stage.name} - {stage.description})",
            },
            headers={RESPONSE_TYPE_HEADER: "new-stage"},
        )

    return VoiceTool(
        name=VoiceToolName.CHANGE_STAGE.value,
        description="Change the stage of the conversation",
        instructions=instructions,
        handler=handle,
        dynamic_parameters=(
            DynamicParameter(
                name="stage",
                schema={
                    "type": "string",
                    "description": (
                        "The new stage of the conversation, from options: "
                        f"{', '.join(list_stages())}"
                    ),
                    "enum": list_stages(),
                },
            ),
        ),
    )


def default_voice_tools() -> VoiceToolRegistry:
    return VoiceToolRegistry([change_stage_tool()])
