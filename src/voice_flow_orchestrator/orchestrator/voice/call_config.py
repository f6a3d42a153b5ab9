"""Build the Ultravox call configuration for an inbound call."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Any

from voice_flow_orchestrator.orchestrator.flows.models import Flow
from voice_flow_orchestrator.orchestrator.voice.stages import Stage
from voice_flow_orchestrator.orchestrator.voice.tools import (
    PARAMETER_LOCATION_BODY,
    DynamicParameter,
    VoiceTool,
    VoiceToolName,
    VoiceToolRegistry,
    stage_system_prompt,
)

BASE_CALL_CONFIG: dict[str, Any] = {
    "model": "fixie-ai/ultravox",
    "voice": "David-English-British",
    "firstSpeaker": "FIRST_SPEAKER_AGENT",
    "medium": {"twilio": {}},
    "languageHint": "en-US",
}

HANG_UP_TOOL = {"toolName": "hangUp"}

REQUEST_MESSAGE_PARAMETER = DynamicParameter(
    name="requestMessage",
    schema={
        "type": "string",
        "description": (
            "The caller's request for this flow in plain language, including every "
            "detail the caller gave that the flow needs"
        ),
    },
)

_TOOL_NAME_INVALID = re.compile(r"[^A-Za-z0-9_-]")


def model_tool_name(flow: Flow) -> str:
    """Flow name reduced to the characters Ultravox accepts for tool names."""

    return _TOOL_NAME_INVALID.sub("_", flow.name)[:64] or f"flow_{flow.id[:8]}"


def flow_tool(flow: Flow, execute_url: str) -> dict[str, object]:
    return {
        "temporaryTool": {
            "modelToolName": model_tool_name(flow),
            "description": flow.description or flow.name,
            "staticParameters": [
                {"name": "flowId", "location": PARAMETER_LOCATION_BODY, "value": flow.id}
            ],
            "dynamicParameters": [REQUEST_MESSAGE_PARAMETER.to_json()],
            "http": {"baseUrlPattern": execute_url, "httpMethod": "POST"},
        }
    }


def flow_catalog_prompt(flows: Sequence[Flow]) -> str:
    if not flows:
        return "No flows are currently available."
    lines = [
        f"- {model_tool_name(flow)}: {flow.description or 'No description provided.'}"
        for flow in flows
    ]
    return "Use these tools to execute tasks on behalf of the caller:\n" + "\n".join(lines)


def build_call_config(
    *,
    stage: Stage,
    flows: Sequence[Flow],
    voice_tools: VoiceToolRegistry,
    flow_execute_url: str,
    tool_url: Callable[[str], str],
) -> dict[str, Any]:
    """Assemble the create-call request body for the given stage.

    `hangUp` and `changeStage` are always selected. Flow tools are added only in
    stages that include flows.
    """

    tools: list[VoiceTool] = []
    for name in (VoiceToolName.CHANGE_STAGE.value, *stage.tools):
        tool = voice_tools.get(name)
        if tool is not None and tool not in tools:
            tools.append(tool)

    system_prompt = stage_system_prompt(stage, tools)
    stage_flows = list(flows) if stage.include_flows else []
    if stage.include_flows:
        system_prompt = f"{system_prompt}\n\n{flow_catalog_prompt(stage_flows)}"

    return {
        **BASE_CALL_CONFIG,
        "systemPrompt": system_prompt,
        "selectedTools": [
            HANG_UP_TOOL,
            *(tool.to_selected_tool(tool_url(tool.name)) for tool in tools),
            *(flow_tool(flow, flow_execute_url) for flow in stage_flows),
        ],
    }
