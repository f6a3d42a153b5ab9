"""Unit tests for voice call setup and mid-call tools."""

from __future__ import annotations

import json

import httpx
import pytest

from voice_flow_orchestrator.orchestrator.flows.models import Flow
from voice_flow_orchestrator.orchestrator.voice.call_config import (
    HANG_UP_TOOL,
    build_call_config,
    model_tool_name,
)
from voice_flow_orchestrator.orchestrator.voice.stages import UnknownStageError, require_stage
from voice_flow_orchestrator.orchestrator.voice.tools import (
    RESPONSE_TYPE_HEADER,
    change_stage_tool,
    default_voice_tools,
)
from voice_flow_orchestrator.orchestrator.voice.ultravox import UltravoxClient

FLOW = Flow(id="flow-1", name="Find page & update", description="Updates a page", input_schema={})


def _tool_url(name: str) -> str:
    return f"https://calls.example.com/tools/{name}"


async def test_create_call_posts_config_with_api_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"callId": "c1", "joinUrl": "wss://join/c1"})

    client = UltravoxClient(
        api_key="uv-key",
        api_url="https://api.ultravox.ai/api/calls",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    call = await client.create_call({"systemPrompt": "hi"})
    await client.aclose()

    assert call.call_id == "c1"
    assert call.join_url == "wss://join/c1"
    assert seen[0].headers["X-API-Key"] == "uv-key"
    assert json.loads(seen[0].content) == {"systemPrompt": "hi"}


async def test_create_call_raises_on_error_status() -> None:
    client = UltravoxClient(
        api_key="uv-key",
        api_url="https://api.ultravox.ai/api/calls",
        client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(401, json={}))
        ),
    )

    with pytest.raises(httpx.HTTPStatusError):
        await client.create_call({})


async def test_change_stage_returns_new_stage_prompt() -> None:
    tool = change_stage_tool()

    response = await tool.handler({"stage": "Closing"})

    assert response.headers == {RESPONSE_TYPE_HEADER: "new-stage"}
    assert response.body["systemPrompt"] == "Say goodbye to the caller."
    assert response.body["toolResultText"].startswith("(New Stage: Closing")


async def test_change_stage_accepts_nested_parameters() -> None:
    response = await change_stage_tool().handler({"parameters": {"stage": "Introduction"}})

    assert "(New Stage: Introduction" in response.body["toolResultText"]


async def test_change_stage_rejects_unknown_stage() -> None:
    handler = change_stage_tool().handler

    with pytest.raises(UnknownStageError):
        await handler({"stage": "Billing"})
    with pytest.raises(ValueError, match="Missing 'stage'"):
        await handler({})


def test_model_tool_name_is_sanitized() -> None:
    assert model_tool_name(FLOW) == "Find_page___update"


def test_introduction_config_selects_flow_tools() -> None:
    config = build_call_config(
        stage=require_stage("Introduction"),
        flows=[FLOW],
        voice_tools=default_voice_tools(),
        flow_execute_url="https://calls.example.com/flows/execute",
        tool_url=_tool_url,
    )

    tools = config["selectedTools"]
    assert tools[0] == HANG_UP_TOOL
    stage_tool = tools[1]["temporaryTool"]
    assert stage_tool["modelToolName"] == "changeStage"
    assert stage_tool["http"]["baseUrlPattern"] == "https://calls.example.com/tools/changeStage"
    flow_tool = tools[2]["temporaryTool"]
    assert flow_tool["staticParameters"][0] == {
        "name": "flowId",
        "location": "PARAMETER_LOCATION_BODY",
        "value": "flow-1",
    }
    assert flow_tool["dynamicParameters"][0]["name"] == "requestMessage"
    assert "Find_page___update: Updates a page" in config["systemPrompt"]
    assert config["medium"] == {"twilio": {}}


def test_closing_config_has_no_flow_tools() -> None:
    config = build_call_config(
        stage=require_stage("Closing"),
        flows=[FLOW],
        voice_tools=default_voice_tools(),
        flow_execute_url="https://calls.example.com/flows/execute",
        tool_url=_tool_url,
    )

    assert len(config["selectedTools"]) == 2
    assert config["systemPrompt"].startswith("Say goodbye to the caller.")
