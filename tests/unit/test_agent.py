"""Unit tests for agent-driven flow execution.

A scripted chat model stands in for the provider so the whole ReAct loop runs
offline.
"""

from __future__ import annotations

from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from voice_flow_orchestrator.orchestrator.flows.agent import (
    FlowExecutionAgent,
    action_tool,
    build_action_tools,
    collect_agent_text,
    message_text,
)
from voice_flow_orchestrator.orchestrator.flows.loader import FlowLoader


class ScriptedToolModel(GenericFakeChatModel):
    def bind_tools(self, tools, **kwargs):
        return self


def _model(*messages: AIMessage | str) -> ScriptedToolModel:
    return ScriptedToolModel(messages=iter(messages), disable_streaming=True)


def test_message_text_ignores_non_text_blocks() -> None:
    message = AIMessage(
        content=[
            {"type": "text", "text": "Searching. "},
            {"type": "tool_use", "id": "t1", "name": "A", "input": {}},
            {"type": "text", "text": "Done."},
        ]
    )

    assert message_text(message) == "Searching. Done."


def test_collect_agent_text_keeps_only_agent_turns() -> None:
    messages = [
        HumanMessage(content="update the page"),
        AIMessage(content="Looking for the page."),
        ToolMessage(content='{"id": "p1"}', tool_call_id="t1"),
        AIMessage(content=""),
        AIMessage(content="The page is updated."),
    ]

    assert collect_agent_text(messages) == "Looking for the page.\nThe page is updated."


async def test_action_tool_forwards_arguments(action_factory) -> None:
    action = action_factory("A", result={"id": "p1"})
    tool = action_tool(action)

    result = await tool.ainvoke({"query": "Quarterly report"})

    assert tool.name == "A"
    assert tool.description == "A description"
    assert result == {"id": "p1"}
    action.execute.assert_awaited_once_with({"query": "Quarterly report"})


async def test_build_action_tools_follows_flow_actions(graph, registry) -> None:
    flow = await FlowLoader(graph, registry).load_flow("F")

    assert [tool.name for tool in build_action_tools(flow)] == ["A", "B"]


async def test_agent_runs_tools_and_returns_its_text(graph, registry) -> None:
    model = _model(
        AIMessage(
            content="Searching for the page.",
            tool_calls=[{"name": "A", "args": {"query": "Quarterly report"}, "id": "call_1"}],
        ),
        "The flow is complete.",
    )
    agent = FlowExecutionAgent(FlowLoader(graph, registry), model)

    result = await agent.run("F", "Mark the quarterly report as done")

    assert result == "Searching for the page.\nThe flow is complete."
    registry.get("A").execute.assert_awaited_once_with({"query": "Quarterly report"})
    registry.get("B").execute.assert_not_awaited()


async def test_agent_reports_failed_action_to_the_model(graph, registry) -> None:
    registry.get("A").execute.side_effect = RuntimeError("Notion page not found")
    model = _model(
        AIMessage(
            content="",
            tool_calls=[{"name": "A", "args": {"query": "Quarterly report"}, "id": "call_1"}],
        ),
        "The flow failed because the Notion page was not found.",
    )
    agent = FlowExecutionAgent(FlowLoader(graph, registry), model)

    result = await agent.run("F", "Mark the quarterly report as done")

    assert result == "The flow failed because the Notion page was not found."
    registry.get("A").execute.assert_awaited_once_with({"query": "Quarterly report"})


async def test_build_agent_does_not_warn(graph, registry, recwarn) -> None:
    flow = await FlowLoader(graph, registry).load_flow("F")

    FlowExecutionAgent(FlowLoader(graph, registry), _model("done")).build_agent(flow)

    assert not [w for w in recwarn if "create_react_agent" in str(w.message)]
