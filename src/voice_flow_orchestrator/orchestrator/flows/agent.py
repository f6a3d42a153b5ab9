"""Tool-calling agent that executes a flow from a natural-language request.

The agent gets one tool per bound action and a system prompt describing the
flow. An action that raises is reported back to the model as a failed tool
call, so the agent can explain the failure instead of aborting the run.
Step ordering is left to the model; this layer does not enforce it, does not
retry and does not validate step results.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.tools import BaseTool, StructuredTool
from langgraph.prebuilt import ToolNode, create_react_agent

from voice_flow_orchestrator.orchestrator.actions.registry import Action
from voice_flow_orchestrator.orchestrator.flows.loader import FlowLoader
from voice_flow_orchestrator.orchestrator.flows.models import Flow
from voice_flow_orchestrator.orchestrator.flows.prompts import build_flow_system_prompt

logger = logging.getLogger(__name__)


class FlowExecutor(Protocol):
    async def run(self, flow_identifier: str, request: str) -> str: ...


def message_text(message: BaseMessage) -> str:
    """Plain text of a message, ignoring tool-use and other non-text blocks."""

    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, Mapping) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def collect_agent_text(messages: Iterable[BaseMessage]) -> str:
    """Join the text of the agent's own turns.

    Tool results and the caller's messages are left out.
    """

    texts = (message_text(m).strip() for m in messages if isinstance(m, AIMessage))
    return "\n".join(text for text in texts if text)


def action_tool(action: Action) -> BaseTool:
    async def _execute(**kwargs: Any) -> Any:
        return await action.execute(kwargs)

    return StructuredTool.from_function(
        coroutine=_execute,
        name=action.name,
        description=action.description,
        args_schema=dict(action.input_schema),
    )


def build_action_tools(flow: Flow) -> list[BaseTool]:
    return [action_tool(action) for action in flow.actions]


class FlowExecutionAgent:
    """Runs a flow through a LangGraph ReAct agent."""

    def __init__(self, loader: FlowLoader, model: BaseChatModel) -> None:
        self._loader = loader
        self._model = model

    def build_agent(self, flow: Flow):
        tools = ToolNode(build_action_tools(flow), handle_tool_errors=True)
        # langgraph 1.x flags the prebuilt agent as moved to `langchain.agents`.
        with warnings.catch_warnings():
            warnings.filterwarnings(
                "ignore", message=".*create_react_agent.*", category=DeprecationWarning
            )
            return create_react_agent(
                self._model,
                tools,
                prompt=build_flow_system_prompt(flow),
            )

    async def run(self, flow_identifier: str, request: str) -> str:
        """Load a flow and execute it against a request.

        Raises:
            FlowNotFoundError: No flow matches `flow_identifier`.
        """
        flow = await self._loader.load_flow(flow_identifier)
        return await self.run_flow(flow, request)

    async def run_flow(self, flow: Flow, request: str) -> str:
        if flow.unbound_steps:
            logger.warning(
                "Flow has steps without an action",
                extra={"flow": flow.name, "steps": [s.name for s in flow.unbound_steps]},
            )

        logger.info(
            "Executing flow with agent",
            extra={"flow_id": flow.id, "flow": flow.name, "tools": len(flow.actions)},
        )
        state = await self.build_agent(flow).ainvoke({"messages": [HumanMessage(content=request)]})
        result = collect_agent_text(state["messages"])
        logger.info("Flow execution finished", extra={"flow": flow.name, "chars": len(result)})
        return result
