"""Main orchestrator implementation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from voice_flow_orchestrator.core.config import EmbeddingConfig, LLMConfig
from voice_flow_orchestrator.llm.factory import LLMFactory
from voice_flow_orchestrator.llm.provider import EmbeddingProvider
from voice_flow_orchestrator.orchestrator.actions import ActionRegistry, default_registry
from voice_flow_orchestrator.orchestrator.config import OrchestratorSettings
from voice_flow_orchestrator.orchestrator.flows.agent import FlowExecutionAgent, FlowExecutor
from voice_flow_orchestrator.orchestrator.flows.loader import FlowLoader
from voice_flow_orchestrator.orchestrator.flows.models import Flow
from voice_flow_orchestrator.orchestrator.flows.runner import SequentialFlowRunner
from voice_flow_orchestrator.orchestrator.graph.repository import FlowRepository
from voice_flow_orchestrator.orchestrator.graph.similarity import ActionSimilarity, SimilarAction
from voice_flow_orchestrator.orchestrator.graph.store import GraphStore
from voice_flow_orchestrator.orchestrator.voice.call_config import build_call_config
from voice_flow_orchestrator.orchestrator.voice.stages import require_stage
from voice_flow_orchestrator.orchestrator.voice.tools import (
    ToolResponse,
    VoiceToolRegistry,
    default_voice_tools,
)
from voice_flow_orchestrator.orchestrator.voice.ultravox import UltravoxCall, UltravoxClient

logger = logging.getLogger(__name__)


class ToolNotFoundError(LookupError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool '{tool_name}' not found")
        self.tool_name = tool_name


class FlowOrchestrator:
    """Coordinates the flow graph, flow execution and the voice provider.

    Model clients are created on first use, so administrative commands that only
    touch the graph do not need model credentials.
    """

    def __init__(
        self,
        settings: OrchestratorSettings,
        *,
        store: GraphStore | None = None,
        registry: ActionRegistry | None = None,
        executor: FlowExecutor | None = None,
        voice_client: UltravoxClient | None = None,
        voice_tools: VoiceToolRegistry | None = None,
        embedder: EmbeddingProvider | None = None,
        llm_config: LLMConfig | None = None,
        embedding_config: EmbeddingConfig | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            settings: Validated process settings.
            store: Graph store; built from settings when omitted.
            registry: Action registry; the Notion catalog when omitted.
            executor: Flow executor; chosen by `FLOW_EXECUTION_MODE` when omitted.
            voice_client: Ultravox client; built from settings when omitted.
            voice_tools: Mid-call voice tools; `changeStage` when omitted.
            embedder: Embedding provider for similarity search.
            llm_config: Chat model configuration, loaded from the environment when omitted.
            embedding_config: Embedding configuration, loaded from the environment when omitted.
        """
        self.settings = settings
        self.store = store or GraphStore.from_settings(settings)
        self.repository = FlowRepository(self.store)
        self.registry = registry or default_registry(settings)
        self.loader = FlowLoader(self.repository, self.registry, max_steps=settings.flow_max_steps)
        self.voice_tools = voice_tools or default_voice_tools()

        self._executor = executor
        self._voice_client = voice_client
        self._embedder = embedder
        self._llm_config = llm_config
        self._embedding_config = embedding_config

        logger.info(
            "Orchestrator initialized",
            extra={"mode": settings.flow_execution_mode, "actions": len(self.registry)},
        )

    # ==================== Lazily built collaborators ====================

    @property
    def executor(self) -> FlowExecutor:
        if self._executor is None:
            model = LLMFactory.create_chat_model(self._llm_config or LLMConfig())
            if self.settings.flow_execution_mode == "sequential":
                self._executor = SequentialFlowRunner(self.loader, model)
            else:
                self._executor = FlowExecutionAgent(self.loader, model)
        return self._executor

    @property
    def voice_client(self) -> UltravoxClient:
        if self._voice_client is None:
            self._voice_client = UltravoxClient.from_settings(self.settings)
        return self._voice_client

    @property
    def embedder(self) -> EmbeddingProvider:
        if self._embedder is None:
            config = self._embedding_config or EmbeddingConfig()
            self._embedder = LLMFactory.create_embedder(config)
        return self._embedder

    def similarity(self, *, with_embedder: bool = False) -> ActionSimilarity:
        """Similarity helper; index and query operations need no embedding provider."""

        embedder = self.embedder if with_embedder else self._embedder
        return ActionSimilarity(self.store, self.repository, embedder)

    # ==================== Operations ====================

    async def list_flows(self) -> list[Flow]:
        return await self.loader.load_all_flows()

    async def execute_flow(self, flow_id: str, request_message: str) -> str:
        logger.info("Flow execution requested", extra={"flow_id": flow_id})
        return await self.executor.run(flow_id, request_message)

    async def build_call_config(self, stage_name: str | None = None) -> dict[str, Any]:
        stage = require_stage(stage_name or self.settings.voice_initial_stage)
        flows = await self.list_flows() if stage.include_flows else []
        return build_call_config(
            stage=stage,
            flows=flows,
            voice_tools=self.voice_tools,
            flow_execute_url=self.settings.flow_execute_url,
            tool_url=self.settings.tool_url,
        )

    async def start_call(self, stage_name: str | None = None) -> UltravoxCall:
        config = await self.build_call_config(stage_name)
        logger.info(
            "Starting voice call",
            extra={"tools": len(config["selectedTools"]), "stage": stage_name},
        )
        return await self.voice_client.create_call(config)

    async def invoke_tool(self, tool_name: str, body: Mapping[str, Any]) -> ToolResponse:
        """Dispatch a mid-call tool request to a voice tool or a registered action.

        Raises:
            ToolNotFoundError: Neither a voice tool nor an action has this name.
        """
        voice_tool = self.voice_tools.get(tool_name)
        if voice_tool is not None:
            return await voice_tool.handler(body)

        action = self.registry.get(tool_name)
        if action is not None:
            logger.info("Executing action as tool", extra={"action": action.name})
            return ToolResponse(body=await action.execute(body))

        raise ToolNotFoundError(tool_name)

    async def find_similar_actions(
        self, action_id: str, *, limit: int = 10, threshold: float = 0.7
    ) -> list[SimilarAction]:
        return await self.similarity().find_similar(action_id, limit=limit, threshold=threshold)

    async def close(self) -> None:
        await self.store.close()
        if self._voice_client is not None:
            await self._voice_client.aclose()
        if self._embedder is not None:
            await self._embedder.close()
