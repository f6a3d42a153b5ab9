"""Core package initialization."""

from voice_flow_orchestrator.core.config import EmbeddingConfig, LLMConfig
from voice_flow_orchestrator.core.orchestrator import FlowOrchestrator, ToolNotFoundError

__all__ = [
    "EmbeddingConfig",
    "FlowOrchestrator",
    "LLMConfig",
    "ToolNotFoundError",
]
