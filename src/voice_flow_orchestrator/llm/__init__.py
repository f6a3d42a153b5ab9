"""LLM package initialization."""

from voice_flow_orchestrator.llm.factory import LLMFactory
from voice_flow_orchestrator.llm.provider import EmbeddingProvider, EmbeddingTaskType

__all__ = [
    "EmbeddingProvider",
    "EmbeddingTaskType",
    "LLMFactory",
]
