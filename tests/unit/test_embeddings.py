from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from voice_flow_orchestrator.core.config import EmbeddingConfig, LLMConfig
from voice_flow_orchestrator.llm import LLMFactory
from voice_flow_orchestrator.llm.openai_provider import OpenAIEmbeddingProvider
from voice_flow_orchestrator.llm.provider import EmbeddingTaskType


def _client(data: list) -> Mock:
    client = Mock()
    client.embeddings.create = AsyncMock(return_value=SimpleNamespace(data=data))
    client.close = AsyncMock()
    return client


async def test_embed_requests_configured_model_and_dimensions() -> None:
    client = _client([SimpleNamespace(embedding=[0.1, 0.2, 0.3])])
    provider = OpenAIEmbeddingProvider(EmbeddingConfig(dimensions=3), client=client)

    vector = await provider.embed("Searches all pages")

    assert vector == [0.1, 0.2, 0.3]
    assert provider.dimensions == 3
    client.embeddings.create.assert_awaited_once_with(
        model="text-embedding-3-small", input="Searches all pages", dimensions=3
    )


async def test_embed_ignores_task_type() -> None:
    client = _client([SimpleNamespace(embedding=[0.1, 0.2, 0.3])])
    provider = OpenAIEmbeddingProvider(EmbeddingConfig(dimensions=3), client=client)

    first = await provider.embed("Searches all pages", EmbeddingTaskType.RETRIEVAL_QUERY)
    second = await provider.embed("Searches all pages", EmbeddingTaskType.SEMANTIC_SIMILARITY)

    assert first == second
    query_call, similarity_call = client.embeddings.create.await_args_list
    assert query_call.kwargs == similarity_call.kwargs
    assert "task_type" not in query_call.kwargs


async def test_embed_rejects_empty_response() -> None:
    provider = OpenAIEmbeddingProvider(EmbeddingConfig(), client=_client([]))

    with pytest.raises(RuntimeError, match="Failed to generate embedding"):
        await provider.embed("text")


def test_provider_requires_api_key() -> None:
    with pytest.raises(ValueError):
        OpenAIEmbeddingProvider(EmbeddingConfig(openai_api_key=None))


def test_factory_requires_chat_model_key() -> None:
    with pytest.raises(ValueError, match="Anthropic API key is required"):
        LLMFactory.create_chat_model(LLMConfig(provider="anthropic", anthropic_api_key=None))


def test_factory_creates_openai_chat_model() -> None:
    model = LLMFactory.create_chat_model(
        LLMConfig(provider="openai", openai_api_key="test-key", openai_model="gpt-4o-mini")
    )

    assert model.model_name == "gpt-4o-mini"
