from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest

from voice_flow_orchestrator.llm.provider import EmbeddingProvider, EmbeddingTaskType
from voice_flow_orchestrator.orchestrator.graph.nodes import ActionNode
from voice_flow_orchestrator.orchestrator.graph.repository import FlowRepository
from voice_flow_orchestrator.orchestrator.graph.similarity import (
    ActionSimilarity,
    EmbeddingMissingError,
    VectorIndexMissingError,
)
from voice_flow_orchestrator.orchestrator.graph.store import GraphStore, NodeNotFoundError


def _similarity(
    *responses: list[dict],
    action: ActionNode | None = None,
    embedder: EmbeddingProvider | None = None,
) -> tuple[ActionSimilarity, Mock]:
    store = Mock(spec=GraphStore)
    store.run_query = AsyncMock(side_effect=list(responses))
    repository = Mock(spec=FlowRepository)
    repository.get_action_by_id = AsyncMock(return_value=action)
    repository.get_action_by_name = AsyncMock(return_value=action)
    return ActionSimilarity(store, repository, embedder), store


async def test_find_similar_requires_vector_index() -> None:
    similarity, _ = _similarity([])

    with pytest.raises(VectorIndexMissingError, match="action_embeddings"):
        await similarity.find_similar("a1")


async def test_find_similar_requires_action() -> None:
    similarity, _ = _similarity([{"name": "action_embeddings"}], action=None)

    with pytest.raises(NodeNotFoundError):
        await similarity.find_similar("a1")


async def test_find_similar_requires_embedding() -> None:
    action = ActionNode(id="a1", name="A")
    similarity, _ = _similarity([{"name": "action_embeddings"}], action=action)

    with pytest.raises(EmbeddingMissingError):
        await similarity.find_similar("a1")


async def test_find_similar_queries_one_extra_candidate_and_excludes_self() -> None:
    action = ActionNode(id="a1", name="A", embedding=[0.1, 0.2])
    similarity, store = _similarity(
        [{"name": "action_embeddings"}],
        [{"id": "a2", "name": "B", "description": "b", "score": 0.91}],
        action=action,
    )

    results = await similarity.find_similar("a1", limit=5, threshold=0.8)

    assert [(r.name, r.score) for r in results] == [("B", 0.91)]
    query, params = store.run_query.await_args.args
    assert "db.index.vector.queryNodes" in query
    assert "similar.id <> $value" in query
    assert params["candidates"] == 6
    assert params["limit"] == 5
    assert params["threshold"] == 0.8


async def test_set_action_embedding_stores_vector() -> None:
    embedder = Mock(spec=EmbeddingProvider)
    embedder.embed = AsyncMock(return_value=[0.5, 0.25])
    action = ActionNode(id="a1", name="A", description="Search pages")
    similarity, store = _similarity([{"a": {}}], action=action, embedder=embedder)

    vector = await similarity.set_action_embedding("a1")

    assert vector == [0.5, 0.25]
    embedder.embed.assert_awaited_once_with(
        "Search pages", EmbeddingTaskType.SEMANTIC_SIMILARITY
    )
    query, params = store.run_query.await_args.args
    assert "db.create.setNodeVectorProperty" in query
    assert params == {"value": "a1", "embedding": [0.5, 0.25]}


async def test_set_action_embedding_needs_provider() -> None:
    similarity, _ = _similarity(action=ActionNode(id="a1", name="A"))

    with pytest.raises(RuntimeError, match="No embedding provider"):
        await similarity.set_action_embedding("a1")


async def test_pairwise_similarity() -> None:
    similarity, _ = _similarity([{"similarity": 0.75}], [])

    assert await similarity.similarity("a1", "a2") == 0.75
    with pytest.raises(EmbeddingMissingError):
        await similarity.similarity_by_name("A", "B")


async def test_create_vector_index_passes_options() -> None:
    similarity, store = _similarity([])

    await similarity.create_vector_index(dimensions=1536, similarity_function="euclidean")

    query, params = store.run_query.await_args.args
    assert "CREATE VECTOR INDEX action_embeddings IF NOT EXISTS" in query
    assert params == {"dimensions": 1536, "similarityFunction": "euclidean"}


def test_index_name_must_be_an_identifier() -> None:
    with pytest.raises(ValueError):
        ActionSimilarity(Mock(), Mock(), index_name="bad name; DROP")
