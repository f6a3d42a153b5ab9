"""Vector embeddings on Action nodes and similarity search over them.

Cosine similarity is computed by Neo4j (`db.index.vector.queryNodes` and
`vector.similarity.cosine`); this module only issues the queries. Nothing on the
flow execution path depends on it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Literal

from voice_flow_orchestrator.llm.provider import EmbeddingProvider, EmbeddingTaskType
from voice_flow_orchestrator.orchestrator.graph.nodes import ActionNode
from voice_flow_orchestrator.orchestrator.graph.repository import FlowRepository
from voice_flow_orchestrator.orchestrator.graph.store import GraphStore, NodeNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_INDEX_NAME = "action_embeddings"

SimilarityFunction = Literal["cosine", "euclidean"]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class VectorIndexMissingError(LookupError):
    """Raised when a similarity query needs a vector index that does not exist."""


class EmbeddingMissingError(LookupError):
    """Raised when an Action node has no stored embedding."""


@dataclass(frozen=True, slots=True)
class SimilarAction:
    id: str | None
    name: str
    description: str
    score: float


def _validate_index_name(name: str) -> str:
    # Index names cannot be passed as Cypher parameters in DDL.
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid index name: {name!r}")
    return name


class ActionSimilarity:
    """Embedding storage and nearest-neighbour queries for Action nodes."""

    def __init__(
        self,
        store: GraphStore,
        repository: FlowRepository,
        embedder: EmbeddingProvider | None = None,
        *,
        index_name: str = DEFAULT_INDEX_NAME,
    ) -> None:
        self._store = store
        self._repository = repository
        self._embedder = embedder
        self._index_name = _validate_index_name(index_name)

    @property
    def index_name(self) -> str:
        return self._index_name

    # ==================== Index management ====================

    async def create_vector_index(
        self,
        dimensions: int = 768,
        similarity_function: SimilarityFunction = "cosine",
    ) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        await self._store.run_query(
            f"""
            CREATE VECTOR INDEX {self._index_name} IF NOT EXISTS
            FOR (n:Action) ON (n.embedding)
            OPTIONS {{
              indexConfig: {{
                `vector.dimensions`: $dimensions,
                `vector.similarity_function`: $similarityFunction
              }}
            }}
            """,
            {"dimensions": dimensions, "similarityFunction": similarity_function},
        )
        logger.info(
            "Vector index ready",
            extra={"index": self._index_name, "dimensions": dimensions},
        )

    async def vector_index_exists(self) -> bool:
        rows = await self._store.run_query(
            "SHOW INDEXES YIELD name WHERE name = $indexName RETURN name",
            {"indexName": self._index_name},
        )
        return bool(rows)

    async def drop_vector_index(self) -> bool:
        """Drop the index. Returns False when there was nothing to drop."""

        if not await self.vector_index_exists():
            return False
        await self._store.run_query(f"DROP INDEX {self._index_name}")
        logger.info("Dropped vector index", extra={"index": self._index_name})
        return True

    # ==================== Embeddings ====================

    async def set_action_embedding(self, action_id: str) -> list[float]:
        action = await self._repository.get_action_by_id(action_id)
        if action is None:
            raise NodeNotFoundError(f"Action with ID {action_id} not found")
        return await self._store_embedding(action, key="id", value=action_id)

    async def set_action_embedding_by_name(self, name: str) -> list[float]:
        action = await self._repository.get_action_by_name(name)
        if action is None:
            raise NodeNotFoundError(f"Action with name {name} not found")
        return await self._store_embedding(action, key="name", value=name)

    async def _store_embedding(self, action: ActionNode, *, key: str, value: str) -> list[float]:
        if self._embedder is None:
            raise RuntimeError("No embedding provider configured")
        embedding = await self._embedder.embed(
            action.description, EmbeddingTaskType.SEMANTIC_SIMILARITY
        )
        if not embedding:
            raise RuntimeError("Failed to generate embedding")

        await self._store.run_query(
            f"""
            MATCH (a:Action {{{key}: $value}})
            CALL db.create.setNodeVectorProperty(a, 'embedding', $embedding)
            RETURN a
            """,
            {"value": value, "embedding": embedding},
        )
        logger.info("Stored action embedding", extra={"action": action.name})
        return embedding

    # ==================== Similarity ====================

    async def find_similar(
        self, action_id: str, limit: int = 10, threshold: float = 0.7
    ) -> list[SimilarAction]:
        """Rank other actions by similarity to the given one.

        The reference action itself is never part of the result.
        """

        await self._require_index()
        action = await self._repository.get_action_by_id(action_id)
        if action is None:
            raise NodeNotFoundError(f"Action with ID {action_id} not found")
        if not action.embedding:
            raise EmbeddingMissingError(f"Action with ID {action_id} does not have an embedding")
        return await self._query_similar(
            key="id", value=action_id, limit=limit, threshold=threshold
        )

    async def find_similar_by_name(
        self, name: str, limit: int = 10, threshold: float = 0.7
    ) -> list[SimilarAction]:
        await self._require_index()
        action = await self._repository.get_action_by_name(name)
        if action is None:
            raise NodeNotFoundError(f"Action with name {name} not found")
        if not action.embedding:
            raise EmbeddingMissingError(f"Action with name {name} does not have an embedding")
        return await self._query_similar(key="name", value=name, limit=limit, threshold=threshold)

    async def _query_similar(
        self, *, key: str, value: str, limit: int, threshold: float
    ) -> list[SimilarAction]:
        # The reference node is its own nearest neighbour, so ask for one extra.
        rows = await self._store.run_query(
            f"""
            MATCH (a:Action {{{key}: $value}})
            WITH a LIMIT 1
            CALL db.index.vector.queryNodes($indexName, $candidates, a.embedding)
            YIELD node AS similar, score
            WHERE score >= $threshold AND similar.{key} <> $value
            RETURN similar.id AS id, similar.name AS name,
                   similar.description AS description, score
            ORDER BY score DESC
            LIMIT $limit
            """,
            {
                "value": value,
                "indexName": self._index_name,
                "candidates": limit + 1,
                "threshold": threshold,
                "limit": limit,
            },
        )
        return [
            SimilarAction(
                id=row.get("id"),
                name=row["name"],
                description=row.get("description") or "",
                score=float(row["score"]),
            )
            for row in rows
        ]

    async def similarity(self, action_id_a: str, action_id_b: str) -> float:
        rows = await self._store.run_query(
            """
            MATCH (a1:Action {id: $id1}), (a2:Action {id: $id2})
            WHERE a1.embedding IS NOT NULL AND a2.embedding IS NOT NULL
            RETURN vector.similarity.cosine(a1.embedding, a2.embedding) AS similarity
            LIMIT 1
            """,
            {"id1": action_id_a, "id2": action_id_b},
        )
        return _similarity_score(rows)

    async def similarity_by_name(self, name_a: str, name_b: str) -> float:
        rows = await self._store.run_query(
            """
            MATCH (a1:Action {name: $name1}), (a2:Action {name: $name2})
            WHERE a1.embedding IS NOT NULL AND a2.embedding IS NOT NULL
            RETURN vector.similarity.cosine(a1.embedding, a2.embedding) AS similarity
            LIMIT 1
            """,
            {"name1": name_a, "name2": name_b},
        )
        return _similarity_score(rows)

    async def _require_index(self) -> None:
        if not await self.vector_index_exists():
            raise VectorIndexMissingError(f"Vector index '{self._index_name}' does not exist")


def _similarity_score(rows: list[dict]) -> float:
    if not rows:
        raise EmbeddingMissingError("Could not calculate similarity, nodes may not have embeddings")
    return float(rows[0]["similarity"])
