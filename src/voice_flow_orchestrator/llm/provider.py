"""Abstract base class for embedding providers."""

from abc import ABC, abstractmethod
from enum import Enum


class EmbeddingTaskType(str, Enum):
    """What an embedding will be used for.

    Providers that can tune embeddings per task use this hint; others ignore it.
    """

    SEMANTIC_SIMILARITY = "SEMANTIC_SIMILARITY"
    CLASSIFICATION = "CLASSIFICATION"
    CLUSTERING = "CLUSTERING"
    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"
    QUESTION_ANSWERING = "QUESTION_ANSWERING"
    FACT_VERIFICATION = "FACT_VERIFICATION"
    CODE_RETRIEVAL_QUERY = "CODE_RETRIEVAL_QUERY"


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    This interface allows pluggable embedding backends for action similarity search.
    """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Length of every vector this provider returns."""
        pass

    @abstractmethod
    async def embed(
        self,
        text: str,
        task_type: EmbeddingTaskType = EmbeddingTaskType.SEMANTIC_SIMILARITY,
    ) -> list[float]:
        """Compute the embedding of a text.

        Args:
            text: The text to embed.
            task_type: Intended use of the embedding. This is a hint only:
                providers without task-specific embeddings (OpenAI) ignore it,
                so the same text yields the same vector for every task type.

        Returns:
            The embedding vector.
        """
        pass

    async def close(self) -> None:
        """Release any client resources."""
        return None
