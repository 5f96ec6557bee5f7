"""Abstract base class for embedding providers"""
from abc import ABC, abstractmethod
from typing import List


class EmbeddingProvider(ABC):
    """
    Abstract interface for embedding generation.

    Documents are the per-category texts extracted from medicine rows;
    queries are free-text user searches.
    """

    @abstractmethod
    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """
        Embed a batch of category texts.

        Returns:
            One vector per input text, in input order
        """
        pass

    @abstractmethod
    async def embed_query(self, text: str) -> List[float]:
        """Embed a single search query"""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier"""
        pass

    @abstractmethod
    def get_embedding_dim(self) -> int:
        """Return the dimensionality of embeddings"""
        pass
