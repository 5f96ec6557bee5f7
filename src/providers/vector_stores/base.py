"""Abstract base class for vector stores"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class VectorRecord:
    """A vector to upsert, keyed by a string id"""
    id: str
    values: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    """A similarity search hit"""
    id: str
    score: float  # Cosine similarity, higher is closer
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorStore(ABC):
    """
    Abstract interface for the category vector index.

    Every record carries a ``category`` metadata field so searches can be
    restricted to a single extracted category.
    """

    @abstractmethod
    def upsert(self, records: List[VectorRecord]) -> int:
        """
        Insert or overwrite records by id.

        Returns:
            Number of records written
        """
        pass

    @abstractmethod
    def query(
        self,
        vector: List[float],
        top_k: int = 10,
        category: Optional[str] = None
    ) -> List[VectorMatch]:
        """
        Find the nearest records to a vector.

        Args:
            vector: Query embedding
            top_k: Maximum number of matches
            category: Only match records whose metadata category equals this

        Returns:
            Matches sorted by score, best first
        """
        pass

    @abstractmethod
    def delete_all(self):
        """Remove every record from the store"""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of records in the store"""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier"""
        pass
