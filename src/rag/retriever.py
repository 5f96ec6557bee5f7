"""Per-category vector retrieval with per-medicine score aggregation"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, field
from src.providers.embeddings.base import EmbeddingProvider
from src.providers.embeddings.factory import EmbeddingFactory
from src.providers.vector_stores.base import VectorMatch, VectorStore
from src.providers.vector_stores.factory import VectorStoreFactory
from src.config import settings

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """A medicine with its aggregated similarity to the query"""
    id: int
    text: str
    name: Optional[str] = None
    score: float = 0.0  # Sum of per-category match scores
    category_scores: Dict[str, float] = field(default_factory=dict)


class CategoryRetriever:
    """
    Embeds the query once and searches every category separately.

    A medicine that matches in several categories (e.g. both its uses and its
    side effects) accumulates the scores of all of them, so it ranks above a
    medicine that matches strongly in only one.
    """

    def __init__(
        self,
        embedding_provider: Optional[EmbeddingProvider] = None,
        vector_store: Optional[VectorStore] = None
    ):
        self.embedding_provider = embedding_provider if embedding_provider is not None else EmbeddingFactory.create()
        self.vector_store = vector_store if vector_store is not None else VectorStoreFactory.create()

    async def retrieve(
        self,
        query_text: str,
        categories: Optional[Sequence[str]] = None,
        top_k: Optional[int] = None
    ) -> List[Candidate]:
        """
        Retrieve candidates for a free-text query.

        Args:
            query_text: User query
            categories: Categories to search (default: settings.extraction_categories)
            top_k: Matches per category (default: settings.retrieval_top_k)

        Returns:
            Candidates by total score, best first; ties by id
        """
        if not query_text or not query_text.strip():
            raise ValueError("Query text must not be empty")

        categories = list(categories or settings.extraction_categories)
        top_k = top_k or settings.retrieval_top_k

        query_embedding = await self.embedding_provider.embed_query(query_text)

        candidates: Dict[int, Candidate] = {}
        for category in categories:
            matches = await asyncio.to_thread(
                self.vector_store.query, query_embedding, top_k=top_k, category=category
            )
            logger.debug("Category %s: %d matches", category, len(matches))
            for match in matches:
                if match.score < settings.similarity_threshold:
                    continue
                self._accumulate(candidates, category, match)

        return sorted(candidates.values(), key=lambda c: (-c.score, c.id))

    @staticmethod
    def _accumulate(candidates: Dict[int, Candidate], category: str, match: VectorMatch):
        metadata = match.metadata
        if "medicine_id" not in metadata:
            logger.warning("Vector %s has no medicine_id metadata, ignoring", match.id)
            return
        # Pinecone returns numeric metadata as floats
        medicine_id = int(metadata["medicine_id"])

        candidate = candidates.get(medicine_id)
        if candidate is None:
            candidate = Candidate(
                id=medicine_id,
                text=metadata.get("text", ""),
                name=metadata.get("name")
            )
            candidates[medicine_id] = candidate

        # One vector per (medicine, category); keep the best if the store repeats it
        previous = candidate.category_scores.get(category)
        if previous is not None:
            if match.score <= previous:
                return
            candidate.score -= previous
        candidate.category_scores[category] = match.score
        candidate.score += match.score
