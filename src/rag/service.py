"""Query service for medicine search"""
import logging
from typing import Optional
from src.rag.retriever import CategoryRetriever
from src.rag.ranker import CandidateRanker, RankedAnswer
from src.config import settings

logger = logging.getLogger(__name__)


class MedicineSearchService:
    """High-level query orchestration: retrieve, keep the top candidates, re-rank"""

    def __init__(
        self,
        retriever: Optional[CategoryRetriever] = None,
        ranker: Optional[CandidateRanker] = None
    ):
        """Initialize search service"""
        self.retriever = retriever or CategoryRetriever()
        self.ranker = ranker or CandidateRanker()

    async def query(self, query_text: str) -> RankedAnswer:
        """
        Answer a free-text medicine query.

        Pipeline:
        1. Embed the query and search each category
        2. Aggregate scores per medicine
        3. Keep the top settings.ranking_candidates
        4. Let the LLM pick, order and explain the matches

        Returns:
            RankedAnswer with the answer text and ordered matches
        """
        candidates = await self.retriever.retrieve(query_text)
        top_candidates = candidates[:settings.ranking_candidates]
        logger.info(
            "Query %r: %d candidates, ranking top %d",
            query_text, len(candidates), len(top_candidates)
        )
        return await self.ranker.rank(query_text, top_candidates)
