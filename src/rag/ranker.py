"""LLM re-ranking of retrieved candidates and answer synthesis"""
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from src.providers.llm.base import LLMProvider
from src.providers.llm.factory import LLMFactory
from src.rag.parsing import parse_llm_json
from src.rag.retriever import Candidate
from src.config import settings

logger = logging.getLogger(__name__)

NO_MATCH_ANSWER = "I couldn't find any medicines in the dataset that match your query."


@dataclass
class RankedMatch:
    """A candidate the LLM judged relevant, in the LLM's order"""
    id: int
    text: str
    score: float
    name: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class RankedAnswer:
    """Final answer to a medicine query"""
    query: str
    answer: str
    matches: List[RankedMatch] = field(default_factory=list)
    candidates_considered: int = 0


RANKING_PROMPT = """User query:

"{query}"

Among the following candidates, identify those who match the user's query the most, ordered from best to worst match:
Candidates:
{candidates}

Return ONLY a JSON object with:
- "answer": a short natural-language answer to the user that names the matching medicines in order and explains why they match
- "matches": an array of objects with keys "id" (the candidate id) and "reason" (one sentence), best match first; leave out candidates that do not match

JSON:"""


class CandidateRanker:
    """Asks the ranking model to pick and order the best candidates"""

    def __init__(self, llm: Optional[LLMProvider] = None):
        self._llm = llm

    @property
    def llm(self) -> LLMProvider:
        """Lazy-load LLM provider."""
        if self._llm is None:
            self._llm = LLMFactory.create_for_task("ranking")
        return self._llm

    async def rank(self, query_text: str, candidates: List[Candidate]) -> RankedAnswer:
        """
        Re-rank candidates and write the answer.

        Match text and score are always taken from the candidates; ids the
        model invents are dropped.
        """
        if not candidates:
            return RankedAnswer(query=query_text, answer=NO_MATCH_ANSWER)

        candidates_json = json.dumps([{"id": c.id, "text": c.text} for c in candidates])
        prompt = RANKING_PROMPT.format(query=query_text, candidates=candidates_json)
        response = await self.llm.generate(prompt, max_tokens=settings.ranking_max_tokens)

        try:
            payload = parse_llm_json(response)
            answer, matches = self._read_payload(payload, candidates)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            # Fallback: keep retrieval order and show the model's text as-is
            logger.warning("Ranking reply not usable, falling back to score order: %s", e)
            answer = (response or "").strip() or NO_MATCH_ANSWER
            matches = [self._to_match(c) for c in candidates]

        return RankedAnswer(
            query=query_text,
            answer=answer,
            matches=matches,
            candidates_considered=len(candidates)
        )

    def _read_payload(self, payload, candidates: List[Candidate]):
        by_id: Dict[int, Candidate] = {c.id: c for c in candidates}

        # A bare array is the older reply shape: [{"id", "text"}, ...]
        if isinstance(payload, list):
            answer, raw_matches = None, payload
        elif isinstance(payload, dict):
            answer, raw_matches = payload.get("answer"), payload.get("matches") or []
        else:
            raise TypeError(f"Unexpected ranking payload type: {type(payload).__name__}")

        matches = []
        seen = set()
        for item in raw_matches:
            if not isinstance(item, dict) or "id" not in item:
                continue
            try:
                candidate_id = int(item["id"])
            except (TypeError, ValueError):
                continue
            if candidate_id not in by_id or candidate_id in seen:
                continue
            seen.add(candidate_id)
            matches.append(self._to_match(by_id[candidate_id], item.get("reason")))

        if not answer:
            answer = self._default_answer(matches)
        return str(answer).strip(), matches

    @staticmethod
    def _to_match(candidate: Candidate, reason: Optional[str] = None) -> RankedMatch:
        return RankedMatch(
            id=candidate.id,
            text=candidate.text,
            score=candidate.score,
            name=candidate.name,
            reason=reason
        )

    @staticmethod
    def _default_answer(matches: List[RankedMatch]) -> str:
        if not matches:
            return NO_MATCH_ANSWER
        names = [m.name or f"medicine #{m.id}" for m in matches]
        return "Best matching medicines: " + ", ".join(names) + "."
