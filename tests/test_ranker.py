"""LLM re-ranking and answer synthesis"""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.rag.ranker import NO_MATCH_ANSWER, CandidateRanker, RANKING_PROMPT
from src.rag.retriever import Candidate
from src.rag.service import MedicineSearchService

CANDIDATES = [
    Candidate(id=4, text="name: dolo 650 tablet. use0: Fever", name="dolo 650 tablet", score=1.4),
    Candidate(id=0, text="name: augmentin. use0: Bacterial infections", name="augmentin", score=0.9),
    Candidate(id=3, text="name: allegra. use0: Allergies", name="allegra", score=0.5),
]


def stub_llm(reply: str):
    llm = MagicMock()
    llm.generate = AsyncMock(return_value=reply)
    return llm


@pytest.mark.asyncio
async def test_rank_uses_llm_order_and_candidate_data():
    reply = json.dumps({
        "answer": "Dolo 650 is used for fever.",
        "matches": [{"id": 4, "reason": "treats fever"}, {"id": 3, "reason": "weak"}],
    })
    ranker = CandidateRanker(llm=stub_llm(reply))

    result = await ranker.rank("something for fever", CANDIDATES)

    assert result.answer == "Dolo 650 is used for fever."
    assert [m.id for m in result.matches] == [4, 3]
    assert result.matches[0].text == CANDIDATES[0].text
    assert result.matches[0].score == 1.4
    assert result.matches[0].reason == "treats fever"
    assert result.candidates_considered == 3


@pytest.mark.asyncio
async def test_prompt_contains_query_and_candidates():
    llm = stub_llm('{"answer": "ok", "matches": []}')
    await CandidateRanker(llm=llm).rank("fever", CANDIDATES)

    prompt = llm.generate.call_args.args[0]
    assert '"fever"' in prompt
    assert json.dumps([{"id": c.id, "text": c.text} for c in CANDIDATES]) in prompt
    assert "max_tokens" in llm.generate.call_args.kwargs


@pytest.mark.asyncio
async def test_unknown_and_duplicate_ids_are_dropped():
    reply = json.dumps({"answer": "x", "matches": [{"id": 99}, {"id": "0"}, {"id": 0}, {"text": "no id"}]})
    result = await CandidateRanker(llm=stub_llm(reply)).rank("q", CANDIDATES)
    assert [m.id for m in result.matches] == [0]


@pytest.mark.asyncio
async def test_bare_array_reply_is_accepted():
    reply = json.dumps([{"id": 0, "text": "ignored"}, {"id": 4, "text": "ignored"}])
    result = await CandidateRanker(llm=stub_llm(reply)).rank("q", CANDIDATES)

    assert [m.id for m in result.matches] == [0, 4]
    assert result.matches[0].text == CANDIDATES[1].text
    assert result.answer == "Best matching medicines: augmentin, dolo 650 tablet."


@pytest.mark.asyncio
async def test_unparseable_reply_falls_back_to_score_order():
    result = await CandidateRanker(llm=stub_llm("Dolo is probably best.")).rank("q", CANDIDATES)

    assert result.answer == "Dolo is probably best."
    assert [m.id for m in result.matches] == [4, 0, 3]


@pytest.mark.asyncio
async def test_no_candidates_skips_llm():
    llm = stub_llm("unused")
    result = await CandidateRanker(llm=llm).rank("q", [])

    assert result.answer == NO_MATCH_ANSWER
    assert result.matches == []
    llm.generate.assert_not_called()


def test_ranking_prompt_template_formats():
    prompt = RANKING_PROMPT.format(query="q", candidates="[]")
    assert "Candidates:\n[]" in prompt


@pytest.mark.asyncio
async def test_search_service_limits_candidates():
    retriever = MagicMock()
    retriever.retrieve = AsyncMock(return_value=CANDIDATES)
    ranker = MagicMock()
    ranker.rank = AsyncMock(return_value="ranked")

    with patch("src.config.settings.ranking_candidates", 2):
        result = await MedicineSearchService(retriever=retriever, ranker=ranker).query("fever")

    assert result == "ranked"
    ranker.rank.assert_awaited_once_with("fever", CANDIDATES[:2])
