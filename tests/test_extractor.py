"""Category extraction: prompt, schema, reply parsing and caching"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models import LLMCache
from src.rag.extractor import (
    CategoryExtractor, ExtractionError, SYSTEM_PROMPT, SCHEMA_NAME,
    build_extraction_messages, build_extraction_schema, category_title,
    validate_categories
)
from src.rag.parsing import parse_llm_json

ROW = "id: 5. name: dolo 650 tablet. sideEffect0: Nausea. sideEffect1: Vomiting. use0: Treatment of Fever"


def stub_llm(reply: str, provider: str = "openai"):
    llm = MagicMock()
    llm.chat = AsyncMock(return_value=reply)
    llm.get_provider_name.return_value = provider
    llm.get_model_name.return_value = "stub-model"
    return llm


class TestPromptBuilding:

    def test_category_title(self):
        assert category_title("sideEffects") == "Side effects"
        assert category_title("uses") == "Uses"
        assert category_title("habitForming") == "Habit forming"

    def test_schema_requires_every_category(self):
        schema = build_extraction_schema(["sideEffects", "uses"])
        assert schema["required"] == ["sideEffects", "uses"]
        assert schema["properties"]["sideEffects"] == {"description": "Side effects", "type": "string"}
        assert schema["additionalProperties"] is False

    def test_messages(self):
        messages = build_extraction_messages(ROW, ["sideEffects"])
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        user = messages[1]["content"]
        assert "- Side effects: what are the possible side effects" in user
        assert "(sideEffects)" not in user
        assert '"sideEffects"' in user
        assert user.endswith("Data:\n" + ROW)

    def test_validate_categories(self):
        assert validate_categories(["uses", "uses", "sideEffects"]) == ["uses", "sideEffects"]
        with pytest.raises(ValueError, match="Unknown extraction categories: dosage"):
            validate_categories(["dosage"])
        with pytest.raises(ValueError):
            validate_categories([])


class TestReplyParsing:

    def test_parse_plain_json(self):
        assert parse_llm_json('{"uses": "fever"}') == {"uses": "fever"}

    def test_parse_code_fence(self):
        assert parse_llm_json('```json\n{"uses": "fever"}\n```') == {"uses": "fever"}

    def test_parse_with_prose(self):
        assert parse_llm_json('Here you go: [{"id": 1}] hope it helps') == [{"id": 1}]

    def test_parse_invalid(self):
        with pytest.raises(json.JSONDecodeError):
            parse_llm_json("no json here")


class TestCategoryExtractor:

    @pytest.mark.asyncio
    async def test_extract_uses_json_schema_for_openai(self):
        llm = stub_llm('{"sideEffects": "Nausea, Vomiting", "uses": "Fever"}')
        extractor = CategoryExtractor(["sideEffects", "uses"], llm=llm)

        result = await extractor.extract(ROW)

        assert result == {"sideEffects": "Nausea, Vomiting", "uses": "Fever"}
        kwargs = llm.chat.call_args.kwargs
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["name"] == SCHEMA_NAME

    @pytest.mark.asyncio
    async def test_extract_without_structured_output_for_other_providers(self):
        llm = stub_llm('```json\n{"sideEffects": "Nausea"}\n```', provider="anthropic")
        extractor = CategoryExtractor(["sideEffects"], llm=llm)

        assert await extractor.extract(ROW) == {"sideEffects": "Nausea"}
        assert "response_format" not in llm.chat.call_args.kwargs

    @pytest.mark.asyncio
    async def test_list_values_are_joined_and_unknown_keys_dropped(self):
        llm = stub_llm('{"sideEffects": ["Nausea", " Vomiting "], "price": "10"}')
        extractor = CategoryExtractor(["sideEffects"], llm=llm)
        assert await extractor.extract(ROW) == {"sideEffects": "Nausea, Vomiting"}

    @pytest.mark.asyncio
    async def test_missing_category_is_dropped(self):
        llm = stub_llm('{"sideEffects": "Nausea", "uses": ""}')
        extractor = CategoryExtractor(["sideEffects", "uses"], llm=llm)
        assert await extractor.extract(ROW) == {"sideEffects": "Nausea"}

    @pytest.mark.asyncio
    async def test_nothing_usable_raises(self):
        extractor = CategoryExtractor(["sideEffects"], llm=stub_llm('{"uses": "Fever"}'))
        with pytest.raises(ExtractionError, match="No usable categories"):
            await extractor.extract(ROW)

    @pytest.mark.asyncio
    async def test_non_json_reply_raises(self):
        extractor = CategoryExtractor(["sideEffects"], llm=stub_llm("Sorry, I can't help"))
        with pytest.raises(ExtractionError, match="Failed to parse"):
            await extractor.extract(ROW)

    @pytest.mark.asyncio
    async def test_array_reply_raises(self):
        extractor = CategoryExtractor(["sideEffects"], llm=stub_llm('["Nausea"]'))
        with pytest.raises(ExtractionError, match="Expected a JSON object"):
            await extractor.extract(ROW)

    @pytest.mark.asyncio
    async def test_empty_row_raises(self):
        llm = stub_llm("{}")
        extractor = CategoryExtractor(["sideEffects"], llm=llm)
        with pytest.raises(ExtractionError):
            await extractor.extract("   ")
        llm.chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_replies_are_cached(self, db_session):
        llm = stub_llm('{"sideEffects": "Nausea"}')
        extractor = CategoryExtractor(["sideEffects"], llm=llm, db=db_session)

        first = await extractor.extract(ROW)
        second = await extractor.extract(ROW)

        assert first == second == {"sideEffects": "Nausea"}
        assert llm.chat.await_count == 1
        assert db_session.query(LLMCache).count() == 1

    @pytest.mark.asyncio
    async def test_cache_key_includes_categories(self, db_session):
        llm = stub_llm('{"sideEffects": "Nausea", "uses": "Fever"}')
        await CategoryExtractor(["sideEffects"], llm=llm, db=db_session).extract(ROW)
        await CategoryExtractor(["sideEffects", "uses"], llm=llm, db=db_session).extract(ROW)
        assert llm.chat.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_reply", [
        "Sorry, I cannot help with that.",
        '["Nausea"]',
        '{"sideEffects": ""}',
    ])
    async def test_unusable_reply_is_not_cached(self, db_session, bad_reply):
        llm = stub_llm(bad_reply)
        llm.chat.side_effect = [bad_reply, '{"sideEffects": "Nausea"}']
        extractor = CategoryExtractor(["sideEffects"], llm=llm, db=db_session)

        with pytest.raises(ExtractionError):
            await extractor.extract(ROW)
        assert db_session.query(LLMCache).count() == 0

        # A later run asks the LLM again and can recover
        assert await extractor.extract(ROW) == {"sideEffects": "Nausea"}
        assert llm.chat.await_count == 2
        assert db_session.query(LLMCache).count() == 1
