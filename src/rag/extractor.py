"""
Category extraction - LLM-based structured fields from a medicine row.

Each row text ("name: ... . sideEffect0: ... . use0: ...") is turned into a
small JSON object with one free-text value per category. Every category is
later embedded on its own so queries can be matched per category.
"""
import json
import logging
from typing import Dict, List, Optional, Sequence
from sqlalchemy.orm import Session
from src.providers.llm.base import LLMProvider
from src.providers.llm.factory import LLMFactory
from src.services.llm_service import LLMService
from src.rag.parsing import parse_llm_json

logger = logging.getLogger(__name__)


# Category key -> what the LLM should extract or predict for it
CATEGORY_DEFINITIONS: Dict[str, str] = {
    "sideEffects": "what are the possible side effects of the medication",
    "uses": "what conditions or symptoms the medication is used to treat",
    "substitutes": "which medicines can be used as substitutes",
    "therapeuticClass": "the therapeutic class of the medication",
    "chemicalClass": "the chemical class of the active ingredient",
    "actionClass": "how the medication acts (its action class)",
    "habitForming": "whether the medication is habit forming and why",
}

SYSTEM_PROMPT = (
    "You extract information from a medicine dataset and return them "
    "in a structured JSON format."
)

SCHEMA_NAME = "medicine_extraction_schema"


class ExtractionError(ValueError):
    """Raised when no usable category can be extracted from a row"""


def category_title(category: str) -> str:
    """'sideEffects' -> 'Side effects'"""
    words = []
    current = ""
    for ch in category:
        if ch.isupper() and current:
            words.append(current)
            current = ch.lower()
        else:
            current += ch
    words.append(current)
    return " ".join(words).capitalize()


def validate_categories(categories: Sequence[str]) -> List[str]:
    """Reject unknown category keys; keep order, drop repeats"""
    unknown = [c for c in categories if c not in CATEGORY_DEFINITIONS]
    if unknown:
        raise ValueError(
            f"Unknown extraction categories: {', '.join(unknown)}. "
            f"Supported: {', '.join(CATEGORY_DEFINITIONS)}"
        )
    if not categories:
        raise ValueError("At least one extraction category is required")
    return list(dict.fromkeys(categories))


def build_extraction_schema(categories: Sequence[str]) -> dict:
    """JSON schema with one required string property per category"""
    return {
        "type": "object",
        "properties": {
            category: {
                "description": category_title(category),
                "type": "string",
            }
            for category in categories
        },
        "required": list(categories),
        "additionalProperties": False,
    }


def build_extraction_messages(data: str, categories: Sequence[str]) -> List[Dict[str, str]]:
    """System + user messages asking for the given categories"""
    bullets = "\n".join(
        f"  - {category_title(c)}: {CATEGORY_DEFINITIONS[c]}."
        for c in categories
    )
    keys = ", ".join(f'"{c}"' for c in categories)
    user_prompt = f"""Extract or predict the following information from the given data:
{bullets}

Return ONLY a JSON object with the keys {keys}, each holding a single string.

Data:
{data}"""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


class CategoryExtractor:
    """Extracts per-category text for a medicine row using an LLM"""

    def __init__(
        self,
        categories: Sequence[str],
        llm: Optional[LLMProvider] = None,
        db: Optional[Session] = None
    ):
        """
        Args:
            categories: Category keys to extract (see CATEGORY_DEFINITIONS)
            llm: Optional LLM provider. If not provided, uses the extraction model
            db: Optional session; enables the llm_cache table
        """
        self.categories = validate_categories(categories)
        self._llm = llm
        self.db = db

    @property
    def llm(self) -> LLMProvider:
        """Lazy-load LLM provider."""
        if self._llm is None:
            self._llm = LLMFactory.create_for_task("extraction")
        return self._llm

    def _request_options(self) -> dict:
        # Structured outputs are OpenAI-only; other providers rely on the prompt
        if self.llm.get_provider_name() != "openai":
            return {}
        return {
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": SCHEMA_NAME,
                    "schema": build_extraction_schema(self.categories),
                    "strict": True,
                },
            }
        }

    async def extract(self, text: str) -> Dict[str, str]:
        """
        Extract categories from a row text.

        Returns:
            category -> non-empty text, only for requested categories

        Raises:
            ExtractionError: Empty input, unparseable reply, or nothing usable
        """
        if not text or not text.strip():
            raise ExtractionError("Empty or whitespace-only row provided")

        messages = build_extraction_messages(text, self.categories)
        service = LLMService(self.llm, self.db)
        # Unusable replies raise inside validate and never reach the cache
        result = await service.cached_chat(
            messages,
            task_type="category_extraction",
            validate=self._parse_reply,
            **self._request_options()
        )
        return result["parsed"]

    def _parse_reply(self, response: str) -> Dict[str, str]:
        try:
            data = parse_llm_json(response)
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Failed to parse LLM response as JSON: {e}") from e
        if not isinstance(data, dict):
            raise ExtractionError(f"Expected a JSON object, got {type(data).__name__}")

        return self._normalize(data)

    def _normalize(self, data: dict) -> Dict[str, str]:
        extracted = {}
        for category in self.categories:
            value = data.get(category)
            if isinstance(value, list):
                value = ", ".join(str(v).strip() for v in value if v is not None and str(v).strip())
            elif value is not None:
                value = str(value).strip()
            if not value:
                logger.warning("Category %s missing from extraction reply", category)
                continue
            extracted[category] = value

        if not extracted:
            raise ExtractionError(
                f"No usable categories in extraction reply (expected {', '.join(self.categories)})"
            )
        return extracted
