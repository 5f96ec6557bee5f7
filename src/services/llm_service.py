import json
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy.orm import Session
from src.providers.llm.base import LLMProvider
from src.models import LLMCache
from src.config import settings

class LLMService:
    """LLM calls with response caching in the llm_cache table"""

    def __init__(self, llm: LLMProvider, db: Optional[Session] = None):
        self.llm = llm
        self.db = db

    @property
    def cache_enabled(self) -> bool:
        return self.db is not None and settings.enable_llm_cache

    async def cached_chat(
        self,
        messages: List[Dict[str, str]],
        task_type: str,
        validate: Optional[Callable[[str], Any]] = None,
        **kwargs
    ) -> dict:
        """
        Run a chat completion, reusing a stored response for identical requests.

        The cache key covers the task, the messages and the request options
        (e.g. response_format), together with provider and model.

        Args:
            validate: Optional check run on the reply before it is stored.
                Its return value is returned as "parsed"; if it raises, the
                reply is not cached and the exception propagates.
        """
        provider = self.llm.get_provider_name()
        model = self.llm.get_model_name()

        cache_key = f"{task_type}:" + json.dumps(
            {"messages": messages, "options": kwargs}, sort_keys=True
        )
        prompt_hash = LLMCache.hash_prompt(cache_key, provider, model)

        # Check cache first
        if self.cache_enabled:
            cached = self.db.query(LLMCache).filter(
                LLMCache.prompt_hash == prompt_hash
            ).first()

            if cached:
                return {
                    "result": cached.response,
                    "parsed": validate(cached.response) if validate else None,
                    "cached": True,
                    "provider": provider,
                    "model": model
                }

        response = await self.llm.chat(messages, **kwargs)
        parsed = validate(response) if validate else None

        if self.cache_enabled:
            self.db.add(LLMCache(
                prompt_hash=prompt_hash,
                prompt=cache_key,
                response=response,
                provider=provider,
                model=model
            ))
            self.db.commit()

        return {
            "result": response,
            "parsed": parsed,
            "cached": False,
            "provider": provider,
            "model": model
        }
