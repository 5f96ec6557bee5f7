from typing import AsyncIterator, Dict, List, Optional, Tuple
from anthropic import AsyncAnthropic
from .base import LLMProvider
from tenacity import retry, stop_after_attempt, wait_exponential

class AnthropicProvider(LLMProvider):
    """Anthropic LLM provider with automatic retries"""

    def __init__(self, api_key: str, model: str = "claude-3-5-sonnet-latest"):
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model

    @staticmethod
    def _split_system(messages: List[Dict[str, str]]) -> Tuple[Optional[str], List[Dict[str, str]]]:
        """Anthropic takes the system prompt as a parameter, not a message"""
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        turns = [m for m in messages if m["role"] != "system"]
        return ("\n\n".join(system_parts) or None), turns

    def _request_kwargs(self, messages: List[Dict[str, str]], kwargs: dict) -> dict:
        # response_format is an OpenAI-only option
        kwargs.pop("response_format", None)
        system, turns = self._split_system(messages)
        request = {
            "model": self.model,
            "max_tokens": kwargs.pop("max_tokens", 1024),
            "messages": turns,
            **kwargs
        }
        if system:
            request["system"] = system
        return request

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10))
    async def chat(self, messages: List[Dict[str, str]], **kwargs) -> str:
        """Generate completion via Anthropic API"""
        response = await self.client.messages.create(**self._request_kwargs(messages, dict(kwargs)))
        return response.content[0].text

    async def stream_chat(self, messages: List[Dict[str, str]], **kwargs) -> AsyncIterator[str]:
        async with self.client.messages.stream(**self._request_kwargs(messages, dict(kwargs))) as stream:
            async for text in stream.text_stream:
                if text:
                    yield text

    def get_provider_name(self) -> str:
        return "anthropic"

    def get_model_name(self) -> str:
        return self.model
