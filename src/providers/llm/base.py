from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, List

class LLMProvider(ABC):
    """Abstract base class for LLM providers"""

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate completion from a single user prompt"""
        return await self.chat([{"role": "user", "content": prompt}], **kwargs)

    @abstractmethod
    async def chat(self, messages: List[Dict[str, str]], **kwargs) -> str:
        """Generate completion from a list of {role, content} messages"""
        pass

    @abstractmethod
    def stream_chat(self, messages: List[Dict[str, str]], **kwargs) -> AsyncIterator[str]:
        """Stream completion text deltas for a list of messages"""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return provider identifier"""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Return model name"""
        pass
