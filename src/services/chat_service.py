from typing import AsyncIterator, Dict, List, Optional
from src.providers.llm.base import LLMProvider
from src.providers.llm.factory import LLMFactory
from src.config import settings

# Roles the widget may send back as history
HISTORY_ROLES = ("user", "assistant")


class ChatService:
    """Chat widget backend: forwards the conversation and streams the reply"""

    def __init__(self, llm: Optional[LLMProvider] = None, system_prompt: str = None):
        self.llm = llm or LLMFactory.create_for_task("chat")
        self.system_prompt = system_prompt if system_prompt is not None else settings.chat_system_prompt

    def build_messages(self, message: str, history: Optional[List[Dict[str, str]]] = None) -> List[Dict[str, str]]:
        """System prompt, prior turns, then the new user message"""
        if not message or not message.strip():
            raise ValueError("Message must not be empty")

        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        for turn in history or []:
            # Clients cannot inject system prompts through history
            if turn.get("role") in HISTORY_ROLES and turn.get("content"):
                messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": "user", "content": message.strip()})
        return messages

    async def stream_reply(self, message: str, history: Optional[List[Dict[str, str]]] = None) -> AsyncIterator[str]:
        """Yield reply text deltas as the model produces them"""
        messages = self.build_messages(message, history)
        async for delta in self.llm.stream_chat(messages):
            yield delta
