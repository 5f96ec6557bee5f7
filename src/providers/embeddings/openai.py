"""OpenAI embedding provider implementation"""
from typing import List
import tiktoken
from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential
from .base import EmbeddingProvider

# Output dimension per OpenAI embedding model
MODEL_DIMENSIONS = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}

# Maximum input tokens accepted by the embedding endpoint
MAX_INPUT_TOKENS = 8191


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embedding provider with batch processing and automatic retries"""

    def __init__(self, api_key: str, model: str):
        """
        Initialize OpenAI embedding provider.

        Args:
            api_key: OpenAI API key
            model: Embedding model name (e.g., 'text-embedding-ada-002')
        """
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self._embedding_dim = MODEL_DIMENSIONS.get(model, 1536)
        self.encoding = tiktoken.get_encoding("cl100k_base")  # Used by ada-002 and text-embedding-3

    @property
    def embedding_dim(self) -> int:
        """Get embedding dimension for this model"""
        return self._embedding_dim

    def _prepare(self, text: str) -> str:
        """Flatten newlines and truncate to the model's token limit"""
        text = text.replace("\n", " ")
        tokens = self.encoding.encode(text)
        if len(tokens) > MAX_INPUT_TOKENS:
            text = self.encoding.decode(tokens[:MAX_INPUT_TOKENS])
        return text

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10))
    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple documents with batch processing.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors, in input order
        """
        if not texts:
            return []

        batch_size = 100
        all_embeddings = []

        for i in range(0, len(texts), batch_size):
            batch = [self._prepare(t) for t in texts[i:i + batch_size]]
            response = await self.client.embeddings.create(
                model=self.model,
                input=batch
            )
            # The API may return items out of order; index restores it
            ordered = sorted(response.data, key=lambda item: item.index)
            all_embeddings.extend(item.embedding for item in ordered)

        return all_embeddings

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10))
    async def embed_query(self, text: str) -> List[float]:
        """
        Generate embedding for a single query.

        Args:
            text: Query string to embed

        Returns:
            Embedding vector
        """
        response = await self.client.embeddings.create(
            model=self.model,
            input=self._prepare(text)
        )
        return response.data[0].embedding

    def get_provider_name(self) -> str:
        """Return provider identifier"""
        return "openai"

    def get_embedding_dim(self) -> int:
        """Return embedding dimensionality"""
        return self._embedding_dim
