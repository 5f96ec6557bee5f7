"""Cohere embedding provider implementation"""
import httpx
from typing import List
from tenacity import retry, stop_after_attempt, wait_exponential
from .base import EmbeddingProvider

# Light models produce smaller vectors than the full v3 models
MODEL_DIMENSIONS = {
    "embed-english-v3.0": 1024,
    "embed-multilingual-v3.0": 1024,
    "embed-english-light-v3.0": 384,
    "embed-multilingual-light-v3.0": 384,
}


class CohereEmbeddingProvider(EmbeddingProvider):
    """Cohere embedding provider with batch processing and automatic retries"""

    def __init__(self, api_key: str, model: str, base_url: str = "https://api.cohere.ai/v1"):
        """
        Initialize Cohere embedding provider.

        Args:
            api_key: Cohere API key
            model: Embedding model name (e.g., 'embed-english-v3.0')
            base_url: API root, overridable for proxies
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._embedding_dim = MODEL_DIMENSIONS.get(model, 1024)

    @property
    def embedding_dim(self) -> int:
        """Get embedding dimension for this model"""
        return self._embedding_dim

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    async def _embed(self, client: httpx.AsyncClient, texts: List[str], input_type: str, timeout: float) -> List[List[float]]:
        response = await client.post(
            f"{self.base_url}/embed",
            headers=self._headers(),
            json={
                "texts": texts,
                "model": self.model,
                "input_type": input_type,
                "truncate": "END"
            },
            timeout=timeout
        )
        response.raise_for_status()
        return response.json()["embeddings"]

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10))
    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for category texts, 96 per request (Cohere's limit).
        """
        if not texts:
            return []

        batch_size = 96
        all_embeddings = []

        async with httpx.AsyncClient() as client:
            for i in range(0, len(texts), batch_size):
                batch = texts[i:i + batch_size]
                all_embeddings.extend(
                    await self._embed(client, batch, "search_document", timeout=60.0)
                )

        return all_embeddings

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10))
    async def embed_query(self, text: str) -> List[float]:
        """Embed a search query (Cohere uses a distinct input type for queries)"""
        async with httpx.AsyncClient() as client:
            embeddings = await self._embed(client, [text], "search_query", timeout=30.0)
            return embeddings[0]

    def get_provider_name(self) -> str:
        """Return provider identifier"""
        return "cohere"

    def get_embedding_dim(self) -> int:
        """Return embedding dimensionality"""
        return self._embedding_dim
