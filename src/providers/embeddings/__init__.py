"""
Embedding providers for medicine category texts and user queries.

Ingestion and querying must share one provider and model; the index
dimension follows get_embedding_dim().
"""
from .base import EmbeddingProvider
from .factory import EmbeddingFactory
from .openai import MODEL_DIMENSIONS as OPENAI_DIMENSIONS, OpenAIEmbeddingProvider
from .cohere import MODEL_DIMENSIONS as COHERE_DIMENSIONS, CohereEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "EmbeddingFactory",
    "OpenAIEmbeddingProvider",
    "CohereEmbeddingProvider",
    "OPENAI_DIMENSIONS",
    "COHERE_DIMENSIONS",
]
