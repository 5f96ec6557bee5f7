"""Factory for creating vector stores from configuration"""
from .base import VectorStore
from src.config import settings


class VectorStoreFactory:
    """
    Factory for creating the category vector index from settings.

    Supported providers:
    - pinecone: hosted Pinecone index (production)
    - faiss: local FAISS index persisted under settings.faiss_db_path
    """

    @staticmethod
    def create() -> VectorStore:
        """
        Create vector store based on settings.vector_store_provider.

        Raises:
            ValueError: If provider not supported or not configured
        """
        provider = settings.vector_store_provider.lower()

        if provider == "pinecone":
            if not settings.pinecone_api_key:
                raise ValueError("PINECONE_API_KEY not configured. Set it in .env")
            from .pinecone import PineconeVectorStore
            return PineconeVectorStore(
                api_key=settings.pinecone_api_key,
                index_name=settings.pinecone_index_name,
                host=settings.pinecone_host,
                namespace=settings.pinecone_namespace,
                cloud=settings.pinecone_cloud,
                region=settings.pinecone_region
            )
        if provider == "faiss":
            from .faiss import FAISSVectorStore
            return FAISSVectorStore(persist_directory=settings.faiss_db_path)
        raise ValueError(f"Unsupported vector store provider: {provider}. Supported: 'pinecone', 'faiss'")
