from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration with environment variable support"""

    # Database
    database_url: str = "sqlite:///./data/medicines.db"

    # App
    app_name: str = "Medicine Finder"
    debug: bool = False
    log_level: str = "INFO"

    # LLM Configuration (REQUIRED - set in .env)
    llm_provider: str = "openai"  # 'openai' or 'anthropic'
    llm_model: str = "gpt-4o"
    llm_api_key: str = ""  # Required: OpenAI or Anthropic API key

    # Per-task model overrides. If empty, falls back to llm_model
    chat_model: str = "gpt-4o-mini"
    extraction_model: str = "gpt-4o"
    ranking_model: str = "gpt-4"
    ranking_max_tokens: int = 1000
    chat_system_prompt: str = (
        "You are a helpful assistant that answers questions about medicines, "
        "their uses, side effects and substitutes. Keep answers short and "
        "remind the user to consult a healthcare professional when relevant."
    )

    # Embedding Configuration
    embedding_provider: str = "openai"  # 'openai' or 'cohere'
    embedding_model: str = "text-embedding-ada-002"
    embedding_api_key: str = ""  # Optional: defaults to llm_api_key if empty

    # Vector store
    vector_store_provider: str = "pinecone"  # 'pinecone' or 'faiss'
    pinecone_api_key: str = ""
    pinecone_index_name: str = "medicines"
    pinecone_host: str = ""  # Optional: skips the host lookup when set
    pinecone_namespace: str = ""
    pinecone_cloud: str = "aws"
    pinecone_region: str = "us-east-1"
    faiss_db_path: str = "data/faiss_db"

    # Dataset
    dataset_path: str = "data/medicine_dataset_reduced.csv"
    extraction_categories: List[str] = ["sideEffects", "uses", "substitutes"]

    # Retrieval
    retrieval_top_k: int = 10
    ranking_candidates: int = 5
    similarity_threshold: float = 0.0  # Minimum cosine similarity per match

    # Ingestion
    ingest_fail_fast: bool = False

    # Cache
    enable_llm_cache: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def model_for(self, override: str) -> str:
        """Resolve a per-task model override, falling back to llm_model"""
        return override or self.llm_model

settings = Settings()
