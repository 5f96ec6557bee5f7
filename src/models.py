from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from datetime import datetime, timezone
import hashlib

from .database import Base


def utcnow():
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class Medicine(Base):
    """
    A medicine row that went through the ingestion pipeline.

    The primary key is the row id assigned by the dataset parser (position
    after de-duplication), which is also the id embedded in every vector id
    and vector metadata for this medicine.
    """
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, index=True, autoincrement=False)
    name = Column(String(255), nullable=True)
    text = Column(Text, nullable=False)  # "col: value. col: value" row text
    categories = Column(JSON, default=dict)  # category -> extracted text
    vector_ids = Column(JSON, default=list)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class LLMCache(Base):
    """Cache for LLM responses to avoid re-billing extraction on re-ingestion"""
    __tablename__ = "llm_cache"

    id = Column(Integer, primary_key=True, index=True)
    prompt_hash = Column(String(64), unique=True, index=True)
    prompt = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    provider = Column(String(50), nullable=False)
    model = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    @staticmethod
    def hash_prompt(prompt: str, provider: str, model: str) -> str:
        """Create unique hash for prompt + provider + model"""
        combined = f"{prompt}:{provider}:{model}"
        return hashlib.sha256(combined.encode()).hexdigest()
