"""Shared fakes for provider-free tests"""
import json
import math
import re
import threading
from typing import AsyncIterator, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.database import Base
from src.providers.llm.base import LLMProvider
from src.providers.embeddings.base import EmbeddingProvider
from src.providers.vector_stores.base import VectorMatch, VectorRecord, VectorStore
from src.rag.extractor import SYSTEM_PROMPT

# Test database (SQLite in /tmp for container compatibility)
SQLALCHEMY_DATABASE_URL = "sqlite:////tmp/test_medicines.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Drop and recreate tables to ensure clean state
Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)


# ============================================================================
# LLM
# ============================================================================

COLUMN_TO_CATEGORY = {
    "sideEffect": "sideEffects",
    "use": "uses",
    "substitute": "substitutes",
}


def fake_extraction(data: str) -> Dict[str, str]:
    """Pull the numbered columns out of a row text, like a perfect extractor would"""
    found: Dict[str, List[str]] = {}
    for part in data.split(". "):
        match = re.match(r"(sideEffect|use|substitute)\d+: (.+)", part.strip())
        if match:
            found.setdefault(COLUMN_TO_CATEGORY[match.group(1)], []).append(match.group(2))
    return {category: ", ".join(values) for category, values in found.items()}


class MockLLMProvider(LLMProvider):
    """Answers extraction and ranking prompts deterministically, echoes chat"""

    def __init__(self, chat_reply: str = "Mocked reply", ranking_reply: Optional[str] = None):
        self.chat_reply = chat_reply
        self.ranking_reply = ranking_reply
        self.calls: List[List[Dict[str, str]]] = []
        self.kwargs: List[dict] = []

    async def chat(self, messages, **kwargs) -> str:
        self.calls.append(messages)
        self.kwargs.append(kwargs)
        if messages[0]["role"] == "system" and messages[0]["content"] == SYSTEM_PROMPT:
            data = messages[-1]["content"].split("Data:\n", 1)[1]
            return json.dumps(fake_extraction(data))

        content = messages[-1]["content"]
        if "Candidates:" in content:
            if self.ranking_reply is not None:
                return self.ranking_reply
            block = content.split("Candidates:\n", 1)[1].split("\n\nReturn ONLY", 1)[0]
            candidates = json.loads(block)
            best = candidates[:2]
            return json.dumps({
                "answer": "Best matches: " + ", ".join(str(c["id"]) for c in best),
                "matches": [{"id": c["id"], "reason": "mentions the query"} for c in best],
            })
        return self.chat_reply

    async def stream_chat(self, messages, **kwargs) -> AsyncIterator[str]:
        self.calls.append(messages)
        for word in self.chat_reply.split(" "):
            yield word + " "

    def get_provider_name(self) -> str:
        return "mock_provider"

    def get_model_name(self) -> str:
        return "mock_model"


# ============================================================================
# Embeddings
# ============================================================================

VOCABULARY = [
    "nausea", "vomiting", "diarrhea", "fever", "pain", "headache", "drowsiness",
    "dizziness", "anxiety", "panic", "cough", "mucus", "bacterial", "infections",
    "allergies", "allergic", "sneezing", "depression", "constipation", "tablet", "syrup",
]


def bag_of_words(text: str) -> List[float]:
    words = re.findall(r"[a-z]+", text.lower())
    vector = [float(words.count(term)) for term in VOCABULARY]
    # Constant component keeps every vector non-zero
    vector.append(0.1)
    return vector


class FakeEmbeddingProvider(EmbeddingProvider):
    """Vocabulary count vectors: texts sharing words are similar"""

    def __init__(self):
        self.document_calls: List[List[str]] = []
        self.query_calls: List[str] = []

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls.append(list(texts))
        return [bag_of_words(t) for t in texts]

    async def embed_query(self, text: str) -> List[float]:
        self.query_calls.append(text)
        return bag_of_words(text)

    def get_provider_name(self) -> str:
        return "fake"

    def get_embedding_dim(self) -> int:
        return len(VOCABULARY) + 1


# ============================================================================
# Vector store
# ============================================================================

def cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStore):
    """Exact cosine search over a dict, same contract as Pinecone"""

    def __init__(self):
        self.records: Dict[str, VectorRecord] = {}
        self.queries: List[Optional[str]] = []
        # Idents of the threads that called into the store
        self.threads: set = set()

    def upsert(self, records: List[VectorRecord]) -> int:
        self.threads.add(threading.get_ident())
        for record in records:
            self.records[record.id] = record
        return len(records)

    def query(self, vector, top_k=10, category=None) -> List[VectorMatch]:
        self.threads.add(threading.get_ident())
        self.queries.append(category)
        matches = [
            VectorMatch(id=r.id, score=cosine(vector, r.values), metadata=dict(r.metadata))
            for r in self.records.values()
            if category is None or r.metadata.get("category") == category
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    def delete_all(self):
        self.threads.add(threading.get_ident())
        self.records.clear()

    def count(self) -> int:
        return len(self.records)

    def get_provider_name(self) -> str:
        return "memory"


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def mock_llm():
    return MockLLMProvider()


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddingProvider()


@pytest.fixture
def memory_store():
    return InMemoryVectorStore()


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_database():
    """Clean database before each test"""
    from src.models import Medicine, LLMCache
    db = TestingSessionLocal()
    db.query(Medicine).delete()
    db.query(LLMCache).delete()
    db.commit()
    db.close()
