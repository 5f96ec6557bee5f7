"""Vector store providers module"""
from .base import VectorStore, VectorRecord, VectorMatch
from .factory import VectorStoreFactory

__all__ = [
    "VectorStore",
    "VectorRecord",
    "VectorMatch",
    "VectorStoreFactory",
]
