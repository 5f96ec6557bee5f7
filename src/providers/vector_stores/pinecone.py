"""Pinecone vector store for medicine category embeddings"""
import logging
from typing import Any, Dict, List, Optional
from pinecone import Pinecone, ServerlessSpec
from pinecone.exceptions import NotFoundException
from .base import VectorMatch, VectorRecord, VectorStore

logger = logging.getLogger(__name__)


def _clean_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Pinecone rejects null metadata values"""
    return {k: v for k, v in metadata.items() if v is not None}


class PineconeVectorStore(VectorStore):
    """Hosted Pinecone index with category metadata filtering"""

    UPSERT_BATCH_SIZE = 100

    def __init__(
        self,
        api_key: str,
        index_name: str,
        host: str = "",
        namespace: str = "",
        cloud: str = "aws",
        region: str = "us-east-1",
        client: Optional[Pinecone] = None
    ):
        """
        Connect to a Pinecone index.

        Args:
            api_key: Pinecone API key
            index_name: Index name (e.g., 'medicines')
            host: Index host; when set the SDK skips the describe call
            namespace: Namespace for all reads and writes ('' = default)
            cloud: Cloud used by ensure_index for serverless creation
            region: Region used by ensure_index for serverless creation
            client: Pre-built client (tests)
        """
        self.client = client or Pinecone(api_key=api_key)
        self.index_name = index_name
        self.host = host
        self.namespace = namespace
        self.cloud = cloud
        self.region = region
        self._index = None

    @property
    def index(self):
        """Lazily resolve the index handle (ensure_index may create it first)"""
        if self._index is None:
            if self.host:
                self._index = self.client.Index(name=self.index_name, host=self.host)
            else:
                self._index = self.client.Index(name=self.index_name)
        return self._index

    def ensure_index(self, dimension: int, metric: str = "cosine") -> bool:
        """
        Create a serverless index when it does not exist yet.

        Returns:
            True if the index was created
        """
        if self.index_name in self.client.list_indexes().names():
            return False
        logger.info("Creating Pinecone index %s (dim=%d, metric=%s)", self.index_name, dimension, metric)
        self.client.create_index(
            name=self.index_name,
            dimension=dimension,
            metric=metric,
            spec=ServerlessSpec(cloud=self.cloud, region=self.region)
        )
        self._index = None
        return True

    def upsert(self, records: List[VectorRecord]) -> int:
        if not records:
            return 0
        written = 0
        for i in range(0, len(records), self.UPSERT_BATCH_SIZE):
            batch = records[i:i + self.UPSERT_BATCH_SIZE]
            self.index.upsert(
                vectors=[
                    {"id": r.id, "values": r.values, "metadata": _clean_metadata(r.metadata)}
                    for r in batch
                ],
                namespace=self.namespace
            )
            written += len(batch)
        return written

    def query(
        self,
        vector: List[float],
        top_k: int = 10,
        category: Optional[str] = None
    ) -> List[VectorMatch]:
        kwargs = {
            "vector": vector,
            "top_k": top_k,
            "include_metadata": True,
            "namespace": self.namespace,
        }
        if category:
            kwargs["filter"] = {"category": {"$eq": category}}

        response = self.index.query(**kwargs)
        matches = [
            VectorMatch(id=m.id, score=float(m.score), metadata=dict(m.metadata or {}))
            for m in response.matches
        ]
        return sorted(matches, key=lambda m: m.score, reverse=True)

    def delete_all(self):
        try:
            self.index.delete(delete_all=True, namespace=self.namespace)
        except NotFoundException:
            # Namespace does not exist until the first upsert
            logger.info("Namespace %r already empty", self.namespace)

    def count(self) -> int:
        stats = self.index.describe_index_stats()
        if self.namespace:
            ns = (stats.namespaces or {}).get(self.namespace)
            return ns.vector_count if ns else 0
        return stats.total_vector_count

    def get_provider_name(self) -> str:
        return "pinecone"
