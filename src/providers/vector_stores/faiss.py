"""FAISS vector store for local development and offline runs"""
import faiss
import numpy as np
import pickle
import os
import logging
from typing import Dict, List, Optional
from pathlib import Path
from .base import VectorMatch, VectorRecord, VectorStore

logger = logging.getLogger(__name__)


class FAISSVectorStore(VectorStore):
    """
    FAISS-backed store with the same contract as the hosted index.

    Vectors are L2-normalized and searched by inner product, so scores are
    cosine similarities like Pinecone's cosine metric. FAISS only knows int64
    ids, so string ids are mapped to ints and the mapping is persisted next
    to the index together with the metadata.
    """

    def __init__(self, persist_directory: str, dimension: Optional[int] = None):
        """
        Initialize FAISS vector store.

        Args:
            persist_directory: Directory to persist index and metadata
            dimension: Embedding dimension; inferred from the first upsert if None
        """
        self.persist_directory = persist_directory
        os.makedirs(self.persist_directory, exist_ok=True)

        self.dimension = dimension
        self.index_path = Path(self.persist_directory) / "index.faiss"
        self.metadata_path = Path(self.persist_directory) / "metadata.pkl"

        self.index = None
        self.id_lookup: Dict[str, int] = {}  # string id -> int id
        self.metadata_store: Dict[int, dict] = {}  # int id -> metadata (incl. 'vector_id')
        self._next_id = 0

        self._load()

    def _load(self):
        """Load index and metadata from disk if they exist"""
        if not (self.index_path.exists() and self.metadata_path.exists()):
            self._create_new_index()
            return
        try:
            self.index = faiss.read_index(str(self.index_path))
            with open(self.metadata_path, "rb") as f:
                state = pickle.load(f)
            self.id_lookup = state["id_lookup"]
            self.metadata_store = state["metadata_store"]
            self._next_id = state["next_id"]
            self.dimension = self.index.d
        except Exception as e:
            logger.warning("Error loading FAISS index from %s: %s", self.persist_directory, e)
            self._create_new_index()

    def _create_new_index(self):
        """Create a new (possibly not yet dimensioned) index"""
        self.index = self._build_index(self.dimension) if self.dimension else None
        self.id_lookup = {}
        self.metadata_store = {}
        self._next_id = 0

    @staticmethod
    def _build_index(dimension: int):
        # Exact search is sufficient at dataset scale
        return faiss.IndexIDMap2(faiss.IndexFlatIP(dimension))

    def _save(self):
        """Save index and metadata to disk"""
        if self.index is not None:
            faiss.write_index(self.index, str(self.index_path))
        with open(self.metadata_path, "wb") as f:
            pickle.dump({
                "id_lookup": self.id_lookup,
                "metadata_store": self.metadata_store,
                "next_id": self._next_id,
            }, f)

    @staticmethod
    def _normalize(vectors: List[List[float]]) -> np.ndarray:
        array = np.array(vectors, dtype="float32")
        faiss.normalize_L2(array)
        return array

    def upsert(self, records: List[VectorRecord]) -> int:
        if not records:
            return 0
        # Last write wins for repeated ids within one call
        records = list({r.id: r for r in records}.values())

        dims = {len(r.values) for r in records}
        if len(dims) != 1:
            raise ValueError(f"Inconsistent vector dimensions in upsert: {sorted(dims)}")
        dim = dims.pop()
        if self.index is None:
            self.dimension = dim
            self.index = self._build_index(dim)
        elif dim != self.dimension:
            raise ValueError(f"Vector dimension {dim} does not match index dimension {self.dimension}")

        # Overwrite semantics: drop any existing vectors with the same ids
        existing = [self.id_lookup[r.id] for r in records if r.id in self.id_lookup]
        if existing:
            self.index.remove_ids(np.array(existing, dtype="int64"))

        int_ids = []
        for record in records:
            int_id = self.id_lookup.get(record.id)
            if int_id is None:
                int_id = self._next_id
                self._next_id += 1
                self.id_lookup[record.id] = int_id
            self.metadata_store[int_id] = {**record.metadata, "vector_id": record.id}
            int_ids.append(int_id)

        self.index.add_with_ids(
            self._normalize([r.values for r in records]),
            np.array(int_ids, dtype="int64")
        )
        self._save()
        return len(records)

    def query(
        self,
        vector: List[float],
        top_k: int = 10,
        category: Optional[str] = None
    ) -> List[VectorMatch]:
        if self.index is None or self.index.ntotal == 0:
            return []

        # With a category filter search everything, then filter; flat search is exact
        k = self.index.ntotal if category else min(top_k, self.index.ntotal)
        distances, indices = self.index.search(self._normalize([vector]), k)

        matches = []
        for score, idx in zip(distances[0], indices[0]):
            idx = int(idx)
            if idx == -1:  # No result found
                continue
            metadata = self.metadata_store.get(idx, {})
            if category and metadata.get("category") != category:
                continue
            public = {key: value for key, value in metadata.items() if key != "vector_id"}
            matches.append(VectorMatch(id=metadata["vector_id"], score=float(score), metadata=public))
            if len(matches) >= top_k:
                break
        return matches

    def delete_all(self):
        """Delete/Reset the collection"""
        self._create_new_index()
        self._save()

    def count(self) -> int:
        return self.index.ntotal if self.index is not None else 0

    def get_provider_name(self) -> str:
        return "faiss"
