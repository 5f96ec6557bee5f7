"""Ingestion pipeline: rows -> categories -> embeddings -> vector index"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from sqlalchemy.orm import Session
from src.config import settings
from src.models import Medicine
from src.providers.embeddings.base import EmbeddingProvider
from src.providers.embeddings.factory import EmbeddingFactory
from src.providers.vector_stores.base import VectorRecord, VectorStore
from src.providers.vector_stores.factory import VectorStoreFactory
from src.rag.dataset import MEDICINE_COLUMNS, MedicineRow, parse_csv_file
from src.rag.extractor import CategoryExtractor

logger = logging.getLogger(__name__)


def vector_id(medicine_id: int, category: str) -> str:
    """Stable vector id; re-ingesting a row overwrites its vectors"""
    return f"medicine_{medicine_id}_{category}"


@dataclass
class FailedRow:
    """A row the pipeline could not index"""
    id: int
    error: str


@dataclass
class IngestionReport:
    """Outcome of one ingestion run"""
    records_processed: int = 0
    vectors_upserted: int = 0
    failed_rows: List[FailedRow] = field(default_factory=list)


class MedicineIndexer:
    """Runs extraction, embedding and upsert for every dataset row, in order"""

    def __init__(
        self,
        db: Optional[Session] = None,
        extractor: Optional[CategoryExtractor] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        vector_store: Optional[VectorStore] = None,
        categories: Optional[Sequence[str]] = None
    ):
        self.db = db
        self.extractor = extractor or CategoryExtractor(
            categories or settings.extraction_categories, db=db
        )
        self.embedding_provider = embedding_provider if embedding_provider is not None else EmbeddingFactory.create()
        self.vector_store = vector_store if vector_store is not None else VectorStoreFactory.create()

    async def generate_embeddings(
        self,
        csv_path: Optional[str] = None,
        limit: Optional[int] = None,
        reset: bool = False
    ) -> IngestionReport:
        """
        Index the medicine dataset.

        Args:
            csv_path: Dataset path (default: settings.dataset_path)
            limit: Only index the first N unique rows
            reset: Clear the vector index first

        Returns:
            IngestionReport with counts and the rows that failed

        Raises:
            DatasetError: If the dataset cannot be parsed
            Exception: Any row failure when settings.ingest_fail_fast is set
        """
        rows = parse_csv_file(csv_path or settings.dataset_path, MEDICINE_COLUMNS)
        if limit is not None:
            rows = rows[:limit]

        if reset:
            logger.info("Clearing %s index before ingestion", self.vector_store.get_provider_name())
            await asyncio.to_thread(self.vector_store.delete_all)

        report = IngestionReport()
        for i, row in enumerate(rows, 1):
            logger.info("[%d/%d] Indexing medicine %d (%s)", i, len(rows), row.id, row.name or "unnamed")
            try:
                report.vectors_upserted += await self.index_row(row)
                report.records_processed += 1
            except Exception as e:
                if self.db is not None:
                    self.db.rollback()
                if settings.ingest_fail_fast:
                    raise
                logger.warning("Skipping medicine %d: %s", row.id, e)
                report.failed_rows.append(FailedRow(id=row.id, error=str(e)))

        logger.info(
            "Embeddings generated and stored: %d rows, %d vectors, %d failed",
            report.records_processed, report.vectors_upserted, len(report.failed_rows)
        )
        return report

    async def index_row(self, row: MedicineRow) -> int:
        """
        Extract, embed and upsert one row.

        Returns:
            Number of vectors upserted
        """
        categories = await self.extractor.extract(row.text)

        # One embedding request per row for all its categories
        names = list(categories)
        embeddings = await self.embedding_provider.embed_documents([categories[c] for c in names])
        if len(embeddings) != len(names):
            raise ValueError(f"Expected {len(names)} embeddings, got {len(embeddings)}")

        records = [
            VectorRecord(
                id=vector_id(row.id, category),
                values=embedding,
                metadata={
                    "medicine_id": row.id,
                    "name": row.name,
                    "text": row.text,
                    "category": category,
                    "category_text": categories[category],
                },
            )
            for category, embedding in zip(names, embeddings)
        ]
        # Vector store SDKs are blocking; keep the event loop free
        written = await asyncio.to_thread(self.vector_store.upsert, records)

        self._save_medicine(row, categories, [r.id for r in records])
        return written

    def _save_medicine(self, row: MedicineRow, categories: Dict[str, str], vector_ids: List[str]):
        """Insert or overwrite the medicines table entry for this row"""
        if self.db is None:
            return
        medicine = self.db.get(Medicine, row.id)
        if medicine is None:
            medicine = Medicine(id=row.id)
            self.db.add(medicine)
        medicine.name = row.name
        medicine.text = row.text
        medicine.categories = categories
        medicine.vector_ids = vector_ids
        self.db.commit()
