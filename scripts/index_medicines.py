#!/usr/bin/env python3
"""
Indexing script for the medicine dataset.
Extracts categories from every CSV row with the LLM, embeds each category
and stores the vectors in the configured vector index (Pinecone by default).

Usage:
    python scripts/index_medicines.py [--limit N] [--reset] [--csv PATH]
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

def log(msg):
    """Print with immediate flush for Docker logs"""
    print(msg, flush=True)

async def index_medicines(limit: int = None, reset: bool = False, csv_path: str = None) -> int:
    """Index the medicine dataset. Returns a process exit code."""
    from src.config import settings
    from src.database import SessionLocal, engine
    from src.logging_config import configure_logging
    from src.models import Base
    from src.rag.indexer import MedicineIndexer
    from src.providers.embeddings import EmbeddingFactory
    from src.providers.vector_stores import VectorStoreFactory

    configure_logging()
    Base.metadata.create_all(bind=engine)

    log("🚀 Starting medicine indexing...")
    log(f"   Dataset: {csv_path or settings.dataset_path}")
    log(f"   Categories: {', '.join(settings.extraction_categories)}")
    log(f"   Vector store: {settings.vector_store_provider}")

    # Initialize components
    try:
        embedding_provider = EmbeddingFactory.create()
        vector_store = VectorStoreFactory.create()
    except ValueError as e:
        log(f"❌ Configuration error: {e}")
        return 1

    # Hosted index must exist before the first upsert
    if vector_store.get_provider_name() == "pinecone":
        if vector_store.ensure_index(dimension=embedding_provider.get_embedding_dim()):
            log(f"📦 Created Pinecone index '{settings.pinecone_index_name}'")

    db = SessionLocal()
    try:
        indexer = MedicineIndexer(
            db=db,
            embedding_provider=embedding_provider,
            vector_store=vector_store
        )
        report = await indexer.generate_embeddings(csv_path=csv_path, limit=limit, reset=reset)
    finally:
        db.close()

    # Summary
    log("")
    for failed in report.failed_rows:
        log(f"   ❌ Row {failed.id}: {failed.error}")
    log(
        f"✅ Indexing complete! {report.vectors_upserted} vectors from "
        f"{report.records_processed} medicines ({len(report.failed_rows)} failed)"
    )
    return 0 if report.records_processed or not report.failed_rows else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Index the medicine dataset into the vector store")
    parser.add_argument("--limit", type=int, default=None, help="Only index the first N unique rows")
    parser.add_argument("--reset", action="store_true", help="Clear the vector index first")
    parser.add_argument("--csv", dest="csv_path", default=None, help="Dataset path override")
    args = parser.parse_args()
    sys.exit(asyncio.run(index_medicines(args.limit, args.reset, args.csv_path)))
