import logging
from pathlib import Path
from typing import List, Optional
from fastapi import FastAPI, Depends, HTTPException
from fastapi.responses import FileResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from . import models, schemas, database
from .config import settings
from .logging_config import configure_logging

from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and create database tables on startup"""
    configure_logging()
    models.Base.metadata.create_all(bind=database.engine)
    logger.info("Database tables ready (%s)", settings.database_url.split("://")[0])
    yield

# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Medicine chat widget and category-based medicine search",
    version="1.0.0",
    lifespan=lifespan
)

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

# ============================================================================
# CHAT WIDGET
# ============================================================================

@app.get("/", include_in_schema=False)
def index():
    """Serve the chat widget"""
    return FileResponse(STATIC_DIR / "index.html")

@app.get("/health", response_model=schemas.HealthResponse)
def health_check():
    """Health check endpoint - returns {"status": "ok"}"""
    return {"status": "ok"}

from .services.chat_service import ChatService

@app.post("/chat")
async def chat(request: schemas.ChatRequest):
    """
    Forward a widget message to the chat model and stream the reply.

    The reply is sent as text/plain chunks in the order the model produces
    them. The API key stays on the server. The first chunk is awaited before
    the response starts, so provider failures still return a 500.
    """
    try:
        service = ChatService()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Chat is not available: {str(e)}")

    history = [turn.model_dump() for turn in request.history]
    deltas = service.stream_reply(request.message, history)
    try:
        first = await deltas.__anext__()
    except StopAsyncIteration:
        first = ""
    except Exception as e:
        logger.exception("Error generating chat reply")
        raise HTTPException(
            status_code=500,
            detail=f"Error generating chat reply: {str(e)}"
        )

    async def reply():
        yield first
        try:
            async for delta in deltas:
                yield delta
        except Exception:
            # Headers are already sent; the client sees a truncated reply
            logger.exception("Chat stream interrupted")
            raise

    return StreamingResponse(reply(), media_type="text/plain; charset=utf-8")

# ============================================================================
# INGESTION
# ============================================================================

from .rag.indexer import MedicineIndexer

def resolve_dataset_path(csv_path: Optional[str]) -> Optional[str]:
    """
    Resolve a requested dataset file against the configured dataset directory.

    Relative paths are taken from the directory of settings.dataset_path;
    anything resolving outside it is rejected with a 400.
    """
    if not csv_path:
        return None
    base = Path(settings.dataset_path).resolve().parent
    path = (base / csv_path).resolve()
    if not path.is_relative_to(base):
        raise HTTPException(
            status_code=400,
            detail="csv_path must point to a file in the dataset directory"
        )
    return str(path)

@app.post("/generate-embeddings", response_model=schemas.IngestResponse)
async def generate_embeddings(
    request: Optional[schemas.IngestRequest] = None,
    db: Session = Depends(database.get_db)
):
    """
    Ingest the medicine dataset into the vector index.

    Pipeline per row:
    1. LLM category extraction (side effects, uses, substitutes, ...)
    2. One embedding per category
    3. Upsert into the vector index with id medicine_<row>_<category>
    4. Store the row and its categories in the medicines table
    """
    request = request or schemas.IngestRequest()
    csv_path = resolve_dataset_path(request.csv_path)
    try:
        indexer = MedicineIndexer(db=db)
        report = await indexer.generate_embeddings(
            csv_path=csv_path,
            limit=request.limit,
            reset=request.reset_index
        )
    except Exception as e:
        logger.exception("Error generating embeddings")
        raise HTTPException(
            status_code=500,
            detail=f"Error generating embeddings: {str(e)}"
        )

    return schemas.IngestResponse(
        message="Embeddings generated and stored in the vector index.",
        records_processed=report.records_processed,
        vectors_upserted=report.vectors_upserted,
        failed_rows=[
            schemas.FailedRowResponse(id=failed.id, error=failed.error)
            for failed in report.failed_rows
        ]
    )

# ============================================================================
# QUERY
# ============================================================================

from .rag.service import MedicineSearchService

@app.post("/query", response_model=schemas.MedicineQueryResponse)
async def query_medicines(request: schemas.MedicineQueryRequest):
    """
    Answer a free-text medicine query.

    Returns:
    - A natural-language answer
    - Matching medicines, best first, with aggregated similarity scores
    - How many candidates were shown to the ranking model
    """
    try:
        service = MedicineSearchService()
        result = await service.query(request.query_text)
    except Exception as e:
        logger.exception("Error querying vector index")
        raise HTTPException(
            status_code=500,
            detail=f"Error querying vector index: {str(e)}"
        )

    return schemas.MedicineQueryResponse(
        query=result.query,
        answer=result.answer,
        matches=[
            schemas.MedicineMatch(
                id=match.id,
                name=match.name,
                text=match.text,
                score=match.score,
                reason=match.reason
            )
            for match in result.matches
        ],
        candidates_considered=result.candidates_considered
    )

# ============================================================================
# MEDICINE RECORDS
# ============================================================================

@app.get("/medicines", response_model=List[int])
def list_medicines(db: Session = Depends(database.get_db)):
    """Fetch the ids of all ingested medicines"""
    medicines = db.query(models.Medicine.id).order_by(models.Medicine.id).all()
    return [medicine.id for medicine in medicines]

@app.get("/medicines/{medicine_id}", response_model=schemas.MedicineResponse)
def get_medicine(medicine_id: int, db: Session = Depends(database.get_db)):
    """
    Fetch an ingested medicine by id

    Returns:
    - The row text and its extracted categories if found
    - 404 error if the medicine was never ingested
    """
    medicine = db.get(models.Medicine, medicine_id)
    if not medicine:
        raise HTTPException(status_code=404, detail="Medicine not found")
    return medicine
