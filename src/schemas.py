from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, Dict, List, Literal

# Health check schema
class HealthResponse(BaseModel):
    """Health check response"""
    status: str

# ============================================================================
# Chat schemas
# ============================================================================

class ChatTurn(BaseModel):
    """A previous message in the widget conversation"""
    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=8000)

class ChatRequest(BaseModel):
    """Message typed into the chat widget plus the conversation so far"""
    message: str = Field(..., min_length=1, max_length=4000)
    history: List[ChatTurn] = Field(default_factory=list, max_length=50)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message must not be blank")
        return value.strip()

# ============================================================================
# Ingestion schemas
# ============================================================================

class IngestRequest(BaseModel):
    """Options for an ingestion run (all optional)"""
    limit: Optional[int] = Field(None, ge=1, description="Only index the first N unique rows")
    reset_index: bool = Field(default=False, description="Clear the vector index first")
    csv_path: Optional[str] = Field(None, description="Dataset file inside the dataset directory")

class FailedRowResponse(BaseModel):
    id: int
    error: str

class IngestResponse(BaseModel):
    """Outcome of /generate-embeddings"""
    message: str
    records_processed: int
    vectors_upserted: int
    failed_rows: List[FailedRowResponse] = Field(default_factory=list)

# ============================================================================
# Query schemas
# ============================================================================

class MedicineQueryRequest(BaseModel):
    """Free-text medicine search"""
    model_config = ConfigDict(populate_by_name=True)

    query_text: str = Field(..., alias="queryText", min_length=1, max_length=2000)

    @field_validator("query_text")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query must not be blank")
        return value.strip()

class MedicineMatch(BaseModel):
    """A medicine chosen by the ranking model, best first"""
    id: int
    name: Optional[str] = None
    text: str
    score: float = Field(..., description="Aggregated similarity across categories")
    reason: Optional[str] = None

class MedicineQueryResponse(BaseModel):
    """Ranked natural-language answer to a medicine query"""
    query: str
    answer: str
    matches: List[MedicineMatch]
    candidates_considered: int

# ============================================================================
# Medicine records
# ============================================================================

class MedicineResponse(BaseModel):
    """An ingested medicine with its extracted categories"""
    id: int
    name: Optional[str] = None
    text: str
    categories: Dict[str, str] = Field(default_factory=dict)
    vector_ids: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
