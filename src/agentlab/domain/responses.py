"""
Response and stage value models for the agentlab router service.

The stage models (RetrievedChunk, SchemaContext, GeneratedSQL, ExecutionResult)
are immutable and created fresh for every pipeline run. The API models
define the structure of every outgoing response.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.json_utils import sanitize_for_json
from .base_enums import RouteDecision


# -------------------------
# Stage Value Models
# -------------------------

class RetrievedChunk(BaseModel):
    """
    Single chunk returned by a vector similarity search.

    Chunks are ordered by descending relevance; there is no uniqueness guarantee.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Chunk text")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque metadata (e.g. source table name, chunk type, source file)"
    )


class SchemaContext(BaseModel):
    """Textual schema description handed to the SQL generator."""

    model_config = ConfigDict(frozen=True)

    chunks: Tuple[RetrievedChunk, ...] = Field(default=(), description="Chunks in retriever order")
    text: str = Field(..., description="Chunk contents joined with the chunk separator, or the fallback")
    notes: str = Field(..., description="One-line summary of where the context came from")
    sources: Tuple[Tuple[Optional[str], Optional[str]], ...] = Field(
        default=(),
        description="(table, type) pairs taken from chunk metadata"
    )
    is_fallback: bool = Field(default=False, description="True when retrieval returned nothing")


class GeneratedSQL(BaseModel):
    """
    One SQL statement produced by the generator.

    Parameters stay empty because the generator does not parameterize.
    """

    model_config = ConfigDict(frozen=True)

    sql: str = Field(default="", description="Normalized SQL text")
    parameters: Tuple[Any, ...] = Field(default=(), description="Bind parameters")

    @property
    def is_empty(self) -> bool:
        return not self.sql.strip()


class ExecutionSuccess(BaseModel):
    """
    Rows returned by a successful statement.

    Driver values are converted to JSON-safe ones on construction (bytea as
    "\\x..." hex text, composite records as dicts), so a finished run always
    serializes.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    rows: List[Dict[str, Any]] = Field(..., description="Result rows in engine order, with JSON-safe values")
    row_count: int = Field(..., ge=0, description="Number of rows returned")

    @field_validator("rows", mode="before")
    @classmethod
    def make_rows_json_safe(cls, rows: Any) -> Any:
        if isinstance(rows, (list, tuple)):
            return [sanitize_for_json(row) for row in rows]
        return rows


class ExecutionFailure(BaseModel):
    """A statement that was rejected or failed inside the database."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    error: str = Field(..., min_length=1, description="Error message")


ExecutionResult = Annotated[
    Union[ExecutionSuccess, ExecutionFailure],
    Field(discriminator="kind"),
]


# -------------------------
# API Response Models
# -------------------------

class PipelineResponse(BaseModel):
    """
    Response model for POST /query.

    A 200 response may still carry a populated `error` (a recovered execution
    failure explained in `answer`). `rows` and `row_count` are the authoritative
    data; the prose answer is not guaranteed to be numerically exact.
    """

    model_config = ConfigDict(populate_by_name=True)

    route: RouteDecision = Field(..., description="Sub-pipeline that answered the question")
    answer: str = Field(..., description="Natural-language answer")
    sql: Optional[str] = Field(default=None, description="SQL that was executed")
    rows: Optional[List[Dict[str, Any]]] = Field(default=None, description="Result rows")
    row_count: Optional[int] = Field(
        default=None,
        alias="rowCount",
        description="Number of result rows"
    )
    error: Optional[str] = Field(default=None, description="Recovered execution error, verbatim")
    trace_id: Optional[str] = Field(default=None, description="Trace ID for this request")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    ok: bool = Field(default=True, description="Liveness flag; true while the process serves")
    status: str = Field(..., description="Health status", examples=["healthy", "degraded"])
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")
    database_status: str = Field(..., description="Database connection status")
    llm_service_status: str = Field(..., description="LLM service status")
    embedding_service_status: str = Field(..., description="Embedding service status")


class ErrorResponse(BaseModel):
    """Response model for error responses."""

    error: str = Field(..., description="Raw error message")
    error_code: str = Field(..., description="Machine-readable error code")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
    trace_id: Optional[str] = Field(
        default=None,
        description="Trace ID for debugging"
    )
    timestamp: datetime = Field(..., description="Error timestamp")


# -------------------------
# Service Layer Models
# -------------------------

class IndexingStats(BaseModel):
    """Statistics returned by IndexingService."""

    table_name: str = Field(..., description="Vector table that was written")
    files_processed: int = Field(..., description="Number of source files read")
    chunks_indexed: int = Field(..., description="Number of chunks embedded and inserted")
    replaced: bool = Field(..., description="Whether the table was cleared first")
