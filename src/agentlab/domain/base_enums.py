from enum import Enum


class RouteDecision(str, Enum):
    """The two sub-pipelines a question can be dispatched to."""
    DOCUMENT_QA = "html_rag"
    DATABASE_QUERY = "sql_agent"


class PipelineStage(str, Enum):
    """States of the routed question pipeline."""
    START = "start"
    ROUTED = "routed"

    # Database-query branch
    SCHEMA_RETRIEVED = "schema_retrieved"
    SQL_GENERATED = "sql_generated"
    EXECUTED = "executed"

    # Document-QA branch
    DOC_RETRIEVED = "doc_retrieved"

    ANSWERED = "answered"
    DONE = "done"
    FAILED = "failed"


class ChunkType(str, Enum):
    """Kinds of chunk stored in the schema corpus."""
    FULL_SCHEMA = "full_schema"
    TABLE = "table"
    COMMENT = "comment"
