"""
Exceptions raised across the agentlab service.

Each class carries a machine-readable `error_code` and the HTTP status the
API renders it with. Only the Query Executor turns failures into values
(ExecutionFailure); everything else propagates, and the orchestrator wraps
it in PipelineError.

    raise DatabaseQueryError('column "emial" does not exist', details={"sqlstate": "42703"})
"""

from typing import Any, Dict, Optional


class AgentLabException(Exception):
    """
    Root of the hierarchy.

    Attributes:
        message: The raw error text, shown to API callers as `error`
        error_code: e.g. "LLM_ERROR"; class default unless overridden
        http_status: Status used by the API error handler
        details: Structured context (stage, sqlstate, ...)
    """

    error_code: str = "INTERNAL_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        if http_status:
            self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"error_code": self.error_code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


# --- request ---------------------------------------------------------------

class BadRequestError(AgentLabException):
    """The request body has no usable question."""

    error_code = "BAD_REQUEST"
    http_status = 400


class ValidationError(AgentLabException):
    """An input was well-formed but unusable (e.g. an indexing path that does not exist)."""

    error_code = "VALIDATION_ERROR"
    http_status = 422


class ConfigurationError(AgentLabException):
    """Settings are incomplete, e.g. neither an OpenRouter nor an OpenAI key is set."""

    error_code = "CONFIGURATION_ERROR"
    http_status = 500


# --- storage ---------------------------------------------------------------

class DatabaseError(AgentLabException):
    error_code = "DATABASE_ERROR"
    http_status = 503


class DatabaseConnectionError(DatabaseError):
    """The pool could not be created, or a query was issued while disconnected."""

    error_code = "DATABASE_CONNECTION_ERROR"
    http_status = 503


class DatabaseQueryError(DatabaseError):
    """
    PostgreSQL rejected or cancelled a statement.

    `message` is the server's own text (syntax errors, unknown relations or
    columns, statement timeouts, writes inside a read-only transaction).
    """

    error_code = "DATABASE_QUERY_ERROR"
    http_status = 500


class VectorStoreError(AgentLabException):
    """A pgvector read, write or setup statement failed."""

    error_code = "VECTOR_STORE_ERROR"
    http_status = 503


# --- model providers -------------------------------------------------------

class LLMError(AgentLabException):
    """Text generation failed: provider error, timeout, or input over max_input_chars."""

    error_code = "LLM_ERROR"
    http_status = 503


class EmbeddingError(AgentLabException):
    """Embedding failed, an input was too large, or a vector had the wrong dimension."""

    error_code = "EMBEDDING_ERROR"
    http_status = 503


# --- pipeline --------------------------------------------------------------

class SQLValidationError(AgentLabException):
    """Generated SQL failed the read-only precondition; the executor recovers it."""

    error_code = "SQL_VALIDATION_ERROR"
    http_status = 422


class StageTimeoutError(AgentLabException):
    error_code = "STAGE_TIMEOUT"
    http_status = 504


class PipelineError(AgentLabException):
    """
    Fatal failure of a pipeline run.

    `message` is the underlying error's message, unchanged; `details` names
    the stage, the operation in flight and the original error type. No
    partial response is produced.
    """

    error_code = "PIPELINE_ERROR"
    http_status = 500


class ServiceUnavailableError(AgentLabException):
    """A client the request needs was never set up by the lifespan handler."""

    error_code = "SERVICE_UNAVAILABLE"
    http_status = 503
