"""
Request middleware and error rendering for the agentlab API.

Every error leaves the service with the same body:

    {"error": "<raw message>", "error_code": "...", "details": {...},
     "trace_id": "...", "timestamp": "..."}

- AgentLabException subclasses use their own http_status (PipelineError -> 500)
- A body that carries no usable question -> 400, before any stage runs
- Routing errors from Starlette (404, 405) keep their status
- Anything else -> 500 with a generic message; the details stay in the log
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..domain.errors import AgentLabException
from ..domain.requests import MISSING_QUESTION_MESSAGE
from ..domain.responses import ErrorResponse
from ..utils.logging import get_module_logger
from ..utils.tracing import (
    TRACE_ID_HEADER,
    current_trace_id,
    reset_trace_id,
    resolve_trace_id,
    set_trace_id,
)

logger = get_module_logger()

PROCESS_TIME_HEADER = "X-Process-Time"

GENERIC_ERROR_MESSAGE = "An internal server error occurred. Please try again later."

_STATUS_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


async def request_context_middleware(request: Request, call_next: Callable) -> Response:
    """
    Bind a trace id to the request and log its start and end.

    The caller's X-Trace-ID is reused when present. The response echoes it
    and carries the handling time in milliseconds.
    """
    trace_id = resolve_trace_id(request.headers.get(TRACE_ID_HEADER))
    token = set_trace_id(trace_id)
    started = time.perf_counter()
    try:
        logger.info(
            "HTTP request started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "HTTP request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=elapsed_ms,
        )
    finally:
        reset_trace_id(token)

    response.headers[TRACE_ID_HEADER] = trace_id
    response.headers[PROCESS_TIME_HEADER] = str(elapsed_ms)
    return response


def error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=message,
        error_code=error_code,
        details=details or None,
        trace_id=current_trace_id(),
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def handle_agentlab_error(request: Request, exc: AgentLabException) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        "Request failed",
        error=exc.message,
        error_code=exc.error_code,
        http_status=exc.http_status,
        details=exc.details,
        path=request.url.path,
    )
    return error_response(exc.http_status, exc.error_code, exc.message, exc.details)


def _is_body_error(error: Dict[str, Any]) -> bool:
    loc = error.get("loc") or ()
    return len(loc) > 0 and loc[0] == "body"


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing body, invalid JSON, or no usable question: all 400 with one message."""
    problems = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    message = (
        MISSING_QUESTION_MESSAGE
        if any(_is_body_error(error) for error in exc.errors())
        else "Request validation failed"
    )
    logger.warning("Rejected request", path=request.url.path, problems=problems)
    return error_response(400, "BAD_REQUEST", message, {"errors": problems})


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error_code = _STATUS_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    logger.warning("HTTP error", status_code=exc.status_code, detail=exc.detail, path=request.url.path)
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code} error"
    return error_response(exc.status_code, error_code, message)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )
    return error_response(500, "INTERNAL_ERROR", GENERIC_ERROR_MESSAGE)


def install_error_handlers(app: FastAPI) -> None:
    """Register the handlers above, most specific first."""
    handlers = (
        (AgentLabException, handle_agentlab_error),
        (RequestValidationError, handle_request_validation_error),
        (StarletteHTTPException, handle_http_error),
        (Exception, handle_unexpected_error),
    )
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]


def _documented_error(description: str, example: Dict[str, Any]) -> Dict[str, Any]:
    example = {
        **example,
        "trace_id": "550e8400-e29b-41d4-a716-446655440000",
        "timestamp": "2026-01-15T10:30:00Z",
    }
    return {"description": description, "content": {"application/json": {"example": example}}}


# OpenAPI documentation for the /query error statuses
QUERY_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: _documented_error(
        "Missing or invalid question",
        {"error": MISSING_QUESTION_MESSAGE, "error_code": "BAD_REQUEST"},
    ),
    500: _documented_error(
        "Fatal pipeline failure; no answer was produced",
        {
            "error": "LLM generation failed: Connection error.",
            "error_code": "PIPELINE_ERROR",
            "details": {"stage": "start", "operation": "classification", "error_type": "LLMError"},
        },
    ),
}
