"""
agentlab API.

POST /query answers a natural-language question through one of two
sub-pipelines chosen by the router:

    sql_agent: schema retrieval -> SQL generation -> read-only execution -> answer
    html_rag:  document retrieval -> answer

Run with scripts/run_dev.py, or `uvicorn agentlab.main:app`.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies import (
    OptionalDatabaseClientDep,
    OptionalEmbeddingClientDep,
    OptionalLLMClientDep,
    PipelineServiceDep,
)
from .api.middleware import QUERY_ERROR_RESPONSES, install_error_handlers, request_context_middleware
from .config import get_settings
from .domain.requests import QueryRequest
from .domain.responses import HealthResponse, PipelineResponse
from .infrastructure.database_client import DatabaseClient
from .infrastructure.embedding_client import EmbeddingClient
from .infrastructure.llm_client import LLMClient
from .utils.logging import configure_logging, get_module_logger
from .utils.tracing import current_trace_id

APP_NAME = "agentlab"
APP_VERSION = "0.1.0"

configure_logging()
logger = get_module_logger()


async def _connect(name: str, client: Any) -> None:
    # A client that fails to connect stays on app.state; /health reports it
    try:
        await client.connect()
    except Exception as e:
        logger.error("Client connection failed", client=name, error=str(e), error_type=type(e).__name__)
    else:
        logger.info("Client connected", client=name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting agentlab API", version=APP_VERSION, port=settings.server.port)

    clients: Tuple[Tuple[str, Any], ...] = (
        ("db_client", DatabaseClient(settings.database)),
        ("llm_client", LLMClient(settings.llm)),
        ("embedding_client", EmbeddingClient(settings.embedding)),
    )
    app.state.settings = settings
    for name, client in clients:
        await _connect(name, client)
        setattr(app.state, name, client)

    yield

    logger.info("Stopping agentlab API")
    for _, client in reversed(clients):
        await client.close()


app = FastAPI(
    title="agentlab API",
    description="Routed question answering over a PostgreSQL database and an HTML document corpus",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Browser pages call the API directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_context_middleware)
install_error_handlers(app)


@app.get("/", tags=["Root"])
async def root() -> Dict[str, Optional[str]]:
    return {"message": f"{APP_NAME} API", "version": APP_VERSION, "trace_id": current_trace_id()}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health(
    db_client: OptionalDatabaseClientDep,
    llm_client: OptionalLLMClientDep,
    embedding_client: OptionalEmbeddingClientDep,
) -> HealthResponse:
    """
    Liveness plus per-component status.

    `ok` stays true while the process serves; `status` turns "degraded"
    as soon as one component is not healthy.
    """
    if db_client is None:
        database_status = "not_configured"
    else:
        database_status = (await db_client.health_check()).get("status", "unknown")
    llm_status = await llm_client.health_check() if llm_client else "not_configured"
    embedding_status = await embedding_client.health_check() if embedding_client else "not_configured"

    statuses = (database_status, llm_status, embedding_status)
    return HealthResponse(
        ok=True,
        status="healthy" if all(s == "healthy" for s in statuses) else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        database_status=database_status,
        llm_service_status=llm_status,
        embedding_service_status=embedding_status,
    )


@app.post("/query", response_model=PipelineResponse, tags=["Query"], responses=QUERY_ERROR_RESPONSES)
async def query(request: QueryRequest, pipeline_service: PipelineServiceDep) -> PipelineResponse:
    """
    Answer a natural-language question.

    Body: `{"question": "..."}` (`{"message": "..."}` is accepted too).

    - `route`: "sql_agent" or "html_rag"
    - `sql`, `rows`, `rowCount`: set when a query ran successfully
    - `error`: a recovered execution error, already explained in `answer`;
      the status is still 200

    A missing question is a 400. A failure in any other stage is a 500 whose
    `error` is the underlying message.
    """
    logger.info("Query received", question_length=len(request.question))
    return await pipeline_service.run(request.question)
