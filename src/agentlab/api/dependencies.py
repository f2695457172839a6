"""
FastAPI dependencies for dependency injection.

Services are assembled per request from the long-lived clients stored on
app.state by the lifespan handler, following the layered architecture
API -> Service -> Repository -> Infrastructure.

Routes depend on services, never on infrastructure clients directly
(the health check is the exception).
"""

from typing import Annotated

from fastapi import Depends, Request

from ..config import Settings
from ..domain.errors import ServiceUnavailableError
from ..infrastructure.database_client import DatabaseClient
from ..infrastructure.embedding_client import EmbeddingClient
from ..infrastructure.llm_client import LLMClient
from ..repositories.answer_synthesis import AnswerSynthesisRepository
from ..repositories.router import RouterRepository
from ..repositories.schema_context import SchemaContextRepository
from ..repositories.sql_execution import SQLExecutionRepository
from ..repositories.sql_generation import SQLGenerationRepository
from ..repositories.sql_validation import SQLValidationRepository
from ..repositories.vector_repository import VectorRepository
from ..services.pipeline_service import PipelineService


def _require_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ServiceUnavailableError(f"{name} not initialized")
    return value


def get_settings(request: Request) -> Settings:
    """
    Dependency to get the settings loaded at startup.

    Raises:
        ServiceUnavailableError: If the lifespan handler has not run
    """
    return _require_state(request, "settings")


# Optional dependency getters for the health check
def get_db_client_optional(request: Request) -> DatabaseClient | None:
    return getattr(request.app.state, "db_client", None)


def get_llm_client_optional(request: Request) -> LLMClient | None:
    return getattr(request.app.state, "llm_client", None)


def get_embedding_client_optional(request: Request) -> EmbeddingClient | None:
    return getattr(request.app.state, "embedding_client", None)


def get_pipeline_service(request: Request) -> PipelineService:
    """
    Dependency to get a PipelineService instance.

    PipelineService (orchestrator)
      ├── RouterRepository (LLM)
      ├── SchemaContextRepository -> VectorRepository (schema corpus)
      ├── SQLGenerationRepository (LLM)
      ├── SQLExecutionRepository -> SQLValidationRepository, DatabaseClient
      ├── AnswerSynthesisRepository (LLM)
      └── VectorRepository (document corpus)

    All repositories share the same pooled DatabaseClient, LLMClient and
    EmbeddingClient.

    Raises:
        ServiceUnavailableError: If a required client was never created
    """
    settings: Settings = get_settings(request)
    db_client: DatabaseClient = _require_state(request, "db_client")
    llm_client: LLMClient = _require_state(request, "llm_client")
    embedding_client: EmbeddingClient = _require_state(request, "embedding_client")

    schema_vectors = VectorRepository(
        db_client=db_client,
        embedding_client=embedding_client,
        table_name=settings.vector_store.schema_table_name,
        config=settings.vector_store,
    )
    document_vectors = VectorRepository(
        db_client=db_client,
        embedding_client=embedding_client,
        table_name=settings.vector_store.document_table_name,
        config=settings.vector_store,
    )

    return PipelineService(
        router_repository=RouterRepository(llm_client, settings.agents),
        schema_context_repository=SchemaContextRepository(schema_vectors, settings.agents),
        sql_generation_repository=SQLGenerationRepository(llm_client, settings.agents),
        sql_execution_repository=SQLExecutionRepository(
            db_client=db_client,
            validator=SQLValidationRepository(),
            database_config=settings.database,
            agent_config=settings.agents,
        ),
        answer_synthesis_repository=AnswerSynthesisRepository(llm_client, settings.agents),
        document_repository=document_vectors,
        config=settings.agents,
    )


# Type aliases for cleaner dependency injection
PipelineServiceDep = Annotated[PipelineService, Depends(get_pipeline_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

OptionalDatabaseClientDep = Annotated[DatabaseClient | None, Depends(get_db_client_optional)]
OptionalLLMClientDep = Annotated[LLMClient | None, Depends(get_llm_client_optional)]
OptionalEmbeddingClientDep = Annotated[EmbeddingClient | None, Depends(get_embedding_client_optional)]
