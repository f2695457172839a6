"""
Pipeline Service - orchestrator of the routed question pipeline.

This service is a THIN ORCHESTRATOR that coordinates repositories:
1. RouterRepository - question classification
2a. SchemaContextRepository -> SQLGenerationRepository -> SQLExecutionRepository
    -> AnswerSynthesisRepository (database questions)
2b. VectorRepository (document corpus) -> AnswerSynthesisRepository (everything else)

Error policy:
- Execution failures are recovered inside SQLExecutionRepository and come
  back as ExecutionFailure; the run still completes with HTTP 200
- Empty SQL generation short-circuits with a canned answer, no execution
- Any other stage failure, including a stage timeout, is fatal: it is
  wrapped in PipelineError (HTTP 500) and no partial response is built
"""

import asyncio
from typing import Awaitable, Optional, TypeVar, assert_never

from agentlab.config import AgentConfig
from agentlab.domain.base_enums import PipelineStage, RouteDecision
from agentlab.domain.errors import AgentLabException, PipelineError, StageTimeoutError
from agentlab.domain.pipeline import PipelineState
from agentlab.domain.responses import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    PipelineResponse,
)
from agentlab.repositories.answer_synthesis import AnswerSynthesisRepository
from agentlab.repositories.router import RouterRepository
from agentlab.repositories.schema_context import SchemaContextRepository
from agentlab.repositories.sql_execution import SQLExecutionRepository
from agentlab.repositories.sql_generation import SQLGenerationRepository
from agentlab.repositories.vector_repository import VectorRepository
from agentlab.utils.logging import get_module_logger
from agentlab.utils.tracing import current_trace_id

logger = get_module_logger()

T = TypeVar("T")

NO_SQL_ANSWER = "I couldn't generate a SQL query for that question."


class PipelineService:
    """
    Orchestrator for one question at a time.

    Stages run strictly one after another; there is no re-routing and no
    retry. The service holds no per-request state, so one instance may serve
    concurrent runs.
    """

    def __init__(
        self,
        router_repository: RouterRepository,
        schema_context_repository: SchemaContextRepository,
        sql_generation_repository: SQLGenerationRepository,
        sql_execution_repository: SQLExecutionRepository,
        answer_synthesis_repository: AnswerSynthesisRepository,
        document_repository: VectorRepository,
        config: AgentConfig,
    ):
        self.router_repo = router_repository
        self.schema_repo = schema_context_repository
        self.generation_repo = sql_generation_repository
        self.execution_repo = sql_execution_repository
        self.answer_repo = answer_synthesis_repository
        self.document_repo = document_repository
        self.config = config

    async def run(self, question: str) -> PipelineResponse:
        """
        Answer one question.

        Returns:
            PipelineResponse; may carry a recovered execution error

        Raises:
            PipelineError: On any fatal stage failure
        """
        state = PipelineState(question=question)
        logger.info("Starting pipeline", question_length=len(question))

        try:
            route = await self._stage(
                state,
                "classification",
                self.router_repo.route(question),
                self.config.classification_timeout_seconds,
            )
            state.set_route(route)
            logger.debug("Pipeline transition", stage=state.stage.value, route=route.value)

            if route is RouteDecision.DATABASE_QUERY:
                response = await self._run_database_branch(state)
            elif route is RouteDecision.DOCUMENT_QA:
                response = await self._run_document_branch(state)
            else:
                assert_never(route)

            state.advance(PipelineStage.DONE)

        except Exception as e:
            message = e.message if isinstance(e, AgentLabException) else (str(e) or type(e).__name__)
            failed_at = state.stage
            operation = state.current_operation
            state.fail(message)
            logger.error(
                "Pipeline failed",
                error=message,
                error_type=type(e).__name__,
                stage=failed_at.value,
                operation=operation,
                history=[s.value for s in state.history],
            )
            if isinstance(e, PipelineError):
                raise
            raise PipelineError(
                message,
                details={
                    "stage": failed_at.value,
                    "operation": operation,
                    "error_type": type(e).__name__,
                },
            ) from e

        logger.info(
            "Pipeline completed",
            route=response.route.value,
            has_sql=response.sql is not None,
            row_count=response.row_count,
            execution_error=response.error is not None,
        )
        return response

    # =========================================================================
    # Branches
    # =========================================================================

    async def _run_database_branch(self, state: PipelineState) -> PipelineResponse:
        question = state.question

        schema = await self._stage(
            state,
            "schema_retrieval",
            self.schema_repo.build_context(question),
            self.config.retrieval_timeout_seconds,
        )
        self._advance(state, PipelineStage.SCHEMA_RETRIEVED)

        generated = await self._stage(
            state,
            "sql_generation",
            self.generation_repo.generate(question, schema),
            self.config.generation_timeout_seconds,
        )
        self._advance(state, PipelineStage.SQL_GENERATED)

        if generated.is_empty:
            self._advance(state, PipelineStage.ANSWERED)
            return PipelineResponse(
                route=RouteDecision.DATABASE_QUERY,
                answer=NO_SQL_ANSWER,
                trace_id=current_trace_id(),
            )

        # Recovery boundary: never raises, applies its own timeout
        state.current_operation = "sql_execution"
        execution = await self.execution_repo.execute(generated)
        self._advance(state, PipelineStage.EXECUTED)

        answer = await self._stage(
            state,
            "answer_synthesis",
            self.answer_repo.synthesize(question, execution, generated),
            self.config.synthesis_timeout_seconds,
        )
        self._advance(state, PipelineStage.ANSWERED)

        return self._database_response(answer, generated.sql, execution)

    async def _run_document_branch(self, state: PipelineState) -> PipelineResponse:
        question = state.question

        chunks = await self._stage(
            state,
            "document_retrieval",
            self.document_repo.search_similar(question, k=self.config.document_top_k),
            self.config.retrieval_timeout_seconds,
        )
        self._advance(state, PipelineStage.DOC_RETRIEVED)

        answer = await self._stage(
            state,
            "answer_synthesis",
            self.answer_repo.synthesize_from_documents(question, chunks),
            self.config.synthesis_timeout_seconds,
        )
        self._advance(state, PipelineStage.ANSWERED)

        return PipelineResponse(
            route=RouteDecision.DOCUMENT_QA,
            answer=answer,
            trace_id=current_trace_id(),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _database_response(answer: str, sql: str, execution: ExecutionResult) -> PipelineResponse:
        if isinstance(execution, ExecutionSuccess):
            return PipelineResponse(
                route=RouteDecision.DATABASE_QUERY,
                answer=answer,
                sql=sql,
                rows=execution.rows,
                row_count=execution.row_count,
                trace_id=current_trace_id(),
            )
        if isinstance(execution, ExecutionFailure):
            return PipelineResponse(
                route=RouteDecision.DATABASE_QUERY,
                answer=answer,
                sql=sql,
                error=execution.error,
                trace_id=current_trace_id(),
            )
        assert_never(execution)

    @staticmethod
    def _advance(state: PipelineState, stage: PipelineStage) -> None:
        state.advance(stage)
        logger.debug("Pipeline transition", stage=stage.value)

    @staticmethod
    async def _stage(
        state: PipelineState,
        operation: str,
        awaitable: Awaitable[T],
        timeout: Optional[float],
    ) -> T:
        """Await one stage call, turning a timeout into StageTimeoutError."""
        state.current_operation = operation
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise StageTimeoutError(
                f"Stage '{operation}' timed out after {timeout:g} seconds",
                details={"operation": operation, "timeout_seconds": timeout},
            ) from e
