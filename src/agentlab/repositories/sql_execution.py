"""
SQL Execution Repository.

Runs generated SQL against the application database. This is the only
stage of the pipeline that recovers failures locally: every failure is
returned as an ExecutionFailure value instead of being raised.

Execution Flow:
1. Check the read-only precondition (SQLValidationRepository); a rejected
   statement never reaches the database
2. Execute inside a READ ONLY transaction when enforce_read_only is set
3. Bound the call by the execution stage timeout
4. Return every row (no row cap, values made JSON-safe) or the error message

Usage:
    repo = SQLExecutionRepository(db_client, validator, database_config, agent_config)
    result = await repo.execute(GeneratedSQL(sql="SELECT COUNT(*) FROM users"))
    match result:
        case ExecutionSuccess(rows=rows): ...
        case ExecutionFailure(error=error): ...
"""

import asyncio

from agentlab.config import AgentConfig, DatabaseConfig
from agentlab.domain.errors import AgentLabException
from agentlab.domain.responses import ExecutionFailure, ExecutionResult, ExecutionSuccess, GeneratedSQL
from agentlab.infrastructure.database_client import DatabaseClient
from agentlab.repositories.sql_validation import SQLValidationRepository
from agentlab.utils.logging import get_module_logger

logger = get_module_logger()


class SQLExecutionRepository:
    """Repository for SQL execution."""

    def __init__(
        self,
        db_client: DatabaseClient,
        validator: SQLValidationRepository,
        database_config: DatabaseConfig,
        agent_config: AgentConfig,
    ):
        self.db_client = db_client
        self.validator = validator
        self.database_config = database_config
        self.agent_config = agent_config

    async def execute(self, generated: GeneratedSQL) -> ExecutionResult:
        """
        Execute a generated statement.

        Never raises for statement, database or timeout failures.

        Returns:
            ExecutionSuccess with rows and row_count, or ExecutionFailure with the message
        """
        sql = generated.sql

        try:
            self.validator.ensure_select_only(sql)
        except AgentLabException as e:
            return ExecutionFailure(error=e.message)

        timeout = self.agent_config.execution_timeout_seconds

        logger.info("Executing SQL query", sql_length=len(sql), timeout=timeout)

        try:
            rows = await asyncio.wait_for(
                self.db_client.execute_query(
                    query=sql,
                    params=list(generated.parameters),
                    timeout=timeout,
                    read_only=self.database_config.enforce_read_only,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            message = f"Query timed out after {timeout:g} seconds"
            logger.warning("SQL execution timed out", timeout=timeout)
            return ExecutionFailure(error=message)
        except AgentLabException as e:
            logger.warning("SQL execution failed", error=e.message, error_code=e.error_code)
            return ExecutionFailure(error=e.message or e.error_code)
        except Exception as e:
            logger.warning("SQL execution failed", error=str(e), error_type=type(e).__name__)
            return ExecutionFailure(error=str(e) or type(e).__name__)

        logger.info("SQL execution successful", row_count=len(rows))
        return ExecutionSuccess(rows=rows, row_count=len(rows))
