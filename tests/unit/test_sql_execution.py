import asyncio
from decimal import Decimal

import pytest

from agentlab.config import AgentConfig, DatabaseConfig
from agentlab.domain.errors import DatabaseQueryError
from agentlab.domain.responses import ExecutionFailure, ExecutionSuccess, GeneratedSQL
from agentlab.repositories.sql_execution import SQLExecutionRepository
from agentlab.repositories.sql_validation import ONLY_SELECT_MESSAGE, SQLValidationRepository

from fakes import FakeDatabaseClient


@pytest.mark.asyncio
async def test_select_returns_rows(execution_repository, db):
    result = await execution_repository.execute(GeneratedSQL(sql="SELECT COUNT(*) AS count FROM users"))

    assert isinstance(result, ExecutionSuccess)
    assert result.rows == [{"count": 5}]
    assert result.row_count == 1
    (query,) = db.queries
    assert query["query"] == "SELECT COUNT(*) AS count FROM users"
    assert query["read_only"] is True


@pytest.mark.asyncio
async def test_empty_result(execution_repository, db):
    db.rows = []

    result = await execution_repository.execute(GeneratedSQL(sql="SELECT * FROM users WHERE false"))

    assert result == ExecutionSuccess(rows=[], row_count=0)


@pytest.mark.asyncio
async def test_rows_not_capped(execution_repository, db):
    db.rows = [{"id": i} for i in range(500)]

    result = await execution_repository.execute(GeneratedSQL(sql="SELECT id FROM users"))

    assert result.row_count == 500
    assert len(result.rows) == 500


@pytest.mark.asyncio
async def test_non_select_rejected_without_touching_database(execution_repository, db):
    result = await execution_repository.execute(GeneratedSQL(sql="DROP TABLE users"))

    assert result == ExecutionFailure(error=ONLY_SELECT_MESSAGE)
    assert db.queries == []


@pytest.mark.asyncio
async def test_database_error_message_preserved(execution_repository, db):
    db.error = DatabaseQueryError('column "emial" does not exist')

    result = await execution_repository.execute(GeneratedSQL(sql="SELECT emial FROM users"))

    assert isinstance(result, ExecutionFailure)
    assert result.error == 'column "emial" does not exist'


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failure(execution_repository, db):
    db.error = RuntimeError("connection reset")

    result = await execution_repository.execute(GeneratedSQL(sql="SELECT 1"))

    assert result == ExecutionFailure(error="connection reset")


class SlowDatabaseClient(FakeDatabaseClient):
    async def execute_query(self, query, params=None, timeout=None, read_only=False):
        await asyncio.sleep(5)
        return []


@pytest.mark.asyncio
async def test_timeout_becomes_failure(database_config):
    repo = SQLExecutionRepository(
        db_client=SlowDatabaseClient(),
        validator=SQLValidationRepository(),
        database_config=database_config,
        agent_config=AgentConfig(execution_timeout_seconds=0.05),
    )

    result = await repo.execute(GeneratedSQL(sql="SELECT pg_sleep(10)"))

    assert result == ExecutionFailure(error="Query timed out after 0.05 seconds")


@pytest.mark.asyncio
async def test_read_only_flag_follows_config(db, agent_config):
    repo = SQLExecutionRepository(
        db_client=db,
        validator=SQLValidationRepository(),
        database_config=DatabaseConfig(database_url="postgresql://x@localhost/x", enforce_read_only=False),
        agent_config=agent_config,
    )

    await repo.execute(GeneratedSQL(sql="SELECT 1"))

    assert db.queries[0]["read_only"] is False


@pytest.mark.asyncio
async def test_driver_values_are_made_json_safe(execution_repository, db):
    db.rows = [{
        "id": 7,
        "avatar": b"\x00\xff",
        "thumb": memoryview(b"\xab"),
        "balance": Decimal("12.50"),
        "tags": ("a", "b"),
    }]

    result = await execution_repository.execute(GeneratedSQL(sql="SELECT * FROM users"))

    assert result.rows == [{
        "id": 7,
        "avatar": "\\x00ff",
        "thumb": "\\xab",
        "balance": 12.5,
        "tags": ["a", "b"],
    }]
    assert result.row_count == 1
    result.model_dump_json()
