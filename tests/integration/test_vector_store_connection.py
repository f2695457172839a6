"""
Integration tests for VectorRepository on a scratch pgvector table.

Usage:
    pytest tests/integration/test_vector_store_connection.py -m integration -v

Requirements:
    - DATABASE__DATABASE_URL must be set in .env (pgvector available)
    - EMBEDDING__OPENROUTER_API_KEY or EMBEDDING__OPENAI_API_KEY must be set in .env
"""

import pytest

from agentlab.domain.errors import VectorStoreError
from agentlab.domain.responses import RetrievedChunk
from agentlab.repositories.vector_repository import VectorRepository
from agentlab.utils.chunking import chunk_schema_sql

TEST_TABLE = "test_schema_vectors"

SCHEMA_SQL = """
CREATE TABLE users (
  id SERIAL PRIMARY KEY,
  email TEXT NOT NULL
);

CREATE TABLE permissions (
  id SERIAL PRIMARY KEY,
  name TEXT NOT NULL
);

COMMENT ON TABLE users IS 'Registered SSO accounts';
"""


@pytest.fixture
async def vector_repo(db_client, embedding_client, settings):
    repo = VectorRepository(
        db_client=db_client,
        embedding_client=embedding_client,
        table_name=TEST_TABLE,
        config=settings.vector_store,
    )
    yield repo
    async with db_client.acquire_connection() as conn:
        await conn.execute(f"DROP TABLE IF EXISTS {TEST_TABLE};")


@pytest.mark.integration
class TestVectorStoreConnection:

    @pytest.mark.asyncio
    async def test_missing_table_searches_empty(self, vector_repo):
        assert await vector_repo.table_exists() is False
        assert await vector_repo.search_similar("users", k=3) == []
        assert await vector_repo.count() == 0

    @pytest.mark.asyncio
    async def test_index_and_search(self, vector_repo):
        chunks = chunk_schema_sql(SCHEMA_SQL)

        inserted = await vector_repo.add_chunks(chunks)

        assert inserted == len(chunks)
        assert await vector_repo.count() == len(chunks)

        results = await vector_repo.search_similar("Which permissions exist?", k=2)
        assert 1 <= len(results) <= 2
        assert all(isinstance(r, RetrievedChunk) for r in results)
        assert all("type" in r.metadata for r in results)

    @pytest.mark.asyncio
    async def test_clear(self, vector_repo):
        await vector_repo.add_chunks([RetrievedChunk(content="hello", metadata={"source": "a.html"})])
        await vector_repo.clear()
        assert await vector_repo.count() == 0

    @pytest.mark.asyncio
    async def test_k_must_be_positive(self, vector_repo):
        with pytest.raises(VectorStoreError):
            await vector_repo.search_similar("users", k=0)
