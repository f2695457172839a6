"""
Vector repository for the pgvector retrieval corpora.

One instance wraps one table (schema corpus or document corpus). Handles
setup (extension, table) and runtime operations (add, search, clear).
Uses the shared DatabaseClient for connection pooling.

Table layout:
    id       UUID primary key
    content  TEXT
    metadata JSONB
    vector   vector(embedding_dimension)
"""

import json
from typing import List, Sequence

from agentlab.config import VectorStoreConfig
from agentlab.config_constants import PGVECTOR_DISTANCE_OPERATORS
from agentlab.domain.errors import VectorStoreError
from agentlab.domain.responses import RetrievedChunk
from agentlab.infrastructure.database_client import DatabaseClient
from agentlab.infrastructure.embedding_client import EmbeddingClient
from agentlab.utils.json_utils import parse_jsonb, sanitize_for_json
from agentlab.utils.logging import get_module_logger

logger = get_module_logger()


def to_pgvector(embedding: Sequence[float]) -> str:
    """pgvector text form: '[0.1,0.2,0.3]'."""
    return f"[{','.join(str(x) for x in embedding)}]"


class VectorRepository:
    """
    Repository for one pgvector table.

    search_similar never fails because the corpus is empty or missing; it
    returns an empty list and callers handle that case. Embedding and
    database failures still raise.
    """

    def __init__(
        self,
        db_client: DatabaseClient,
        embedding_client: EmbeddingClient,
        table_name: str,
        config: VectorStoreConfig,
    ):
        self.db = db_client
        self.embeddings = embedding_client
        self.table_name = table_name
        self.config = config
        self._setup_done = False

    async def search_similar(self, query: str, k: int) -> List[RetrievedChunk]:
        """
        Return at most `k` chunks ordered by decreasing similarity to `query`.

        Args:
            query: Text to search for
            k: Maximum number of chunks

        Returns:
            Chunks in relevance order; empty when the table is missing or empty

        Raises:
            VectorStoreError: If k < 1 or the search query fails
            EmbeddingError: If the query cannot be embedded
        """
        if k < 1:
            raise VectorStoreError(f"k must be >= 1, got {k}")

        if not query or not query.strip():
            logger.warning("Empty search query", table_name=self.table_name)
            return []

        if not await self.table_exists():
            logger.warning("Vector table does not exist", table_name=self.table_name)
            return []

        logger.info("Searching similar vectors", table_name=self.table_name, query_length=len(query), k=k)

        query_embedding = await self.embeddings.embed_text(query)
        operator = PGVECTOR_DISTANCE_OPERATORS[self.config.distance_strategy]

        sql = f"""
            SELECT content, metadata
            FROM {self.table_name}
            ORDER BY vector {operator} $1::vector
            LIMIT $2;
        """

        try:
            async with self.db.acquire_connection() as conn:
                rows = await conn.fetch(sql, to_pgvector(query_embedding), k)
        except Exception as e:
            logger.error(
                "Failed to search similar vectors",
                table_name=self.table_name,
                error=str(e),
                exc_info=True,
            )
            raise VectorStoreError(f"Failed to search similar vectors: {e}") from e

        chunks = [
            RetrievedChunk(content=row["content"], metadata=parse_jsonb(row["metadata"]))
            for row in rows
        ]

        logger.info("Similar vectors found", table_name=self.table_name, result_count=len(chunks))
        return chunks

    async def table_exists(self) -> bool:
        try:
            async with self.db.acquire_connection() as conn:
                regclass = await conn.fetchval("SELECT to_regclass($1)::text", self.table_name)
        except Exception as e:
            raise VectorStoreError(f"Failed to look up vector table {self.table_name}: {e}") from e
        return regclass is not None

    async def ensure_setup(self) -> None:
        """
        Create the pgvector extension and the table if missing (idempotent).

        Raises:
            VectorStoreError: If setup fails
        """
        if self._setup_done:
            return

        dimension = self.embeddings.config.embedding_dimension

        try:
            async with self.db.acquire_connection() as conn:
                await conn.execute("CREATE EXTENSION IF NOT EXISTS vector;")
                await conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self.table_name} (
                        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                        content TEXT NOT NULL,
                        metadata JSONB NOT NULL DEFAULT '{{}}'::jsonb,
                        vector vector({dimension})
                    );
                    """
                )
        except Exception as e:
            logger.error("Failed to setup vector store", table_name=self.table_name, error=str(e), exc_info=True)
            raise VectorStoreError(f"Failed to setup vector store: {e}") from e

        self._setup_done = True
        logger.info("Vector store setup complete", table_name=self.table_name, dimension=dimension)

    async def add_chunks(self, chunks: Sequence[RetrievedChunk]) -> int:
        """
        Embed and insert chunks, `config.batch_size` per round-trip.

        Returns:
            Number of rows inserted

        Raises:
            VectorStoreError: If an insert fails
            EmbeddingError: If embedding fails
        """
        if not chunks:
            logger.warning("No chunks provided to add_chunks", table_name=self.table_name)
            return 0

        await self.ensure_setup()

        sql = f"INSERT INTO {self.table_name} (content, metadata, vector) VALUES ($1, $2::jsonb, $3::vector);"
        inserted = 0

        for start in range(0, len(chunks), self.config.batch_size):
            batch = list(chunks[start:start + self.config.batch_size])
            vectors = await self.embeddings.embed_batch([chunk.content for chunk in batch])
            records = [
                (chunk.content, json.dumps(sanitize_for_json(chunk.metadata)), to_pgvector(vector))
                for chunk, vector in zip(batch, vectors)
            ]

            try:
                async with self.db.acquire_connection() as conn:
                    async with conn.transaction():
                        await conn.executemany(sql, records)
            except Exception as e:
                logger.error("Failed to add vectors", table_name=self.table_name, error=str(e), exc_info=True)
                raise VectorStoreError(f"Failed to add vectors: {e}") from e

            inserted += len(records)
            logger.info("Vector batch inserted", table_name=self.table_name, inserted=inserted, total=len(chunks))

        return inserted

    async def clear(self) -> None:
        """Delete every row of the table, if it exists."""
        if not await self.table_exists():
            return
        try:
            async with self.db.acquire_connection() as conn:
                await conn.execute(f"DELETE FROM {self.table_name};")
        except Exception as e:
            raise VectorStoreError(f"Failed to clear vector table {self.table_name}: {e}") from e
        logger.info("Vector table cleared", table_name=self.table_name)

    async def count(self) -> int:
        if not await self.table_exists():
            return 0
        try:
            async with self.db.acquire_connection() as conn:
                return await conn.fetchval(f"SELECT COUNT(*) FROM {self.table_name};")
        except Exception as e:
            raise VectorStoreError(f"Failed to count vectors in {self.table_name}: {e}") from e
