"""
PostgreSQL access through one asyncpg pool.

The same pool serves the application tables that generated SQL reads and
the pgvector tables of the two retrieval corpora, so concurrent pipeline
runs never share a connection.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple, Type

import asyncpg

from ..config import DatabaseConfig
from ..domain.errors import DatabaseConnectionError, DatabaseQueryError
from ..utils.logging import get_module_logger

logger = get_module_logger()

# asyncpg error class -> `reason` reported in DatabaseQueryError.details
_QUERY_ERROR_REASONS: Tuple[Tuple[Type[asyncpg.PostgresError], str], ...] = (
    (asyncpg.QueryCanceledError, "timeout"),
    (asyncpg.PostgresSyntaxError, "syntax_error"),
    (asyncpg.UndefinedTableError, "undefined_table"),
    (asyncpg.UndefinedColumnError, "undefined_column"),
    (asyncpg.ReadOnlySQLTransactionError, "read_only"),
)


def _query_error_reason(error: asyncpg.PostgresError) -> str:
    for error_class, reason in _QUERY_ERROR_REASONS:
        if isinstance(error, error_class):
            return reason
    return "postgres_error"


class DatabaseClient:
    """
    Thin async client over an asyncpg pool.

    Policy (SELECT-only, row handling) lives in the repositories. This class
    only offers a read-only transaction mode for them to switch on.

    Usage:
        client = DatabaseClient(settings.database)
        await client.connect()
        rows = await client.execute_query("SELECT COUNT(*) FROM users", read_only=True)
        await client.close()
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._pool: Optional[asyncpg.Pool] = None
        self._is_connected = False

    async def connect(self) -> None:
        """
        Create the pool and check that a connection answers.

        Raises:
            DatabaseConnectionError: If the database is unreachable, missing
                or refuses the credentials
        """
        if self._is_connected:
            logger.warning("Database client already connected")
            return

        logger.info(
            "Creating database pool",
            min_size=self.config.connection_pool_min_size,
            max_size=self.config.connection_pool_max_size,
            default_schema=self.config.default_schema,
        )
        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.config.database_url,
                min_size=self.config.connection_pool_min_size,
                max_size=self.config.connection_pool_max_size,
                command_timeout=self.config.query_timeout_seconds,
                timeout=self.config.connection_timeout_seconds,
                server_settings={
                    "application_name": self.config.application_name,
                    "search_path": self.config.default_schema,
                },
            )
            async with self._pool.acquire() as conn:
                current_schema = await conn.fetchval("SELECT current_schema()")
        except asyncpg.InvalidCatalogNameError as e:
            await self._discard_pool()
            raise DatabaseConnectionError(f"Database does not exist: {e}") from e
        except asyncpg.InvalidPasswordError as e:
            await self._discard_pool()
            raise DatabaseConnectionError(f"Authentication failed: {e}") from e
        except Exception as e:
            await self._discard_pool()
            logger.error("Database connection failed", error=str(e), error_type=type(e).__name__)
            raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e

        self._is_connected = True
        logger.info("Database pool ready", current_schema=current_schema)

    async def _discard_pool(self) -> None:
        if self._pool is not None:
            self._pool.terminate()
            self._pool = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            logger.info("Database pool closed")
        self._pool = None
        self._is_connected = False

    def is_connected(self) -> bool:
        return self._is_connected and self._pool is not None

    async def health_check(self) -> Dict[str, Any]:
        """
        Returns:
            {"status": "healthy", "connected": True, "current_schema": "public", ...}
            or {"status": "unhealthy", "connected": ..., "error": "..."}
        """
        if not self.is_connected():
            return {"status": "unhealthy", "connected": False, "error": "Database client not connected"}

        try:
            async with self.acquire_connection() as conn:
                current_schema = await conn.fetchval("SELECT current_schema()")
        except Exception as e:
            logger.error("Database health check failed", error=str(e), error_type=type(e).__name__)
            return {"status": "unhealthy", "connected": True, "error": str(e)}

        return {
            "status": "healthy",
            "connected": True,
            "pool_size": self.config.connection_pool_max_size,
            "current_schema": current_schema,
        }

    @asynccontextmanager
    async def acquire_connection(self, read_only: bool = False) -> AsyncIterator[asyncpg.Connection]:
        """
        Borrow a pooled connection.

        With read_only=True the connection is handed out inside a READ ONLY
        transaction; any write raises ReadOnlySQLTransactionError and the
        transaction is rolled back.

        Raises:
            DatabaseConnectionError: If the pool is not available
        """
        if not self.is_connected() or self._pool is None:
            raise DatabaseConnectionError("Database client is not connected")

        async with self._pool.acquire() as connection:
            if read_only:
                async with connection.transaction(readonly=True):
                    yield connection
            else:
                yield connection

    async def execute_query(
        self,
        query: str,
        params: Optional[Sequence[Any]] = None,
        timeout: Optional[float] = None,
        read_only: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Run one statement and return every row as a dict, in server order.

        Args:
            query: SQL text
            params: Bind parameters for $1, $2, ...
            timeout: Server-side statement_timeout in seconds
            read_only: Run inside a READ ONLY transaction

        Raises:
            DatabaseConnectionError: If the pool is not available
            DatabaseQueryError: If PostgreSQL rejects or cancels the statement;
                `message` is the server's message and `details` carries
                `reason` and `sqlstate`
        """
        logger.info("Executing database query", query=query[:200], read_only=read_only)
        try:
            async with self.acquire_connection(read_only=read_only) as conn:
                if timeout:
                    # LOCAL only holds inside a transaction; pooled connections are RESET on release
                    scope = "LOCAL " if read_only else ""
                    await conn.execute(f"SET {scope}statement_timeout = {int(timeout * 1000)}")
                records = await conn.fetch(query, *(params or ()))
        except DatabaseConnectionError:
            raise
        except asyncpg.PostgresError as e:
            reason = _query_error_reason(e)
            logger.error("Query failed", reason=reason, sqlstate=e.sqlstate, error=str(e), query=query[:200])
            raise DatabaseQueryError(str(e), details={"reason": reason, "sqlstate": e.sqlstate}) from e
        except Exception as e:
            logger.error("Query failed", error=str(e), error_type=type(e).__name__, query=query[:200])
            raise DatabaseQueryError(f"Query execution failed: {e}") from e

        rows = [dict(record) for record in records]
        logger.info("Query executed", row_count=len(rows))
        return rows
