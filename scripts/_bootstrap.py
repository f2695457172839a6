"""Shared setup for the scripts: .env, src path, connected clients."""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")

from agentlab.config import get_settings
from agentlab.infrastructure.database_client import DatabaseClient
from agentlab.infrastructure.embedding_client import EmbeddingClient
from agentlab.repositories.vector_repository import VectorRepository
from agentlab.services.indexing_service import IndexingService
from agentlab.utils.logging import configure_logging


@asynccontextmanager
async def indexing_service():
    """Yield an IndexingService over connected clients, closing them afterwards."""
    settings = get_settings()
    configure_logging(settings.app.log_level.value)

    db_client = DatabaseClient(settings.database)
    embedding_client = EmbeddingClient(settings.embedding)
    await db_client.connect()
    await embedding_client.connect()

    try:
        yield IndexingService(
            schema_repository=VectorRepository(
                db_client, embedding_client, settings.vector_store.schema_table_name, settings.vector_store
            ),
            document_repository=VectorRepository(
                db_client, embedding_client, settings.vector_store.document_table_name, settings.vector_store
            ),
        )
    finally:
        await embedding_client.close()
        await db_client.close()
