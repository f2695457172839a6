"""
Fixtures for integration tests.

These talk to the PostgreSQL database and provider named in .env and are
deselected by default; run them with:

    pytest -m integration -v
"""

import pytest

from agentlab.config import get_settings
from agentlab.infrastructure.database_client import DatabaseClient
from agentlab.infrastructure.embedding_client import EmbeddingClient
from agentlab.infrastructure.llm_client import LLMClient


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
async def db_client(settings):
    """Create and connect database client."""
    client = DatabaseClient(settings.database)
    await client.connect()
    yield client
    if client.is_connected():
        await client.close()


@pytest.fixture
async def llm_client(settings):
    """Create and connect LLM client."""
    client = LLMClient(settings.llm)
    await client.connect()
    yield client
    if client.is_connected():
        await client.close()


@pytest.fixture
async def embedding_client(settings):
    """Create and connect embedding client."""
    client = EmbeddingClient(settings.embedding)
    await client.connect()
    yield client
    if client.is_connected():
        await client.close()
