import pytest
from pydantic import ValidationError

from agentlab.config import AgentConfig
from agentlab.config_constants import CHUNK_SEPARATOR
from agentlab.domain.responses import RetrievedChunk
from agentlab.repositories.schema_context import (
    SCHEMA_EXCERPTS_NOTE,
    SchemaContextRepository,
    fallback_schema_note,
)

from fakes import SCHEMA_CHUNKS, FakeVectorRepository


@pytest.mark.asyncio
async def test_context_joins_chunks_in_retriever_order(schema_vectors, agent_config):
    repo = SchemaContextRepository(schema_vectors, agent_config)

    context = await repo.build_context("How many users?")

    assert context.text == CHUNK_SEPARATOR.join(c.content for c in SCHEMA_CHUNKS)
    assert context.notes == SCHEMA_EXCERPTS_NOTE
    assert context.sources == (("users", "table"), ("users", "comment"))
    assert context.is_fallback is False
    assert schema_vectors.searches == [{"query": "How many users?", "k": agent_config.schema_top_k}]


@pytest.mark.asyncio
async def test_empty_retrieval_falls_back_to_table_list():
    config = AgentConfig(fallback_tables=["users", "permissions"])
    repo = SchemaContextRepository(FakeVectorRepository([]), config)

    context = await repo.build_context("anything")

    expected = "No schema context found. Available tables: users, permissions."
    assert fallback_schema_note(config.fallback_tables) == expected
    assert context.text == expected
    assert context.notes == expected
    assert context.is_fallback is True
    assert context.chunks == ()
    assert context.sources == ()


def test_duplicate_chunks_are_kept(agent_config):
    chunk = RetrievedChunk(content="CREATE TABLE users (id INT);", metadata={"table": "users", "type": "table"})
    repo = SchemaContextRepository(FakeVectorRepository(), agent_config)

    context = repo.assemble([chunk, chunk])

    assert context.text.count("CREATE TABLE users") == 2
    assert len(context.sources) == 2


def test_missing_metadata_gives_none_sources(agent_config):
    repo = SchemaContextRepository(FakeVectorRepository(), agent_config)

    context = repo.assemble([RetrievedChunk(content="full schema")])

    assert context.sources == ((None, None),)


def test_sources_are_immutable(agent_config):
    repo = SchemaContextRepository(FakeVectorRepository(), agent_config)

    context = repo.assemble(list(SCHEMA_CHUNKS))

    assert isinstance(context.sources, tuple)
    with pytest.raises(ValidationError):
        context.sources = ()
