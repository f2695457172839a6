"""
Schema Context Repository.

Builds the textual schema description the SQL generator reasons over, by
retrieving chunks from the schema corpus.

Behavior:
- Chunks are concatenated in retriever order, separated by CHUNK_SEPARATOR
- No deduplication: a chunk returned twice appears twice
- Empty retrieval falls back to a fixed note listing the known tables, so
  generation always has something to work with
"""

from typing import List

from agentlab.config import AgentConfig
from agentlab.config_constants import CHUNK_SEPARATOR
from agentlab.domain.responses import RetrievedChunk, SchemaContext
from agentlab.repositories.vector_repository import VectorRepository
from agentlab.utils.logging import get_module_logger

logger = get_module_logger()

SCHEMA_EXCERPTS_NOTE = "Relevant schema excerpts (tables, columns, relations):"


def fallback_schema_note(tables: List[str]) -> str:
    """
    Example:
        >>> fallback_schema_note(["users", "permissions"])
        'No schema context found. Available tables: users, permissions.'
    """
    return f"No schema context found. Available tables: {', '.join(tables)}."


class SchemaContextRepository:
    """Repository for schema-context construction."""

    def __init__(self, retriever: VectorRepository, config: AgentConfig):
        self.retriever = retriever
        self.config = config

    async def build_context(self, question: str) -> SchemaContext:
        """
        Retrieve schema chunks relevant to `question`.

        Raises:
            VectorStoreError, EmbeddingError: Retrieval failures propagate
        """
        chunks = await self.retriever.search_similar(question, k=self.config.schema_top_k)
        context = self.assemble(chunks)

        logger.info(
            "Schema context built",
            chunk_count=len(chunks),
            is_fallback=context.is_fallback,
            context_length=len(context.text),
        )
        return context

    def assemble(self, chunks: List[RetrievedChunk]) -> SchemaContext:
        if not chunks:
            note = fallback_schema_note(self.config.fallback_tables)
            return SchemaContext(chunks=(), text=note, notes=note, sources=(), is_fallback=True)

        return SchemaContext(
            chunks=tuple(chunks),
            text=CHUNK_SEPARATOR.join(chunk.content for chunk in chunks),
            notes=SCHEMA_EXCERPTS_NOTE,
            sources=tuple((chunk.metadata.get("table"), chunk.metadata.get("type")) for chunk in chunks),
        )
