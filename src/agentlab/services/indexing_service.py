"""
Indexing Service - fills the two pgvector corpora.

- Schema corpus: chunks of a schema.sql file (full schema, one chunk per
  CREATE TABLE, one per COMMENT ON TABLE)
- Document corpus: text chunks of every *.html file in a directory
"""

from pathlib import Path
from typing import List, Union

from agentlab.domain.errors import ValidationError
from agentlab.domain.responses import IndexingStats, RetrievedChunk
from agentlab.repositories.vector_repository import VectorRepository
from agentlab.utils.chunking import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    chunk_schema_sql,
    chunk_text,
    html_to_text,
)
from agentlab.utils.logging import get_module_logger

logger = get_module_logger()


class IndexingService:
    """Embeds and stores corpus chunks through VectorRepository."""

    def __init__(self, schema_repository: VectorRepository, document_repository: VectorRepository):
        self.schema_repo = schema_repository
        self.document_repo = document_repository

    async def index_schema_file(self, path: Union[str, Path], replace: bool = True) -> IndexingStats:
        """
        Index a schema.sql file into the schema corpus.

        Args:
            path: Path to the SQL file
            replace: Clear the table first

        Raises:
            ValidationError: If the file does not exist
            VectorStoreError, EmbeddingError: On storage or embedding failures
        """
        schema_path = Path(path)
        if not schema_path.is_file():
            raise ValidationError(f"Schema file not found: {schema_path}")

        chunks = chunk_schema_sql(schema_path.read_text(encoding="utf-8"))
        logger.info("Schema file chunked", path=str(schema_path), chunk_count=len(chunks))

        return await self._store(self.schema_repo, chunks, files_processed=1, replace=replace)

    async def index_html_directory(
        self,
        directory: Union[str, Path],
        replace: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> IndexingStats:
        """
        Index every *.html file of `directory` into the document corpus.

        Files are read in name order; each chunk records its file name as `source`.

        Raises:
            ValidationError: If the directory does not exist
            VectorStoreError, EmbeddingError: On storage or embedding failures
        """
        html_dir = Path(directory)
        if not html_dir.is_dir():
            raise ValidationError(f"HTML directory not found: {html_dir}")

        files = sorted(html_dir.glob("*.html"))
        chunks: List[RetrievedChunk] = []

        for html_file in files:
            text = html_to_text(html_file.read_text(encoding="utf-8"))
            pieces = chunk_text(text, chunk_size=chunk_size, overlap=overlap)
            chunks.extend(
                RetrievedChunk(content=piece, metadata={"source": html_file.name})
                for piece in pieces
            )
            logger.info("HTML file chunked", file=html_file.name, chunk_count=len(pieces))

        if not files:
            logger.warning("No HTML files found", directory=str(html_dir))

        return await self._store(self.document_repo, chunks, files_processed=len(files), replace=replace)

    @staticmethod
    async def _store(
        repository: VectorRepository,
        chunks: List[RetrievedChunk],
        files_processed: int,
        replace: bool,
    ) -> IndexingStats:
        await repository.ensure_setup()
        if replace:
            await repository.clear()

        inserted = await repository.add_chunks(chunks)

        logger.info(
            "Corpus indexed",
            table_name=repository.table_name,
            files_processed=files_processed,
            chunks_indexed=inserted,
            replaced=replace,
        )
        return IndexingStats(
            table_name=repository.table_name,
            files_processed=files_processed,
            chunks_indexed=inserted,
            replaced=replace,
        )
