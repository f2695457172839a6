import pytest

from agentlab.domain.errors import ValidationError
from agentlab.services.indexing_service import IndexingService


class RecordingVectorRepository:
    """Collects what IndexingService would write to pgvector."""

    def __init__(self, table_name):
        self.table_name = table_name
        self.calls = []
        self.chunks = []

    async def ensure_setup(self):
        self.calls.append("ensure_setup")

    async def clear(self):
        self.calls.append("clear")
        self.chunks = []

    async def add_chunks(self, chunks):
        self.calls.append("add_chunks")
        self.chunks.extend(chunks)
        return len(chunks)


@pytest.fixture
def repositories():
    return RecordingVectorRepository("schema_vectors"), RecordingVectorRepository("html_vectors")


@pytest.fixture
def service(repositories):
    schema_repo, document_repo = repositories
    return IndexingService(schema_repository=schema_repo, document_repository=document_repo)


@pytest.mark.asyncio
async def test_index_schema_file(service, repositories, tmp_path):
    schema_file = tmp_path / "schema.sql"
    schema_file.write_text(
        "CREATE TABLE users (\n  id SERIAL PRIMARY KEY\n);\n"
        "COMMENT ON TABLE users IS 'Registered SSO accounts';\n",
        encoding="utf-8",
    )
    schema_repo, document_repo = repositories

    stats = await service.index_schema_file(schema_file)

    assert stats.table_name == "schema_vectors"
    assert stats.files_processed == 1
    assert stats.chunks_indexed == 3
    assert stats.replaced is True
    assert schema_repo.calls == ["ensure_setup", "clear", "add_chunks"]
    assert document_repo.calls == []


@pytest.mark.asyncio
async def test_append_mode_does_not_clear(service, repositories, tmp_path):
    schema_file = tmp_path / "schema.sql"
    schema_file.write_text("CREATE TABLE t (id INT);", encoding="utf-8")

    await service.index_schema_file(schema_file, replace=False)

    assert "clear" not in repositories[0].calls


@pytest.mark.asyncio
async def test_missing_schema_file(service, tmp_path):
    with pytest.raises(ValidationError):
        await service.index_schema_file(tmp_path / "nope.sql")


@pytest.mark.asyncio
async def test_index_html_directory(service, repositories, tmp_path):
    (tmp_path / "b.html").write_text("<p>" + "beta " * 200 + "</p>", encoding="utf-8")
    (tmp_path / "a.html").write_text("<h1>SSO</h1><p>Single sign-on.</p>", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    document_repo = repositories[1]

    stats = await service.index_html_directory(tmp_path, chunk_size=100, overlap=20)

    assert stats.files_processed == 2
    assert stats.table_name == "html_vectors"
    assert stats.chunks_indexed == len(document_repo.chunks)
    assert document_repo.chunks[0].content == "SSO Single sign-on."
    assert document_repo.chunks[0].metadata == {"source": "a.html"}
    assert {c.metadata["source"] for c in document_repo.chunks[1:]} == {"b.html"}


@pytest.mark.asyncio
async def test_empty_html_directory(service, tmp_path):
    stats = await service.index_html_directory(tmp_path)
    assert stats.files_processed == 0
    assert stats.chunks_indexed == 0


@pytest.mark.asyncio
async def test_missing_html_directory(service, tmp_path):
    with pytest.raises(ValidationError):
        await service.index_html_directory(tmp_path / "missing")
