"""
Chunking of source material for the two vector corpora.

Schema corpus: a schema.sql file becomes one full-schema chunk, one chunk per
CREATE TABLE block and one chunk per COMMENT ON TABLE statement.

Document corpus: HTML pages are reduced to plain text and cut into
overlapping fixed-size chunks.
"""

import html
import re
from typing import List

from agentlab.domain import ChunkType, RetrievedChunk

DEFAULT_CHUNK_SIZE = 400
DEFAULT_CHUNK_OVERLAP = 80

_CREATE_TABLE = re.compile(r"CREATE TABLE (\w+)\s*\([\s\S]*?\);", re.IGNORECASE)
_TABLE_COMMENT = re.compile(r"COMMENT ON TABLE (\w+) IS '([^']+)';", re.IGNORECASE)
_SCRIPT_OR_STYLE = re.compile(r"<(script|style)\b[^>]*>[\s\S]*?</\1>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


def chunk_schema_sql(schema_sql: str) -> List[RetrievedChunk]:
    """
    Split a schema file into schema-corpus chunks.

    Returns:
        full_schema chunk first, then table chunks, then comment chunks,
        each in file order. Empty input yields no chunks.
    """
    if not schema_sql.strip():
        return []

    chunks = [
        RetrievedChunk(
            content=schema_sql.strip(),
            metadata={"type": ChunkType.FULL_SCHEMA.value},
        )
    ]

    for match in _CREATE_TABLE.finditer(schema_sql):
        chunks.append(
            RetrievedChunk(
                content=match.group(0).strip(),
                metadata={"type": ChunkType.TABLE.value, "table": match.group(1)},
            )
        )

    for match in _TABLE_COMMENT.finditer(schema_sql):
        table, comment = match.group(1), match.group(2)
        chunks.append(
            RetrievedChunk(
                content=f"Table {table}: {comment}",
                metadata={"type": ChunkType.COMMENT.value, "table": table},
            )
        )

    return chunks


def html_to_text(page: str) -> str:
    """Drop script/style blocks and tags, decode entities, collapse whitespace."""
    text = _SCRIPT_OR_STYLE.sub(" ", page)
    text = _TAG.sub(" ", text)
    text = html.unescape(text)
    return _WHITESPACE.sub(" ", text).strip()


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    """
    Cut text into overlapping chunks of at most `chunk_size` characters.

    A chunk that is not the last one ends at the last space inside the
    window when that space lies past the window's midpoint. The next window
    starts `overlap` characters before the previous end, and always moves
    forward, so the loop terminates for any input.

    Raises:
        ValueError: If chunk_size < 1 or overlap is outside [0, chunk_size)
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    if not 0 <= overlap < chunk_size:
        raise ValueError(f"overlap must be in [0, {chunk_size}), got {overlap}")

    chunks: List[str] = []
    start = 0
    length = len(text)

    while start < length:
        end = min(start + chunk_size, length)
        if end < length:
            last_space = text.rfind(" ", start, end)
            if last_space - start > chunk_size // 2:
                end = last_space

        piece = text[start:end].strip()
        if piece:
            chunks.append(piece)

        if end >= length:
            break
        start = max(end - overlap, start + 1)

    return chunks
