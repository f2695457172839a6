"""
Infrastructure layer for external integrations.

Thin clients for PostgreSQL (asyncpg), text generation and embeddings
(LangChain over OpenRouter / OpenAI).
"""

from .database_client import DatabaseClient
from .embedding_client import EmbeddingClient
from .llm_client import LLMClient

__all__ = ["DatabaseClient", "EmbeddingClient", "LLMClient"]
