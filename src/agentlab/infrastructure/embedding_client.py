"""
Embedding client for OpenRouter / OpenAI using LangChain.

Embeddings are only needed to query and fill the pgvector corpora; the
similarity ordering itself is done by PostgreSQL.
"""

from typing import List, Optional
from pydantic import SecretStr
from langchain_openai import OpenAIEmbeddings

from ..config import EmbeddingConfig
from ..utils.logging import get_module_logger
from ..utils.input_limits import InputValidator
from ..domain.errors import ConfigurationError, EmbeddingError


logger = get_module_logger()


class EmbeddingClient:
    """
    Embedding client using LangChain's OpenAIEmbeddings.

    Usage:
        client = EmbeddingClient(config)
        await client.connect()

        vector = await client.embed_text("What is SSO?")
        vectors = await client.embed_batch(["CREATE TABLE users (...);", "Table users: ..."])

        await client.close()
    """

    def __init__(self, config: EmbeddingConfig):
        self.config = config
        self._embeddings: Optional[OpenAIEmbeddings] = None
        self._is_connected = False
        self.provider: Optional[str] = None

        logger.info(
            "Embedding client configured",
            embedding_dimension=config.embedding_dimension,
            batch_size=config.batch_size
        )

    async def connect(self) -> None:
        """
        Resolve the provider and build the LangChain OpenAIEmbeddings client.

        Raises:
            ConfigurationError: If no provider key is configured
            EmbeddingError: If the client cannot be constructed
        """
        if self._is_connected:
            logger.warning("Embedding client already connected")
            return

        credentials = self.config.credentials()
        logger.info("Initializing embedding client", provider=credentials.provider, model=credentials.model)

        try:
            self._embeddings = OpenAIEmbeddings(
                model=credentials.model,
                api_key=SecretStr(credentials.api_key),
                base_url=credentials.base_url,
                dimensions=self.config.embedding_dimension,
                timeout=self.config.timeout_seconds,
                max_retries=self.config.max_retries,
                chunk_size=self.config.batch_size
            )
        except Exception as e:
            error_msg = f"Failed to initialize embedding client: {e}"
            logger.error(error_msg, error_type=type(e).__name__)
            raise EmbeddingError(error_msg) from e

        self.provider = credentials.provider
        self._is_connected = True
        logger.info("Embedding client ready", provider=self.provider)

    async def close(self) -> None:
        # OpenAIEmbeddings holds no pooled resources of its own
        self._is_connected = False
        self._embeddings = None
        logger.info("Embedding client closed")

    def is_connected(self) -> bool:
        return self._is_connected and self._embeddings is not None

    async def embed_text(self, text: str) -> List[float]:
        """
        Generate the embedding vector of a single query text.

        Raises:
            EmbeddingError: If the call fails, the text is too large or the
                vector has the wrong dimension
        """
        if not self.is_connected() or self._embeddings is None:
            raise EmbeddingError("Embedding client is not connected")

        try:
            InputValidator.validate_batch_chars([text], max_chars_per_text=self.config.max_input_chars, label="Text")
        except ValueError as e:
            raise EmbeddingError(str(e)) from e

        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as e:
            error_msg = f"Embedding generation failed: {e}"
            logger.error(error_msg, error_type=type(e).__name__, text_length=len(text))
            raise EmbeddingError(error_msg) from e

        self._check_dimension(vector)
        logger.debug("Embedding generated", dimension=len(vector))
        return vector

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embedding vectors for many texts, in input order.

        LangChain splits the request into chunks of config.batch_size and
        sends them sequentially.

        Raises:
            EmbeddingError: If the call fails, a text is too large or a
                vector has the wrong dimension
        """
        if not self.is_connected() or self._embeddings is None:
            raise EmbeddingError("Embedding client is not connected")

        if not texts:
            return []

        try:
            InputValidator.validate_batch_chars(texts, max_chars_per_text=self.config.max_input_chars)
        except ValueError as e:
            raise EmbeddingError(str(e)) from e

        logger.info("Generating batch embeddings", num_texts=len(texts), batch_size=self.config.batch_size)

        try:
            vectors = await self._embeddings.aembed_documents(texts)
        except Exception as e:
            error_msg = f"Batch embedding generation failed: {e}"
            logger.error(error_msg, error_type=type(e).__name__, num_texts=len(texts))
            raise EmbeddingError(error_msg) from e

        for i, vector in enumerate(vectors):
            self._check_dimension(vector, index=i)

        logger.info("Batch embeddings generated successfully", num_vectors=len(vectors))
        return vectors

    def _check_dimension(self, vector: List[float], index: Optional[int] = None) -> None:
        if not vector or len(vector) != self.config.embedding_dimension:
            where = f" at index {index}" if index is not None else ""
            raise EmbeddingError(
                f"Invalid embedding dimension{where}: expected {self.config.embedding_dimension}, "
                f"got {len(vector) if vector else 0}"
            )

    async def health_check(self) -> str:
        """Configuration-level status; no API call is made."""
        if self.is_connected():
            return "healthy"
        try:
            self.config.credentials()
        except ConfigurationError as e:
            return f"unhealthy: {e.message}"
        return "not_connected"
