"""
LLM client for OpenRouter / OpenAI using LangChain.

This module provides an async LLM client built on LangChain's ChatOpenAI.
The provider (OpenRouter or OpenAI) is resolved from LLMConfig once, when
the client connects.
"""

from typing import Any, List, Optional
from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage, BaseMessage
from pydantic import SecretStr

from ..config import LLMConfig
from ..utils.logging import get_module_logger
from ..utils.input_limits import InputValidator
from ..domain.errors import ConfigurationError, LLMError


logger = get_module_logger()


def _content_to_text(content: Any) -> str:
    """Flatten a message content (plain string or list of content parts) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content)


class LLMClient:
    """
    LLM client using LangChain's ChatOpenAI.

    A thin infrastructure layer: it sends one system instruction plus one
    user message and returns the generated text. Prompt engineering lives in
    the repositories.

    Usage:
        client = LLMClient(config)
        await client.connect()

        answer = await client.generate(
            "How many users are there?",
            system_prompt="You are a PostgreSQL expert...",
            temperature=0.0,
        )

        await client.close()
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._llm: Optional[ChatOpenAI] = None
        self._is_connected = False
        self.provider: Optional[str] = None
        self.model: Optional[str] = None

        logger.info(
            "LLM client configured",
            temperature=config.temperature,
            max_tokens=config.max_tokens
        )

    async def connect(self) -> None:
        """
        Resolve the provider and build the LangChain ChatOpenAI client.

        No API call is made here; credentials are validated on first use.

        Raises:
            ConfigurationError: If no provider key is configured
            LLMError: If the client cannot be constructed
        """
        if self._is_connected:
            logger.warning("LLM client already connected")
            return

        credentials = self.config.credentials()
        logger.info("Initializing LLM client", provider=credentials.provider, model=credentials.model)

        try:
            self._llm = ChatOpenAI(
                model=credentials.model,
                api_key=SecretStr(credentials.api_key),
                base_url=credentials.base_url,
                temperature=self.config.temperature,
                max_completion_tokens=self.config.max_tokens,
                timeout=self.config.timeout_seconds,
                max_retries=self.config.max_retries
            )
        except Exception as e:
            error_msg = f"Failed to initialize LLM client: {e}"
            logger.error(error_msg, error_type=type(e).__name__)
            raise LLMError(error_msg) from e

        self.provider = credentials.provider
        self.model = credentials.model
        self._is_connected = True
        logger.info("LLM client ready", provider=self.provider)

    async def close(self) -> None:
        """Drop the model handle."""
        # ChatOpenAI holds no pooled resources of its own
        self._is_connected = False
        self._llm = None
        logger.info("LLM client closed")

    def is_connected(self) -> bool:
        return self._is_connected and self._llm is not None

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate a text response.

        Args:
            prompt: User message
            system_prompt: Optional system instruction
            temperature: Optional temperature override
            max_tokens: Optional max tokens override

        Returns:
            Generated text. May be empty; callers decide what empty means.

        Raises:
            LLMError: If the client is not connected, the input is too large
                or the provider call fails
        """
        if not self.is_connected() or self._llm is None:
            raise LLMError("LLM client is not connected")

        try:
            InputValidator.validate_total_chars(
                prompt=prompt,
                system_prompt=system_prompt,
                max_chars=self.config.max_input_chars
            )
        except ValueError as e:
            raise LLMError(str(e)) from e

        logger.debug(
            "LLM call",
            prompt_length=len(prompt),
            system_prompt_length=len(system_prompt) if system_prompt else 0,
            temperature=self.config.temperature if temperature is None else temperature,
        )

        messages: List[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        llm = self._llm
        if temperature is not None or max_tokens is not None:
            bind_kwargs = {}
            if temperature is not None:
                bind_kwargs["temperature"] = temperature
            if max_tokens is not None:
                bind_kwargs["max_completion_tokens"] = max_tokens
            llm = llm.bind(**bind_kwargs)

        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            error_msg = f"LLM generation failed: {e}"
            logger.error(
                error_msg,
                error_type=type(e).__name__,
                prompt_length=len(prompt),
            )
            raise LLMError(error_msg) from e

        content = _content_to_text(getattr(response, "content", None))
        if not content.strip():
            logger.warning("LLM returned empty response", model=self.model)

        logger.debug("LLM response generated", response_length=len(content))
        return content

    async def health_check(self) -> str:
        """Configuration-level status; no API call is made."""
        if self.is_connected():
            return "healthy"
        try:
            self.config.credentials()
        except ConfigurationError as e:
            return f"unhealthy: {e.message}"
        return "not_connected"
