import pytest

from agentlab.config import (
    MISSING_PROVIDER_KEY_MESSAGE,
    EmbeddingConfig,
    LLMConfig,
    get_settings,
    resolve_provider,
)
from agentlab.config_constants import LogLevel, OPENAI_API_URL, OPEN_ROUTER_API_URL
from agentlab.domain.errors import ConfigurationError


## test for import and loading settings
def test_get_settings():
    settings = get_settings()
    assert settings is not None
    assert settings.database.database_url
    assert settings.agents.schema_top_k > 0
    assert settings.agents.document_top_k > 0
    assert settings.llm.temperature >= 0.0
    assert settings.app.log_level in LogLevel
    assert settings.server.port == 3002


## test for singleton
def test_get_settings_singleton():
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2


class TestResolveProvider:
    """OpenRouter wins when both keys are present, OpenAI is the fallback."""

    def test_openrouter_preferred(self):
        creds = resolve_provider("sk-or", "sk-openai", "openai/gpt-4o-mini", "gpt-4o-mini")
        assert creds.provider == "openrouter"
        assert creds.api_key == "sk-or"
        assert creds.base_url == OPEN_ROUTER_API_URL
        assert creds.model == "openai/gpt-4o-mini"

    def test_openai_fallback(self):
        creds = resolve_provider(None, "sk-openai", "openai/gpt-4o-mini", "gpt-4o-mini")
        assert creds.provider == "openai"
        assert creds.base_url == OPENAI_API_URL
        assert creds.model == "gpt-4o-mini"

    def test_empty_string_key_is_absent(self):
        creds = resolve_provider("", "sk-openai", "a", "b")
        assert creds.provider == "openai"

    def test_no_key_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_provider(None, None, "a", "b")
        assert exc_info.value.message == MISSING_PROVIDER_KEY_MESSAGE

    def test_llm_and_embedding_configs_use_same_rule(self):
        assert LLMConfig(openai_api_key="k").credentials().provider == "openai"
        assert EmbeddingConfig(openrouter_api_key="k").credentials().provider == "openrouter"
        with pytest.raises(ConfigurationError):
            EmbeddingConfig().credentials()
