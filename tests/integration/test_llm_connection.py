"""
Integration tests for LLMClient against the configured provider.

Usage:
    pytest tests/integration/test_llm_connection.py -m integration -v -s

Requirements:
    - LLM__OPENROUTER_API_KEY or LLM__OPENAI_API_KEY must be set in .env
"""

import pytest

from agentlab.domain.base_enums import RouteDecision
from agentlab.repositories.router import RouterRepository
from agentlab.repositories.sql_generation import SQLGenerationRepository
from agentlab.domain.responses import SchemaContext
from agentlab.utils.sql_text import is_select_statement


@pytest.mark.integration
class TestLLMConnection:

    @pytest.mark.asyncio
    async def test_basic_generation(self, llm_client):
        assert await llm_client.health_check() == "healthy"
        answer = await llm_client.generate("Reply with the single word: pong", temperature=0.0)
        assert "pong" in answer.lower()

    @pytest.mark.asyncio
    async def test_system_prompt_and_max_tokens(self, llm_client):
        answer = await llm_client.generate(
            "What is 2 + 2?",
            system_prompt="Answer with digits only.",
            temperature=0.0,
            max_tokens=5,
        )
        assert "4" in answer

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "question,expected",
        [
            ("How many users are there?", RouteDecision.DATABASE_QUERY),
            ("What is SSO?", RouteDecision.DOCUMENT_QA),
        ],
    )
    async def test_router_labels(self, llm_client, settings, question, expected):
        repo = RouterRepository(llm_client, settings.agents)
        assert await repo.route(question) is expected

    @pytest.mark.asyncio
    async def test_sql_generation_is_bare_select(self, llm_client, settings):
        repo = SQLGenerationRepository(llm_client, settings.agents)
        schema = SchemaContext(
            text="CREATE TABLE users (\n  id SERIAL PRIMARY KEY,\n  email TEXT NOT NULL\n);",
            notes="excerpts",
        )

        generated = await repo.generate("How many users are there?", schema)

        assert is_select_statement(generated.sql)
        assert "```" not in generated.sql
