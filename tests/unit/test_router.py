import pytest

from agentlab.domain.base_enums import RouteDecision
from agentlab.domain.errors import LLMError
from agentlab.repositories.router import ROUTER_SYSTEM_PROMPT, RouterRepository, parse_route_label


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("sql_agent", RouteDecision.DATABASE_QUERY),
        ("  SQL_AGENT\n", RouteDecision.DATABASE_QUERY),
        ("I'd use sql", RouteDecision.DATABASE_QUERY),
        ("html_rag", RouteDecision.DOCUMENT_QA),
        ("not sure", RouteDecision.DOCUMENT_QA),
        ("", RouteDecision.DOCUMENT_QA),
    ],
)
def test_parse_route_label(raw, expected):
    assert parse_route_label(raw) is expected


@pytest.mark.asyncio
async def test_route_uses_router_prompt_and_temperature(llm, agent_config):
    llm.responses["router"] = "sql_agent"
    repo = RouterRepository(llm, agent_config)

    decision = await repo.route("How many users are there?")

    assert decision is RouteDecision.DATABASE_QUERY
    (call,) = llm.calls
    assert call["prompt"] == "How many users are there?"
    assert call["system_prompt"] == ROUTER_SYSTEM_PROMPT
    assert call["temperature"] == agent_config.router_temperature


@pytest.mark.asyncio
async def test_route_propagates_llm_failure(llm, agent_config):
    llm.responses["router"] = LLMError("LLM generation failed: Connection error.")
    repo = RouterRepository(llm, agent_config)

    with pytest.raises(LLMError):
        await repo.route("What is SSO?")
