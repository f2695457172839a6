"""
Router Repository.

Single-label classification of a question into one of two sub-pipelines.
The raw label is trimmed and lowercased; any output containing "sql" is a
database question, everything else goes to document QA.
"""

from agentlab.config import AgentConfig
from agentlab.domain.base_enums import RouteDecision
from agentlab.infrastructure.llm_client import LLMClient
from agentlab.utils.logging import get_module_logger

logger = get_module_logger()

ROUTER_SYSTEM_PROMPT = """You are a router. Given the user's message, decide which agent should handle it.

- "html_rag": Simple questions about general knowledge, documentation, definitions, how-to, or content that can be answered from documentation/web pages. Examples: "What is SSO?", "How does login work?", "What are the project guidelines?"
- "sql_agent": Questions that require querying a database (lists, counts, who has what, filtering data). Examples: "How many users?", "List all permissions", "Which users have permission X?"

Reply with exactly one word: html_rag or sql_agent. No other text."""


def parse_route_label(raw: str) -> RouteDecision:
    """
    Map raw classifier output to a route.

    Example:
        >>> parse_route_label("  SQL_AGENT\\n")
        <RouteDecision.DATABASE_QUERY: 'sql_agent'>
        >>> parse_route_label("not sure")
        <RouteDecision.DOCUMENT_QA: 'html_rag'>
    """
    normalized = (raw or "").strip().lower()
    if "sql" in normalized:
        return RouteDecision.DATABASE_QUERY
    return RouteDecision.DOCUMENT_QA


class RouterRepository:
    """Repository for question routing."""

    def __init__(self, llm_client: LLMClient, config: AgentConfig):
        self.llm_client = llm_client
        self.config = config

    async def route(self, question: str) -> RouteDecision:
        """
        Raises:
            LLMError: If the classification call fails
        """
        raw = await self.llm_client.generate(
            prompt=question,
            system_prompt=ROUTER_SYSTEM_PROMPT,
            temperature=self.config.router_temperature,
        )
        decision = parse_route_label(raw)
        logger.info("Question routed", route=decision.value, raw_label=raw.strip()[:50])
        return decision
