"""
SQL Generation Repository.

Handles LLM-based SQL generation:
- Prompt building with schema context
- LLM interaction
- Response normalization (code-fence stripping)

The model is told to answer with bare SQL; it is not trusted to comply,
so fences are always stripped. Empty output yields an empty GeneratedSQL.
The generator does not parameterize, so `parameters` is always empty.
"""

from agentlab.config import AgentConfig
from agentlab.domain.responses import GeneratedSQL, SchemaContext
from agentlab.infrastructure.llm_client import LLMClient
from agentlab.utils.logging import get_module_logger
from agentlab.utils.sql_text import leading_keyword, strip_code_fences

logger = get_module_logger()

SQL_SYSTEM_PROMPT = """You are a PostgreSQL expert. Given a user question and the relevant database schema, output ONLY a valid PostgreSQL SELECT query. No explanation, no markdown, no code block wrapper.
Rules:
- Use only the tables/columns mentioned in the schema context.
- Prefer JOINs over subqueries when listing related data.
- Use table aliases if helpful (e.g. u for users, p for permissions).
- Return only one SQL statement.
- Do not use INSERT, UPDATE, DELETE, or DDL. Only SELECT."""


def build_sql_system_prompt(schema_text: str) -> str:
    return f"{SQL_SYSTEM_PROMPT}\n\nSchema context:\n{schema_text}"


class SQLGenerationRepository:
    """Repository for LLM-based SQL generation."""

    def __init__(self, llm_client: LLMClient, config: AgentConfig):
        self.llm_client = llm_client
        self.config = config

    async def generate(self, question: str, schema: SchemaContext) -> GeneratedSQL:
        """
        Generate one SELECT statement for `question`.

        Returns:
            GeneratedSQL, empty when the model produced nothing usable

        Raises:
            LLMError: If the generation call fails
        """
        system_prompt = build_sql_system_prompt(schema.text)

        logger.debug(
            "Calling LLM for SQL generation",
            system_prompt_length=len(system_prompt),
            schema_is_fallback=schema.is_fallback,
        )

        raw = await self.llm_client.generate(
            prompt=question,
            system_prompt=system_prompt,
            temperature=self.config.sql_temperature,
        )
        sql = strip_code_fences(raw)

        if not sql:
            logger.warning("SQL generation returned no SQL", raw_length=len(raw))
        else:
            logger.info("SQL generated", sql_length=len(sql), leading_keyword=leading_keyword(sql))
            logger.debug("Generated SQL", sql=sql)

        return GeneratedSQL(sql=sql, parameters=())
