"""
Answer Synthesis Repository.

Turns pipeline results into a natural-language answer:
- SQL branch: question + execution result (rows or error) + SQL used
- Document branch: question + retrieved document chunks

The prose answer is not validated; rows/row_count in the response stay
the authoritative data.
"""

from typing import List, Optional, assert_never

from agentlab.config import AgentConfig
from agentlab.config_constants import CHUNK_SEPARATOR
from agentlab.domain.responses import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    GeneratedSQL,
    RetrievedChunk,
)
from agentlab.infrastructure.llm_client import LLMClient
from agentlab.utils.json_utils import to_pretty_json
from agentlab.utils.logging import get_module_logger

logger = get_module_logger()

DATA_ANSWER_SYSTEM_PROMPT = (
    "You are a helpful data assistant. Answer the user's question in natural language based on "
    "the query results. Be concise. If they asked for counts or lists, summarize clearly. "
    "If there was an error, explain it in plain language and suggest what might be wrong "
    "(e.g. column name)."
)

DOCUMENT_ANSWER_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer the user's question in natural language using ONLY "
    "the following context from documentation or web content. Be concise. If the context does "
    "not contain the answer, say so. Do not make up information."
)

NO_DOCUMENT_CONTEXT = "No relevant content found."


def summarize_execution(execution: ExecutionResult, sample_rows: int) -> str:
    """
    Describe an execution result for the LLM.

    Example:
        >>> summarize_execution(ExecutionFailure(error="boom"), 15)
        'Query failed: boom'
    """
    if isinstance(execution, ExecutionSuccess):
        sample = to_pretty_json(execution.rows[:sample_rows])
        return f"Query returned {execution.row_count} row(s). Sample:\n{sample}"
    if isinstance(execution, ExecutionFailure):
        return f"Query failed: {execution.error}"
    assert_never(execution)


def build_data_answer_prompt(
    question: str,
    execution: ExecutionResult,
    sql: Optional[GeneratedSQL],
    sample_rows: int,
) -> str:
    prompt = f"User question: {question}\n\n{summarize_execution(execution, sample_rows)}"
    if sql is not None and not sql.is_empty:
        prompt += f"\n\nSQL used:\n{sql.sql}"
    return prompt


def build_document_context(chunks: List[RetrievedChunk]) -> str:
    return CHUNK_SEPARATOR.join(chunk.content for chunk in chunks) or NO_DOCUMENT_CONTEXT


class AnswerSynthesisRepository:
    """Repository for LLM answer synthesis."""

    def __init__(self, llm_client: LLMClient, config: AgentConfig):
        self.llm_client = llm_client
        self.config = config

    async def synthesize(
        self,
        question: str,
        execution: ExecutionResult,
        sql: Optional[GeneratedSQL] = None,
    ) -> str:
        """
        Answer from an execution result.

        Errors are explained in plain language, not echoed raw.

        Raises:
            LLMError: If the generation call fails
        """
        prompt = build_data_answer_prompt(question, execution, sql, self.config.answer_sample_rows)

        answer = await self.llm_client.generate(
            prompt=prompt,
            system_prompt=DATA_ANSWER_SYSTEM_PROMPT,
            temperature=self.config.answer_temperature,
        )
        logger.info("Answer synthesized from query results", execution_kind=execution.kind, answer_length=len(answer))
        return answer

    async def synthesize_from_documents(self, question: str, chunks: List[RetrievedChunk]) -> str:
        """
        Answer from retrieved document chunks only.

        Raises:
            LLMError: If the generation call fails
        """
        prompt = f"Context:\n{build_document_context(chunks)}\n\nQuestion: {question}"

        answer = await self.llm_client.generate(
            prompt=prompt,
            system_prompt=DOCUMENT_ANSWER_SYSTEM_PROMPT,
            temperature=self.config.answer_temperature,
        )
        logger.info("Answer synthesized from documents", chunk_count=len(chunks), answer_length=len(answer))
        return answer
