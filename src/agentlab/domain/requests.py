"""
API request models for the agentlab router service.

All fields include descriptions that appear in Swagger/OpenAPI documentation.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


MISSING_QUESTION_MESSAGE = "Missing or invalid 'question' in body"


class QueryRequest(BaseModel):
    """
    Request model for POST /query.

    Accepts `{"question": ...}` or, as some clients send, `{"message": ...}`.
    """

    question: str = Field(
        ...,
        description="Natural language question. "
                    "Database questions are answered with SQL, everything else from documents. "
                    "Example: 'How many users are there?'",
        json_schema_extra={"example": "How many users are there?"}
    )

    @model_validator(mode="before")
    @classmethod
    def accept_question_or_message(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError(MISSING_QUESTION_MESSAGE)
        question = data.get("question")
        if question is None:
            question = data.get("message")
        if not isinstance(question, str) or not question.strip():
            raise ValueError(MISSING_QUESTION_MESSAGE)
        return {"question": question}
