import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import asyncpg
from pydantic import BaseModel


def sanitize_for_json(obj: Any) -> Any:
    """
    Recursively sanitize objects to be JSON serializable.

    Converts:
    - datetime/date objects to ISO format strings
    - Decimal to float
    - UUID to string
    - bytea values (bytes, memoryview) to PostgreSQL hex text, e.g. "\\x00ff"
    - Pydantic models and asyncpg records (composite columns) to dict
    - Other non-serializable types to string representation
    """
    if obj is None:
        return None

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, Decimal):
        return float(obj)

    if isinstance(obj, UUID):
        return str(obj)

    if isinstance(obj, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(obj).hex()

    if isinstance(obj, asyncpg.Record):
        return {key: sanitize_for_json(value) for key, value in obj.items()}

    if isinstance(obj, BaseModel):
        return sanitize_for_json(obj.model_dump())

    if isinstance(obj, dict):
        return {key: sanitize_for_json(value) for key, value in obj.items()}

    if isinstance(obj, (list, tuple, set)):
        return [sanitize_for_json(item) for item in obj]

    if isinstance(obj, (str, int, float, bool)):
        return obj

    # Fallback: convert to string
    return str(obj)


def to_pretty_json(obj: Any) -> str:
    """Indented JSON of `obj` after sanitizing; used to show rows to the LLM."""
    return json.dumps(sanitize_for_json(obj), indent=2, ensure_ascii=False)


def parse_jsonb(value: Any) -> dict:
    """
    Decode a JSONB column value.

    asyncpg returns JSONB as text unless a codec is registered.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    parsed = json.loads(value)
    return parsed if isinstance(parsed, dict) else {"value": parsed}
