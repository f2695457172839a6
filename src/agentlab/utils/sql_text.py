"""
Normalization of SQL text produced by the LLM.

Stripping rules (applied in order):
1. Surrounding whitespace is trimmed.
2. A leading fence is removed: three backticks, an optional language tag
   (``sql``, ``postgresql``, ...) and at most one newline.
3. A trailing fence is removed: an optional newline and three backticks.
4. The result is trimmed again.

Fences in the middle of the text are left alone.
"""

import re
from typing import Optional

_LEADING_FENCE = re.compile(r"^```\w*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")
_LEADING_WORD = re.compile(r"^\s*([A-Za-z_]+)")

READ_ONLY_KEYWORD = "SELECT"


def strip_code_fences(raw: Optional[str]) -> str:
    """
    Remove markdown code fences around generated SQL.

    Example:
        >>> strip_code_fences("```sql\\nSELECT 1\\n```")
        'SELECT 1'
    """
    if not raw:
        return ""
    text = raw.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def leading_keyword(sql: Optional[str]) -> str:
    """Uppercased first word of the statement, or "" when it starts with no word."""
    if not sql:
        return ""
    match = _LEADING_WORD.match(sql)
    return match.group(1).upper() if match else ""


def is_select_statement(sql: Optional[str]) -> bool:
    """
    True when the first keyword is SELECT (case-insensitive).

    This is a prefix check only. It is not injection-proof: a SELECT can
    call volatile functions and "SELECT 1; DROP ..." passes. Executor
    statements therefore also run in a read-only transaction.
    """
    return leading_keyword(sql) == READ_ONLY_KEYWORD
