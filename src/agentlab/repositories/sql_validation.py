"""
SQL Validation Repository.

Enforces the read-only precondition of the Query Executor: the statement's
first keyword, uppercased, must be SELECT.

Limits:
- This is a prefix check, not a parser. It is not injection-proof
  ("SELECT 1; DROP TABLE users" passes, and so does a SELECT calling a
  volatile function).
- Defense in depth is the READ ONLY transaction the executor runs in
  (DatabaseConfig.enforce_read_only) plus a read-only database role.
- CTEs ("WITH ... SELECT") are rejected because their first keyword is WITH.
"""

from agentlab.domain.errors import SQLValidationError
from agentlab.utils.logging import get_module_logger
from agentlab.utils.sql_text import READ_ONLY_KEYWORD, leading_keyword

logger = get_module_logger()

ONLY_SELECT_MESSAGE = "Only SELECT queries are allowed"


class SQLValidationRepository:
    """Pure, I/O-free checks on SQL text."""

    def ensure_select_only(self, sql: str) -> None:
        """
        Raises:
            SQLValidationError: If the first keyword is not SELECT
        """
        keyword = leading_keyword(sql)
        if keyword != READ_ONLY_KEYWORD:
            logger.warning("Rejected non-SELECT statement", leading_keyword=keyword or None)
            raise SQLValidationError(ONLY_SELECT_MESSAGE, details={"leading_keyword": keyword})
