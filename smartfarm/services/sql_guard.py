# smartfarm/services/sql_guard.py
"""
Read-only filter for assistant-generated SQL.

This is a keyword blocklist, not a security boundary: it only stops the
obvious write/DDL statements. Statements must start with SELECT and may not
contain any blocked keyword as a standalone word. Identifiers that merely
contain a keyword (deleted_at, created_at, last_update) are fine.
"""
import re
from typing import Optional

from smartfarm.core.errors import UnsafeQueryError

BLOCKED_KEYWORDS = ("DROP", "DELETE", "UPDATE", "INSERT", "ALTER", "TRUNCATE", "CREATE")

# \b treats "_" as a word character, so deleted_at never matches DELETE
_BLOCKED_PATTERN = re.compile(r"\b(" + "|".join(BLOCKED_KEYWORDS) + r")\b", re.IGNORECASE)


def find_blocked_keyword(query: str) -> Optional[str]:
    """Return the first standalone blocked keyword in the query, or None."""
    match = _BLOCKED_PATTERN.search(query)
    return match.group(1).upper() if match else None


def _leading_keyword(statement: str) -> str:
    words = statement.split(None, 1)
    return words[0].upper() if words else ""


def ensure_read_only(query: str) -> str:
    """
    Validate a generated statement and return it trimmed.

    A statement that does not start with SELECT is reported with the blocked
    keyword it contains, or else with its first word.

    Raises:
        UnsafeQueryError: if the statement is not a plain SELECT
    """
    if not isinstance(query, str):
        raise UnsafeQueryError("", "Only SELECT queries are allowed")

    statement = query.strip()
    if not statement.upper().startswith("SELECT"):
        keyword = find_blocked_keyword(statement) or _leading_keyword(statement)
        raise UnsafeQueryError(keyword, "Only SELECT queries are allowed")

    keyword = find_blocked_keyword(statement)
    if keyword:
        raise UnsafeQueryError(keyword)

    return statement


def is_read_only(query: str) -> bool:
    try:
        ensure_read_only(query)
    except UnsafeQueryError:
        return False
    return True
