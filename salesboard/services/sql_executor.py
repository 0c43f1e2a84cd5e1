"""
Read-only SQL execution for generated queries.

Generated SQL is validated before it reaches the database:
- must start with SELECT or WITH
- no data-modifying or DDL keywords
- a single statement only
Execution uses a dedicated connection whose transaction is read-only with
a statement timeout on Postgres, and is always rolled back.
"""
import logging
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List
from uuid import UUID

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from salesboard.exceptions import UnsafeQueryError, QueryExecutionError

logger = logging.getLogger(__name__)

FORBIDDEN_KEYWORDS = (
    'insert', 'update', 'delete', 'drop', 'truncate', 'alter', 'create', 'grant', 'revoke'
)

_START_PATTERN = re.compile(r'^(select|with)\s')
_FORBIDDEN_PATTERN = re.compile(r'\b(' + '|'.join(FORBIDDEN_KEYWORDS) + r')\b', re.IGNORECASE)
_MULTI_STATEMENT_PATTERN = re.compile(
    r';\s*(select|insert|update|delete|drop|create|with)', re.IGNORECASE
)


def clean_sql(sql: str) -> str:
    """Trim whitespace and trailing semicolons (models often append one)."""
    return re.sub(r';+\s*$', '', (sql or '').strip()).strip()


def validate_readonly_sql(sql: str) -> str:
    """
    Validate that a query is a single read-only statement.

    Returns:
        The cleaned SQL

    Raises:
        UnsafeQueryError: when any check fails
    """
    cleaned = clean_sql(sql)
    normalized = cleaned.lower()

    if not _START_PATTERN.match(normalized + ' '):
        raise UnsafeQueryError(
            'Only SELECT queries are allowed. Query must start with SELECT or WITH.',
            payload={'query': cleaned[:100]}
        )

    if _FORBIDDEN_PATTERN.search(normalized):
        raise UnsafeQueryError(
            'Query contains forbidden SQL keywords (INSERT, UPDATE, DELETE, DROP, etc.)'
        )

    if _MULTI_STATEMENT_PATTERN.search(normalized):
        raise UnsafeQueryError('Multiple SQL statements are not allowed')

    return cleaned


def to_json_safe(value: Any) -> Any:
    """Convert DB driver values into JSON-serializable equivalents."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytes, memoryview)):
        return bytes(value).hex()
    return value


def execute_readonly_query(session, sql: str, timeout_ms: int = None) -> List[Dict[str, Any]]:
    """
    Validate and execute a SELECT query, returning rows as dicts.

    Args:
        session: SQLAlchemy session
        sql: Query text (generated)
        timeout_ms: Statement timeout; defaults to SQL_QUERY_TIMEOUT_MS

    Raises:
        UnsafeQueryError: query failed validation
        QueryExecutionError: database rejected or timed out the query
    """
    cleaned = validate_readonly_sql(sql)
    if timeout_ms is None:
        timeout_ms = current_app.config.get('SQL_QUERY_TIMEOUT_MS', 20000)

    logger.info(f"[SQL] Executing read-only query: {cleaned[:200]}")

    bind = session.get_bind()
    try:
        with bind.connect() as conn:
            trans = conn.begin()
            try:
                if bind.dialect.name == 'postgresql':
                    conn.execute(text('SET TRANSACTION READ ONLY'))
                    conn.execute(text(f'SET LOCAL statement_timeout = {int(timeout_ms)}'))

                result = conn.execute(text(cleaned))
                columns = list(result.keys())
                rows = [
                    {col: to_json_safe(val) for col, val in zip(columns, row)}
                    for row in result.fetchall()
                ]
            finally:
                trans.rollback()
    except SQLAlchemyError as e:
        message = str(getattr(e, 'orig', None) or e).strip().splitlines()[0]
        logger.warning(f"[SQL] Query failed: {message}")
        raise QueryExecutionError(message)

    logger.info(f"[SQL] Query returned {len(rows)} row(s)")
    return rows
