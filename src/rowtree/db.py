"""
Database connection and query utilities.

Provides a simple interface for executing named-parameter queries with
psycopg, returning results as nested rows with any attached subqueries
already embedded.

For testing, use set_connection_override() to inject a connection
that will be used instead of creating new ones. This enables
transaction rollback between tests.
"""

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, Union

import psycopg

from rowtree.adapter import ResultSetAdapter, Row, Subquery
from rowtree.config import config
from rowtree.parameters import Parameters

Query = Union[str, Parameters]
Attachments = Mapping[str, Union[str, Parameters, Subquery]]

# =============================================================================
# Connection Override (for testing)
# =============================================================================

_connection_override: Optional[psycopg.Connection] = None


def set_connection_override(conn: psycopg.Connection) -> None:
    """
    Set a connection to use instead of creating new ones.

    Used by test fixtures to ensure all database operations run
    within a single transaction that can be rolled back.

    Args:
        conn: The connection to use for all subsequent operations
    """
    global _connection_override
    _connection_override = conn


def clear_connection_override() -> None:
    """Clear the connection override, restoring normal behavior."""
    global _connection_override
    _connection_override = None


# =============================================================================
# Connection Management
# =============================================================================


@contextmanager
def get_connection():
    """
    Context manager for database connections.

    In normal operation:
        - Opens a new connection
        - Commits on successful exit
        - Rolls back on exception
        - Closes connection when done

    With override set (testing):
        - Returns the override connection
        - Does NOT commit, rollback, or close
        - Caller (test fixture) manages the transaction
    """
    if _connection_override is not None:
        yield _connection_override
        return

    if not config.database_url:
        raise RuntimeError("DATABASE_URL is not configured")

    conn = psycopg.connect(config.database_url)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def get_cursor():
    """
    Context manager for a cursor with tuple rows.

    ResultSetAdapter builds its own rows from the column labels, so
    no row factory is needed here.
    """
    with get_connection() as conn:
        with conn.cursor() as cur:
            yield cur


# =============================================================================
# Query Helpers
# =============================================================================


def _check_paramstyle(query: Union[Parameters, Subquery], name: str) -> None:
    """Reject queries not compiled for psycopg's format paramstyle."""
    if isinstance(query, Subquery):
        _check_paramstyle(query.parameters, name)
        for key, child in query.attachments.items():
            _check_paramstyle(child, f"{name} > {key!r}")
        return

    if query.paramstyle != "format":
        raise ValueError(f"{name} was compiled for {query.paramstyle!r}, psycopg needs 'format'")


@contextmanager
def query(
    sql: Query,
    arguments: Optional[Mapping[str, Any]] = None,
    attachments: Optional[Attachments] = None,
) -> Iterator[ResultSetAdapter]:
    """
    Execute a query and yield an adapter over its results.

    The connection and cursor stay open until the block exits, so rows
    (and their attachments) can be streamed.

    Usage:
        with db.query("SELECT * FROM pet WHERE owner = :owner", {"owner": "Gwen"}) as rows:
            for row in rows:
                ...

    Args:
        sql: Query text with :name placeholders, or parsed Parameters
        arguments: Mapping of parameter names to values
        attachments: Mapping of attachment keys to subqueries
    """
    parameters = sql if isinstance(sql, Parameters) else Parameters.parse(sql, "format")
    _check_paramstyle(parameters, "Query")
    for key, subquery in (attachments or {}).items():
        if isinstance(subquery, (Parameters, Subquery)):
            _check_paramstyle(subquery, f"Attachment {key!r}")

    with get_cursor() as cur:
        parameters.execute(cur, arguments)

        adapter = ResultSetAdapter(cur, paramstyle="format")
        for key, subquery in (attachments or {}).items():
            adapter.attach(key, subquery)

        yield adapter


def fetch_one(
    sql: Query,
    arguments: Optional[Mapping[str, Any]] = None,
    attachments: Optional[Attachments] = None,
) -> Optional[Row]:
    """
    Execute a query and return its first row.

    Returns:
        Nested row, or None if no row found
    """
    with query(sql, arguments, attachments) as rows:
        return rows.fetch_one()


def fetch_all(
    sql: Query,
    arguments: Optional[Mapping[str, Any]] = None,
    attachments: Optional[Attachments] = None,
) -> list[Row]:
    """
    Execute a query and return all rows.

    Returns:
        List of nested rows, empty list if no rows found
    """
    with query(sql, arguments, attachments) as rows:
        return rows.fetch_all()
