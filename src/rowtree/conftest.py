# src/rowtree/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
This file provides fixtures available to all tests in the package.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["ROWTREE_ENV"] = "test"

import sqlite3
from unittest.mock import MagicMock

import psycopg
import pytest

from rowtree import db
from rowtree.adapter import ResultSetAdapter
from rowtree.config import config
from rowtree.parameters import Parameters

# =============================================================================
# SQLite Fixtures
# =============================================================================

SCHEMA = """
CREATE TABLE employees (
    emp_no INTEGER PRIMARY KEY,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL
);

CREATE TABLE titles (
    emp_no INTEGER NOT NULL,
    title TEXT NOT NULL,
    from_date TEXT NOT NULL
);

CREATE TABLE salaries (
    emp_no INTEGER NOT NULL,
    salary INTEGER NOT NULL,
    from_date TEXT NOT NULL
);
"""

EMPLOYEES = [
    (10001, "Georgi", "Facello"),
    (10002, "Bezalel", "Simmel"),
    (10003, "Parto", "Bamford"),
]

TITLES = [
    (10001, "Senior Engineer", "1986-06-26"),
    (10002, "Staff", "1996-08-03"),
    (10002, "Senior Staff", "2000-08-03"),
]

SALARIES = [
    (10001, 60117, "1986-06-26"),
    (10001, 62102, "1987-06-26"),
    (10002, 65828, "1996-08-03"),
]


@pytest.fixture
def sqlite_connection():
    """
    Provide an in-memory SQLite database seeded with employee data.

    SQLite uses the qmark paramstyle and allows several open cursors per
    connection, which attachments rely on.
    """
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA)
    conn.executemany("INSERT INTO employees VALUES (?, ?, ?)", EMPLOYEES)
    conn.executemany("INSERT INTO titles VALUES (?, ?, ?)", TITLES)
    conn.executemany("INSERT INTO salaries VALUES (?, ?, ?)", SALARIES)
    conn.commit()

    yield conn

    conn.close()


@pytest.fixture
def make_adapter(sqlite_connection):
    """Execute a named-parameter query on SQLite and wrap the cursor."""
    cursors = []

    def _make(sql: str, arguments: dict = None) -> ResultSetAdapter:
        cur = sqlite_connection.cursor()
        cursors.append(cur)
        Parameters.parse(sql, "qmark").execute(cur, arguments)
        return ResultSetAdapter(cur, paramstyle="qmark")

    yield _make

    for cur in cursors:
        cur.close()


# =============================================================================
# Mock Cursor Fixtures
# =============================================================================


def make_mock_cursor(columns: list[str], records: list) -> MagicMock:
    """
    Build a cursor mock returning ``records`` from fetchone().

    Exception instances in ``records`` are raised when reached. None is
    appended to signal exhaustion.
    """
    cursor = MagicMock()
    cursor.description = [(name, None, None, None, None, None, None) for name in columns]
    cursor.fetchone.side_effect = list(records) + [None]
    return cursor


@pytest.fixture
def mock_cursor():
    return make_mock_cursor


# =============================================================================
# PostgreSQL Fixtures
# =============================================================================


@pytest.fixture
def db_connection():
    """
    Provide a PostgreSQL connection with transaction rollback.

    Skipped unless DATABASE_URL is configured. Each test runs in a
    transaction that is rolled back at the end.
    """
    if not config.database_url:
        pytest.skip("DATABASE_URL is not configured")

    conn = psycopg.connect(config.database_url)

    # Override the db module to use this connection
    db.set_connection_override(conn)

    yield conn

    # Rollback any changes made during the test
    conn.rollback()
    db.clear_connection_override()
    conn.close()
