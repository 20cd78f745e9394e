"""
Nested row sequences over DB-API cursors.

ResultSetAdapter turns a flat cursor into a single-pass iterator of Row
values. Dotted column labels become nested rows:

    SELECT id, first_name AS "name.first", last_name AS "name.last" ...

    -> {"id": 1, "name": {"first": "A", "last": "B"}}

Attached subqueries run once per row, on the same connection as the
outer cursor, with the row built so far as their arguments. Their rows
are embedded as a list under the attachment key.
"""

import logging
from contextlib import closing
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from rowtree.adapter.row import Row
from rowtree.adapter.subquery import Subquery
from rowtree.config import config
from rowtree.errors import AttachmentError, ConsistencyError, IterationStartedError
from rowtree.parameters import Parameters

logger = logging.getLogger(__name__)

PATH_DELIMITER = "."


class State(Enum):
    NOT_STARTED = "not_started"
    PENDING = "pending"
    READY = "ready"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class ResultSetAdapter:
    """
    Presents the contents of a cursor as an iterable sequence of rows.

    The adapter takes ownership of the cursor for the duration of
    iteration; it fetches exactly one record per row produced and cannot
    be restarted.

    Usage:
        with conn.cursor() as cur:
            Parameters.parse(sql).execute(cur, {"employeeNumber": 10001})
            adapter = ResultSetAdapter(cur)
            adapter.attach("titles", "SELECT title FROM titles WHERE emp_no = :employeeNumber")
            employee = adapter.fetch_one()
    """

    def __init__(self, cursor, paramstyle: Optional[str] = None):
        if cursor is None:
            raise ValueError("Cursor is required")

        description = cursor.description
        if description is None:
            raise ConsistencyError("Cursor has no result set metadata")

        self._cursor = cursor
        self._paramstyle = paramstyle or config.paramstyle
        self._columns = tuple(column[0] for column in description)
        self._paths = tuple(tuple(label.split(PATH_DELIMITER)) for label in self._columns)
        self._attachments: Dict[str, Subquery] = {}

        self._state = State.NOT_STARTED
        self._record: Optional[tuple] = None
        self._error: Optional[BaseException] = None

    @property
    def columns(self) -> Tuple[str, ...]:
        """Column labels, in cursor order."""
        return self._columns

    @property
    def attachments(self) -> Dict[str, Subquery]:
        return dict(self._attachments)

    @property
    def state(self) -> State:
        return self._state

    def attach(self, key: str, subquery: Union[str, Parameters, Subquery]) -> None:
        """
        Attach a subquery to the result set.

        Args:
            key: The key to associate with the subquery results
            subquery: Query text, Parameters or Subquery to run for each row

        Raises:
            AttachmentError: If key or subquery is empty
            IterationStartedError: If rows have already been requested
        """
        if not key:
            raise AttachmentError("Attachment key is required")

        subquery = Subquery.coerce(subquery, self._paramstyle)

        if self._state is not State.NOT_STARTED:
            raise IterationStartedError(f"Cannot attach {key!r} after iteration has started")

        self._attachments[key] = subquery
        logger.debug("Attached %r with parameters %s", key, subquery.parameters.keys)

    # =========================================================================
    # Iteration
    # =========================================================================

    def __iter__(self):
        return self

    def __next__(self) -> Row:
        if not self.has_next():
            raise StopIteration

        record = self._record
        self._record = None
        self._state = State.PENDING

        try:
            return self._build(record)
        except Exception as exc:
            self._fail(exc)
            raise

    def has_next(self) -> bool:
        """
        Check whether another row is available.

        Fetches at most one record from the cursor and holds it until the
        next call to next().
        """
        if self._state is State.READY:
            return True
        if self._state is State.EXHAUSTED:
            return False
        if self._state is State.FAILED:
            raise self._error

        try:
            record = self._cursor.fetchone()
        except Exception as exc:
            self._fail(exc)
            raise

        if record is None:
            self._state = State.EXHAUSTED
            logger.debug("Result set exhausted")
            return False

        self._record = record
        self._state = State.READY
        return True

    def fetch_one(self) -> Optional[Row]:
        """
        Return the next row.

        Returns:
            The next row, or None if there are no more rows
        """
        return next(self, None)

    def fetch_all(self) -> List[Row]:
        """Return all remaining rows."""
        return list(self)

    def _fail(self, exc: BaseException) -> None:
        self._state = State.FAILED
        self._error = exc
        self._record = None

    # =========================================================================
    # Row Construction
    # =========================================================================

    def _build(self, record) -> Row:
        values = self._values(record)

        row = Row()
        for path, value in zip(self._paths, values):
            node = row
            for component in path[:-1]:
                child = node.get(component)
                if not isinstance(child, Row):
                    child = Row()
                    node[component] = child
                node = child

            node[path[-1]] = value

        for key, subquery in self._attachments.items():
            row[key] = self._run_attachment(key, subquery, row)

        return row

    def _values(self, record) -> tuple:
        # dict_row and similar row factories yield mappings in column order
        if isinstance(record, dict):
            record = tuple(record.values())

        if len(record) != len(self._columns):
            raise ConsistencyError(
                f"Expected {len(self._columns)} values per record, got {len(record)}"
            )
        return tuple(record)

    def _run_attachment(self, key: str, subquery: Subquery, arguments: Row) -> List[Row]:
        connection = self._cursor.connection

        with closing(connection.cursor()) as cursor:
            logger.debug("Executing attachment %r", key)
            subquery.parameters.execute(cursor, arguments)

            adapter = ResultSetAdapter(cursor, paramstyle=self._paramstyle)
            for child_key, child in subquery.attachments.items():
                adapter.attach(child_key, child)

            return adapter.fetch_all()

    def __repr__(self):
        return f"ResultSetAdapter(columns={self._columns!r}, state={self._state.value})"
