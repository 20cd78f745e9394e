"""
Exceptions raised by rowtree.

Driver errors (psycopg.Error, sqlite3.Error, ...) are never wrapped; they
reach the caller unchanged. The classes below cover the failures that
originate in rowtree itself.
"""


class RowTreeError(Exception):
    """Base class for rowtree errors."""


class AttachmentError(RowTreeError, ValueError):
    """An attachment was registered with an empty key or subquery."""


class IterationStartedError(RowTreeError):
    """An attachment was registered after row production began."""


class ConsistencyError(RowTreeError):
    """Cursor metadata and fetched records disagree, or metadata is missing."""
