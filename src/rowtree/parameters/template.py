import logging
from typing import Any, Mapping, Optional, Tuple

from rowtree.config import config

logger = logging.getLogger(__name__)

# Positional marker emitted for each named placeholder, by DB-API paramstyle
MARKERS = {
    "format": "%s",
    "qmark": "?",
}


def _is_identifier_char(c: str) -> bool:
    return c.isalnum() or c == "_"


class Parameters:
    """
    Query text with named parameters.

    Parameters are written as ``:name`` and compiled to the positional
    marker of the target paramstyle. Each occurrence is a separate
    position, so a name used twice is bound twice.

    Usage:
        parameters = Parameters.parse("SELECT * FROM pet WHERE owner = :owner")
        parameters.execute(cur, {"owner": "Gwen"})
    """

    def __init__(self, sql: str, keys: Tuple[str, ...], paramstyle: str):
        self._sql = sql
        self._keys = tuple(keys)
        self._paramstyle = paramstyle

    @property
    def sql(self) -> str:
        """The compiled, positionally parameterized text."""
        return self._sql

    @property
    def keys(self) -> Tuple[str, ...]:
        """Parameter names in occurrence order."""
        return self._keys

    @property
    def paramstyle(self) -> str:
        return self._paramstyle

    @classmethod
    def parse(cls, text: str, paramstyle: Optional[str] = None) -> "Parameters":
        """
        Compile named-parameter text.

        Quoted regions, ``--`` and ``/* */`` comments, and ``::`` casts
        are copied as-is. A colon that is
        not followed by an identifier character is kept as literal text.
        For the ``format`` paramstyle, ``%`` is doubled so the driver
        reads it as a literal percent sign.

        Args:
            text: Query text containing ``:name`` placeholders
            paramstyle: DB-API paramstyle to compile for (defaults to config)

        Returns:
            Parameters holding the compiled text and ordered names
        """
        if text is None:
            raise ValueError("Query text is required")

        paramstyle = paramstyle or config.paramstyle
        if paramstyle not in MARKERS:
            raise ValueError(f"Unsupported paramstyle: {paramstyle}")

        marker = MARKERS[paramstyle]
        escape_percent = paramstyle == "format"

        keys = []
        out = []
        quote = None
        i = 0
        length = len(text)

        while i < length:
            c = text[i]

            if escape_percent and c == "%":
                out.append("%%")
                i += 1
                continue

            if quote is not None:
                out.append(c)
                if c == quote:
                    quote = None
                i += 1
                continue

            if c in ("'", '"'):
                quote = c
                out.append(c)
                i += 1
                continue

            # Comments are copied through; quotes and colons in them are text
            if text.startswith("--", i):
                end = text.find("\n", i)
                end = length if end == -1 else end
            elif text.startswith("/*", i):
                end = text.find("*/", i + 2)
                end = length if end == -1 else end + 2
            else:
                end = None

            if end is not None:
                comment = text[i:end]
                out.append(comment.replace("%", "%%") if escape_percent else comment)
                i = end
                continue

            if c == ":":
                if i + 1 < length and text[i + 1] == ":":
                    out.append("::")
                    i += 2
                    continue

                j = i + 1
                while j < length and _is_identifier_char(text[j]):
                    j += 1

                if j == i + 1:
                    out.append(c)
                    i += 1
                    continue

                keys.append(text[i + 1 : j])
                out.append(marker)
                i = j
                continue

            out.append(c)
            i += 1

        parameters = cls("".join(out), tuple(keys), paramstyle)
        logger.debug("Parsed query with parameters %s", parameters.keys)
        return parameters

    def apply(self, arguments: Optional[Mapping[str, Any]] = None) -> tuple:
        """
        Bind named arguments to positions.

        Names missing from ``arguments`` bind None.

        Returns:
            Tuple of values, one per positional marker
        """
        arguments = arguments or {}
        return tuple(arguments.get(key) for key in self._keys)

    def execute(self, cursor, arguments: Optional[Mapping[str, Any]] = None):
        """Execute the compiled text on ``cursor`` and return the cursor."""
        cursor.execute(self._sql, self.apply(arguments))
        return cursor

    def __eq__(self, other):
        if not isinstance(other, Parameters):
            return NotImplemented
        return (self._sql, self._keys, self._paramstyle) == (
            other._sql,
            other._keys,
            other._paramstyle,
        )

    def __hash__(self):
        return hash((self._sql, self._keys, self._paramstyle))

    def __repr__(self):
        return f"Parameters(sql={self._sql!r}, keys={self._keys!r})"
