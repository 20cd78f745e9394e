from typing import Any, List


class Row(dict):
    """
    One materialized result row.

    Values are scalars, nested rows (from dotted column labels) or lists
    of rows (from attachments). Being a dict, a row can be handed to any
    encoder directly; the accessors below are for callers that want the
    value kind checked.
    """

    def scalar(self, key: str) -> Any:
        """Get a scalar value, rejecting nested rows and row lists."""
        value = self[key]
        if isinstance(value, (dict, list)):
            raise TypeError(f"Value at {key!r} is not a scalar")
        return value

    def row(self, key: str) -> "Row":
        """Get a nested row."""
        value = self[key]
        if not isinstance(value, Row):
            raise TypeError(f"Value at {key!r} is not a nested row")
        return value

    def rows(self, key: str) -> List["Row"]:
        """Get the rows embedded by an attachment."""
        value = self[key]
        if not isinstance(value, list):
            raise TypeError(f"Value at {key!r} is not a list of rows")
        return value

    def resolve(self, path: str, delimiter: str = ".") -> Any:
        """
        Look up a value by dotted path, e.g. ``row.resolve("name.first")``.

        Raises KeyError if any component is missing.
        """
        value = self
        for component in path.split(delimiter):
            if not isinstance(value, dict):
                raise KeyError(path)
            value = value[component]
        return value
