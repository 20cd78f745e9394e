from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

from rowtree.errors import AttachmentError
from rowtree.parameters import Parameters


@dataclass(frozen=True)
class Subquery:
    """
    An attachable query together with its own attachments.

    Subqueries are immutable and hashable; attach() returns a new instance.
    """

    parameters: Parameters
    entries: Tuple[Tuple[str, "Subquery"], ...] = ()

    @property
    def attachments(self) -> Mapping[str, "Subquery"]:
        """Read-only view of the attachments, in registration order."""
        return MappingProxyType(dict(self.entries))

    @classmethod
    def parse(cls, text: str, paramstyle: Optional[str] = None) -> "Subquery":
        return cls(Parameters.parse(text, paramstyle))

    @classmethod
    def coerce(
        cls,
        subquery: Union[str, Parameters, "Subquery"],
        paramstyle: Optional[str] = None,
    ) -> "Subquery":
        """Build a Subquery from text, Parameters or an existing Subquery."""
        if isinstance(subquery, Subquery):
            return subquery
        if isinstance(subquery, Parameters):
            return cls(subquery)
        if isinstance(subquery, str) and subquery.strip():
            return cls.parse(subquery, paramstyle)
        raise AttachmentError("Subquery must be non-empty text, Parameters or Subquery")

    def attach(self, key: str, subquery: Union[str, Parameters, "Subquery"]) -> "Subquery":
        """Return a copy of this subquery with one more attachment."""
        if not key:
            raise AttachmentError("Attachment key is required")

        attachments = dict(self.entries)
        attachments[key] = Subquery.coerce(subquery, self.parameters.paramstyle)
        return Subquery(self.parameters, tuple(attachments.items()))
