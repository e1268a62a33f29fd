"""Parsed submission data structures.

A submission is one transmittal sheet (the header record) followed by the
loan/application register (the detail records). Records keep the physical
line number they were read from so edit reports can point back at the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Record:
    """One submission line mapped to field ids.

    Attributes:
        line_number: 1-based physical line number in the source file.
        fields: Field id to raw string value, in layout order.
    """

    line_number: int
    fields: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def get(self, field_id: str, default: Optional[str] = None) -> Optional[str]:
        return self.fields.get(field_id, default)

    def __getitem__(self, field_id: str) -> str:
        return self.fields[field_id]

    @property
    def record_id(self) -> Optional[str]:
        """Record type tag ("1" for the transmittal sheet, "2" for a LAR)."""
        return self.fields.get("recordID")

    @property
    def loan_number(self) -> Optional[str]:
        return self.fields.get("loanNumber")


@dataclass(frozen=True)
class Document:
    """A parsed submission: one header record plus ordered detail records.

    Examples:
        >>> doc = Document(
        ...     header=Record(1, {"recordID": "1", "agencyCode": "9"}),
        ...     details=(Record(2, {"recordID": "2", "agencyCode": "9"}),),
        ... )
        >>> doc.detail_count
        1
    """

    header: Record
    details: Tuple[Record, ...] = ()
    year: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.details, tuple):
            object.__setattr__(self, "details", tuple(self.details))

    @property
    def detail_count(self) -> int:
        return len(self.details)

    def __iter__(self) -> Iterator[Record]:
        """Iterate over all records in file order, header first."""
        yield self.header
        yield from self.details


__all__ = ["Record", "Document"]
