"""Record identifier edit (S010).

The first record must be tagged as the transmittal sheet and every following
record as a loan/application register. A mistagged record usually means the
file was assembled from the wrong pieces.
"""

from __future__ import annotations

from typing import List

from hmda_edits.core.enums import Scope, Stage
from ..config import DETAIL_RECORD_ID, HEADER_RECORD_ID
from ..context import RunContext
from ..models import Violation
from ..predicates import has_record_identifiers_for_each_row


class RecordIdentifierCheck:
    """Validate the record type tag of every record."""

    stage = Stage.SYNTACTICAL
    field_layouts = {"S010": ("recordID",)}

    def validate(self, context: RunContext) -> List[Violation]:
        """Report each record whose tag does not match its position.

        Args:
            context: Run context holding the document.

        Returns:
            One document-scope violation per mistagged record.
        """
        document = context.document
        if has_record_identifiers_for_each_row(document):
            return []

        results = []
        for record in document:
            tag = HEADER_RECORD_ID if record is document.header else DETAIL_RECORD_ID
            if record.record_id != tag:
                results.append(
                    Violation(
                        edit_id="S010",
                        scope=Scope.DOCUMENT,
                        line_number=record.line_number,
                        properties={"recordID": record.record_id},
                    )
                )
        return results

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
