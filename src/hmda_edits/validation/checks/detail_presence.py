"""Detail presence edit (S011).

A submission must contain at least one loan/application register record.
"""

from __future__ import annotations

from typing import List

from hmda_edits.core.enums import Scope, Stage
from ..context import RunContext
from ..models import Violation
from ..predicates import has_at_least_one_detail


class DetailPresenceCheck:
    """Validate that the submission has detail records."""

    stage = Stage.SYNTACTICAL
    field_layouts = {"S011": ("hmdaFile.transmittalSheet.totalLineEntries",)}

    def validate(self, context: RunContext) -> List[Violation]:
        document = context.document
        if has_at_least_one_detail(document):
            return []
        return [
            Violation(
                edit_id="S011",
                scope=Scope.DOCUMENT,
                line_number=document.header.line_number,
                properties={
                    "hmdaFile.transmittalSheet.totalLineEntries": document.header.get(
                        "totalLineEntries", ""
                    )
                },
            )
        ]

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
