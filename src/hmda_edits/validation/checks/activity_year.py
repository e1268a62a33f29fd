"""Activity year edit (S100).

The transmittal sheet's activity year must be the year being filed.
"""

from __future__ import annotations

from typing import List

from hmda_edits.core.enums import Scope, Stage
from ..context import RunContext
from ..models import Violation


class ActivityYearCheck:
    """Validate the activity year against the run year."""

    stage = Stage.SYNTACTICAL
    field_layouts = {"S100": ("activityYear",)}

    def validate(self, context: RunContext) -> List[Violation]:
        header = context.document.header
        activity_year = header.get("activityYear", "")
        if activity_year == str(context.year):
            return []
        return [
            Violation(
                edit_id="S100",
                scope=Scope.HEADER,
                line_number=header.line_number,
                properties={"activityYear": activity_year},
            )
        ]

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
