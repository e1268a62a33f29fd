"""Denial ratio macro edit (Q075).

Looks at the submission as a whole: when more than half of the reported
applications were denied, the filer is asked to confirm the file is complete.
"""

from __future__ import annotations

from typing import List

from hmda_edits.core.enums import Scope, Stage
from ..config import DENIAL_ACTION_CODE, MAX_DENIAL_RATIO, MIN_DETAILS_FOR_MACRO
from ..context import RunContext
from ..models import Violation


class DenialRatioCheck:
    """Flag submissions with an unusually high share of denials."""

    stage = Stage.MACRO
    field_layouts = {"Q075": ("hmdaFile.loanApplicationRegisters", "hmdaFile.denialRatio")}

    def validate(self, context: RunContext) -> List[Violation]:
        document = context.document
        total = document.detail_count
        if total < MIN_DETAILS_FOR_MACRO:
            return []
        denied = sum(1 for r in document.details if r.get("actionTaken") == DENIAL_ACTION_CODE)
        ratio = denied / total
        if ratio <= MAX_DENIAL_RATIO:
            return []
        return [
            Violation(
                edit_id="Q075",
                scope=Scope.DOCUMENT,
                line_number=document.header.line_number,
                properties={
                    "hmdaFile.loanApplicationRegisters": total,
                    "hmdaFile.denialRatio": f"{ratio:.4f}",
                },
            )
        ]

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
