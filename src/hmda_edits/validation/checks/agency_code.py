"""Agency code edits (S020, S025).

The transmittal sheet must carry one of the supervisory agency codes, and
every loan/application register record must repeat it. The structural
predicate answers both questions at once; this check reports them apart.
"""

from __future__ import annotations

from typing import List

from hmda_edits.core.enums import Scope, Stage
from ..config import VALID_AGENCY_CODES
from ..context import RunContext
from ..models import Violation
from ..predicates import is_valid_agency_code


class AgencyCodeCheck:
    """Validate the agency code on the header and its repetition on details."""

    stage = Stage.SYNTACTICAL
    field_layouts = {
        "S020": ("agencyCode",),
        "S025": ("agencyCode",),
    }

    def validate(self, context: RunContext) -> List[Violation]:
        """Check agency codes.

        Verifies:
        1. S020: transmittal sheet agency code is a valid agency code
        2. S025: each detail's agency code equals the transmittal sheet's

        Args:
            context: Run context holding the document.

        Returns:
            Header-scope S020 violation and detail-scope S025 violations.
        """
        document = context.document
        if is_valid_agency_code(document):
            return []

        results = []
        header_code = document.header.get("agencyCode")
        if header_code not in VALID_AGENCY_CODES:
            results.append(
                Violation(
                    edit_id="S020",
                    scope=Scope.HEADER,
                    line_number=document.header.line_number,
                    properties={"agencyCode": header_code},
                )
            )

        for record in document.details:
            if record.get("agencyCode") != header_code:
                results.append(
                    Violation(
                        edit_id="S025",
                        scope=Scope.DETAIL,
                        line_number=record.line_number,
                        record_key=record.loan_number,
                        properties={"agencyCode": record.get("agencyCode")},
                    )
                )
        return results

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
