"""Duplicate loan/application number edit (S040).

Loan/application numbers identify records across resubmissions, so each
one may appear only once per file.
"""

from __future__ import annotations

from typing import List, Set

from hmda_edits.core.enums import Scope, Stage
from ..context import RunContext
from ..models import Violation
from ..predicates import has_unique_loan_numbers


class UniqueLoanNumberCheck:
    """Validate that loan/application numbers are unique."""

    stage = Stage.SYNTACTICAL
    field_layouts = {"S040": ("loanNumber",)}

    def validate(self, context: RunContext) -> List[Violation]:
        """Report every repeated occurrence of a loan/application number.

        The first record carrying a number is taken as the original; each
        later record with the same number is a violation.
        """
        document = context.document
        if has_unique_loan_numbers(document):
            return []

        seen: Set[str] = set()
        results = []
        for record in document.details:
            number = record.loan_number
            if number in seen:
                results.append(
                    Violation(
                        edit_id="S040",
                        scope=Scope.DETAIL,
                        line_number=record.line_number,
                        record_key=number,
                        properties={"loanNumber": number},
                    )
                )
            seen.add(number)
        return results

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
