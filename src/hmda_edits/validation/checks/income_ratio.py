"""Loan-to-income quality edit (Q024).

A loan amount at or above several times the applicant's income is unusual
enough to be confirmed by the filer. Not an error: the edit only asks for
review.
"""

from __future__ import annotations

from typing import List

from hmda_edits.core.enums import Scope, Stage
from ..config import LOAN_TO_INCOME_MULTIPLE
from ..context import RunContext
from ..models import Violation


class IncomeRatioCheck:
    """Flag loans that are large relative to applicant income."""

    stage = Stage.QUALITY
    field_layouts = {"Q024": ("loanAmount", "applicantIncome")}

    def validate(self, context: RunContext) -> List[Violation]:
        results = []
        for record in context.document.details:
            try:
                amount = float(record.get("loanAmount", ""))
                income = float(record.get("applicantIncome", ""))
            except ValueError:
                # Non-numeric values (including NA income) are validity edits.
                continue
            if income > 0 and amount >= LOAN_TO_INCOME_MULTIPLE * income:
                results.append(
                    Violation(
                        edit_id="Q024",
                        scope=Scope.DETAIL,
                        line_number=record.line_number,
                        record_key=record.loan_number,
                        properties={
                            "loanAmount": record["loanAmount"],
                            "applicantIncome": record["applicantIncome"],
                        },
                    )
                )
        return results

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
