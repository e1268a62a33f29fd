"""Structural predicates over a parsed submission.

Each predicate is a pure function of the Document returning a bool. They say
whether a structural property holds, not where it breaks; the syntactical
edits in ``checks/`` call them first and only scan for offending records
when one fails.
"""

from __future__ import annotations

from hmda_edits.core.document import Document
from .config import DETAIL_RECORD_ID, HEADER_RECORD_ID, VALID_AGENCY_CODES


def has_record_identifiers_for_each_row(document: Document) -> bool:
    """Header is tagged as a transmittal sheet and every detail as a LAR."""
    if document.header.record_id != HEADER_RECORD_ID:
        return False
    for record in document.details:
        if record.record_id != DETAIL_RECORD_ID:
            return False
    return True


def has_at_least_one_detail(document: Document) -> bool:
    return document.detail_count > 0


def is_valid_agency_code(document: Document) -> bool:
    """Header agency code is valid and every detail repeats it.

    Both conditions collapse into one result; S020 and S025 report them
    separately.
    """
    agency_code = document.header.get("agencyCode")
    if agency_code not in VALID_AGENCY_CODES:
        return False
    for record in document.details:
        if record.get("agencyCode") != agency_code:
            return False
    return True


def has_unique_loan_numbers(document: Document) -> bool:
    loan_numbers = {record.loan_number for record in document.details}
    return len(loan_numbers) == document.detail_count


__all__ = [
    "has_record_identifiers_for_each_row",
    "has_at_least_one_detail",
    "is_valid_agency_code",
    "has_unique_loan_numbers",
]
