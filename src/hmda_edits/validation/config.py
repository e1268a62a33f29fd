"""Validation configuration constants.

This module centralizes record tags, code sets, edit thresholds and the
stage tiers. Adjust these constants to tune the default rule set.
"""

from __future__ import annotations

from hmda_edits.core.enums import Stage

# ============================================================================
# RECORD TAGS AND CODE SETS
# ============================================================================

HEADER_RECORD_ID = "1"  # transmittal sheet
DETAIL_RECORD_ID = "2"  # loan/application register

VALID_AGENCY_CODES = frozenset({"1", "2", "3", "5", "7", "9"})

NOT_APPLICABLE = "NA"


# ============================================================================
# EDIT THRESHOLDS
# ============================================================================

# Q024: loan amount should be below this multiple of applicant income
# (both reported in thousands of dollars).
LOAN_TO_INCOME_MULTIPLE = 5

# Q075: share of applications denied (action taken = 3) above which the
# submission is flagged for review.
DENIAL_ACTION_CODE = "3"
MAX_DENIAL_RATIO = 0.5
# Submissions smaller than this are too small for the ratio to mean anything.
MIN_DETAILS_FOR_MACRO = 25


# ============================================================================
# STAGES AND REPORT
# ============================================================================

# Each tier must finish before the next one starts.
TIERS = (
    (Stage.SYNTACTICAL, Stage.VALIDITY),
    (Stage.QUALITY, Stage.MACRO),
    (Stage.SPECIAL,),
    (Stage.TOTALS,),
)

STAGE_ORDER = tuple(stage for tier in TIERS for stage in tier)

# Groups written to the edit report, in order.
REPORT_GROUPS = (Stage.SYNTACTICAL, Stage.VALIDITY)
ALL_REPORT_GROUPS = (Stage.SYNTACTICAL, Stage.VALIDITY, Stage.QUALITY, Stage.MACRO, Stage.SPECIAL)

# Seconds; None disables the per-stage timeout.
DEFAULT_STAGE_TIMEOUT = None
