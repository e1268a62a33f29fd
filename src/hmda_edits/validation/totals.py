"""Totals stage: loan counts and amounts by MSA/MD.

Produces the institution register summary table (one row per MSA/MD, ``NA``
for properties outside any MSA/MD). It reports no edits.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from hmda_edits.core.document import Document

logger = logging.getLogger(__name__)

TOTALS_COLUMNS = ["msa", "loan_count", "loan_amount"]


def compute_totals_by_msa(document: Document) -> pd.DataFrame:
    """Aggregate detail records by MSA/MD.

    Loan amounts that are not numeric count as zero; the validity stage
    reports them.

    Returns:
        DataFrame with columns ``msa``, ``loan_count``, ``loan_amount``,
        sorted by MSA/MD code.

    Examples:
        >>> totals = compute_totals_by_msa(document)
        >>> totals.loc[totals["msa"] == "NA", "loan_count"].item()
        3
    """
    if not document.details:
        return pd.DataFrame(columns=TOTALS_COLUMNS)

    df = pd.DataFrame(
        {
            "msa": [r.get("metroArea", "") or "NA" for r in document.details],
            "loan_amount": [r.get("loanAmount", "") for r in document.details],
        }
    )
    df["loan_amount"] = pd.to_numeric(df["loan_amount"], errors="coerce").fillna(0)
    totals = (
        df.groupby("msa", sort=True)
        .agg(loan_count=("loan_amount", "size"), loan_amount=("loan_amount", "sum"))
        .reset_index()
    )
    logger.debug("Totals computed for %d MSA/MDs", len(totals))
    return totals[TOTALS_COLUMNS]


def write_totals_csv(totals: pd.DataFrame, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    totals.to_csv(path, index=False, encoding="utf-8")
    logger.info("Totals by MSA/MD saved: %s", path)


__all__ = ["compute_totals_by_msa", "write_totals_csv", "TOTALS_COLUMNS"]
