"""CSV edit report.

For every report group (syntactical, then validity) and every edit in the
order it was first recorded, writes one block:

    Edit Number,Line Number[,Loan/Application Number],<field labels...>
    <edit id>,<line>[,<loan number>],<values...>
    ...
    <blank line>

Field labels come from the year spec, looked up with the edit's scope.
Values are joined with commas as-is, without quoting.
"""

from __future__ import annotations

import io
import logging
from typing import IO, List, Sequence, Union

from hmda_edits.core.enums import Stage
from hmda_edits.core.schemas import SchemaRegistry
from .config import REPORT_GROUPS
from .models import EditBucket, Violation
from .store import StoreSnapshot

logger = logging.getLogger(__name__)

FIXED_COLUMNS = ["Edit Number", "Line Number"]
RECORD_KEY_COLUMN = "Loan/Application Number"


def header_row(bucket: EditBucket, registry: SchemaRegistry, year: int) -> List[str]:
    """Column labels for an edit block.

    The loan number column is present when the edit's first violation has
    one. Field columns follow the edit's declared layout, or the first
    violation's fields when the edit declared none.

    Raises:
        SchemaResolutionError: If a field has no label for ``year``.
    """
    header = list(FIXED_COLUMNS)
    if bucket.first.record_key:
        header.append(RECORD_KEY_COLUMN)
    for field_id in bucket.field_layout():
        header.append(registry.resolve_label(field_id, year, bucket.scope))
    return header


def violation_row(violation: Violation, layout: Sequence[str]) -> List[str]:
    row = [violation.edit_id, str(violation.line_number)]
    if violation.record_key:
        row.append(violation.record_key)
    for field_id in layout:
        value = violation.properties.get(field_id)
        row.append("" if value is None else str(value))
    return row


def write_edit_block(
    bucket: EditBucket, registry: SchemaRegistry, year: int, sink: IO[str]
) -> int:
    """Write one edit's block and return the number of violation rows."""
    layout = bucket.field_layout()
    sink.write(",".join(header_row(bucket, registry, year)) + "\n")

    expected = set(layout)
    for violation in bucket.errors:
        if set(violation.properties) != expected:
            logger.warning(
                "Edit %s line %d reports fields %s; report columns are %s",
                bucket.edit_id,
                violation.line_number,
                sorted(violation.properties),
                list(layout),
            )
        sink.write(",".join(violation_row(violation, layout)) + "\n")

    sink.write("\n")
    return len(bucket.errors)


def render_report(
    snapshot: StoreSnapshot,
    registry: SchemaRegistry,
    year: int,
    sink: IO[str],
    groups: Sequence[Union[Stage, str]] = REPORT_GROUPS,
) -> int:
    """Write the edit report for the given groups.

    Args:
        snapshot: Sealed store snapshot of a finished run.
        registry: Schema registry used for column labels.
        year: Submission year.
        sink: Text stream the CSV is written to.
        groups: Groups to write, in order.

    Returns:
        Number of violation rows written.
    """
    written = 0
    for group in groups:
        for bucket in snapshot.get(group):
            written += write_edit_block(bucket, registry, year, sink)
    return written


def render_report_text(
    snapshot: StoreSnapshot,
    registry: SchemaRegistry,
    year: int,
    groups: Sequence[Union[Stage, str]] = REPORT_GROUPS,
) -> str:
    """Same as ``render_report`` but returns the CSV as a string."""
    buffer = io.StringIO()
    render_report(snapshot, registry, year, buffer, groups=groups)
    return buffer.getvalue()


__all__ = [
    "render_report",
    "render_report_text",
    "write_edit_block",
    "header_row",
    "violation_row",
]
