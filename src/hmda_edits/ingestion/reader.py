"""Pipe-delimited submission reader.

The first non-blank line is the transmittal sheet; every other non-blank
line is a loan/application register record. Values are mapped onto the
year's field layout by position and kept as raw strings; no edit logic runs
here.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import IO, List, Optional, Union

import pandas as pd
from tqdm import tqdm

from hmda_edits.core.document import Document, Record
from hmda_edits.core.enums import Scope
from hmda_edits.core.errors import IngestionError
from hmda_edits.core.schemas import SchemaRegistry

logger = logging.getLogger(__name__)

DELIMITER = "|"

Source = Union[str, Path, IO[str], IO[bytes]]


def read_submission(
    stream: Union[IO[str], IO[bytes]],
    year: int,
    registry: Optional[SchemaRegistry] = None,
    show_progress: bool = False,
) -> Document:
    """Parse an open submission stream into a Document.

    Args:
        stream: Text or binary file object positioned at the start of the file.
        year: Submission year; selects the field layouts.
        registry: Schema registry (defaults to the packaged specs).
        show_progress: Show a tqdm bar while building detail records.

    Returns:
        The parsed Document.

    Raises:
        IngestionError: If the stream cannot be parsed or holds no records.
        SchemaResolutionError: If ``year`` has no spec.
    """
    registry = registry or SchemaRegistry()
    header_fields = registry.record_fields(year, Scope.HEADER)
    detail_fields = registry.record_fields(year, Scope.DETAIL)
    width = max(len(header_fields), len(detail_fields))

    try:
        frame = pd.read_csv(
            stream,
            sep=DELIMITER,
            header=None,
            # One spare column catches rows wider than every layout.
            names=list(range(width + 1)),
            index_col=False,
            dtype=str,
            na_filter=False,
            skip_blank_lines=False,
            quoting=csv.QUOTE_NONE,
            on_bad_lines="error",
            encoding="utf-8",
        )
    except pd.errors.EmptyDataError as e:
        raise IngestionError("Submission is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError, ValueError) as e:
        raise IngestionError(f"Failed to parse submission: {e}") from e

    frame = frame.fillna("")
    rows = frame.values.tolist()

    # Physical line number is the frame position + 1; blank lines are kept
    # as empty rows by the reader so the numbering stays intact.
    numbered = [
        (position + 1, row)
        for position, row in enumerate(rows)
        if any(str(value).strip() for value in row)
    ]
    if not numbered:
        raise IngestionError("Submission is empty")

    for line_number, row in numbered:
        if str(row[width]).strip():
            raise IngestionError(f"Line {line_number} has more than {width} fields")

    header_line, header_row = numbered[0]
    header = Record(header_line, _map_fields(header_fields, header_row))

    details: List[Record] = []
    for line_number, row in tqdm(
        numbered[1:],
        desc=f"Reading {year} LAR records",
        unit="rows",
        disable=not show_progress,
    ):
        details.append(Record(line_number, _map_fields(detail_fields, row)))

    logger.debug("Parsed submission: header on line %d, %d detail records", header_line, len(details))
    return Document(header=header, details=tuple(details), year=int(year))


def load_submission(
    source: Source,
    year: int,
    registry: Optional[SchemaRegistry] = None,
    show_progress: bool = False,
) -> Document:
    """Read a submission from a path or an open stream.

    Raises:
        IngestionError: If the file does not exist or cannot be parsed.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise IngestionError(f"File does not exist: {path}")
        if not path.is_file():
            raise IngestionError(f"Not a file: {path}")
        try:
            with open(path, "rb") as f:
                return read_submission(f, year, registry, show_progress=show_progress)
        except OSError as e:
            raise IngestionError(f"Failed to read {path}: {e}") from e
    return read_submission(source, year, registry, show_progress=show_progress)


def _map_fields(field_ids: List[str], row: List[object]) -> dict:
    return {field_id: str(row[i]).strip() if i < len(row) else "" for i, field_id in enumerate(field_ids)}


__all__ = ["read_submission", "load_submission", "DELIMITER"]
