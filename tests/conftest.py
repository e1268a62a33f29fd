"""Shared pytest configuration, fixtures, and builders for submission testing."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from hmda_edits.core.document import Document, Record
from hmda_edits.core.enums import Scope
from hmda_edits.core.schemas import SchemaRegistry
from hmda_edits.validation.context import RunContext, RunOptions

YEAR = 2013
API_URL = "http://geo.test"

TS_DEFAULTS: Dict[str, str] = {
    "recordID": "1",
    "respondentID": "0000000001",
    "agencyCode": "9",
    "timestamp": "201401101530",
    "activityYear": "2013",
    "taxID": "12-3456789",
    "totalLineEntries": "2",
    "respondentName": "First Test Bank",
    "respondentCity": "Sacramento",
    "respondentState": "CA",
    "respondentZip": "95814",
    "contactName": "Pat Doe",
    "contactPhone": "916-555-0100",
    "contactEmail": "pat@example.com",
}

LAR_DEFAULTS: Dict[str, str] = {
    "recordID": "2",
    "respondentID": "0000000001",
    "agencyCode": "9",
    "loanNumber": "LN-0001",
    "applicationDate": "20130115",
    "loanType": "1",
    "propertyType": "1",
    "loanPurpose": "1",
    "ownerOccupancy": "1",
    "loanAmount": "200",
    "preapprovals": "3",
    "actionTaken": "1",
    "actionDate": "20130301",
    "metroArea": "40900",
    "fipsState": "06",
    "fipsCounty": "067",
    "censusTract": "0011.00",
    "applicantEthnicity": "2",
    "applicantSex": "1",
    "applicantIncome": "80",
    "purchaserType": "0",
    "denialReason1": "",
    "rateSpread": "NA",
    "hoepaStatus": "2",
    "lienStatus": "1",
}


def _line(fields: List[str], defaults: Dict[str, str], overrides: Dict[str, str]) -> str:
    values = dict(defaults)
    values.update(overrides)
    return "|".join(values.get(f, "") for f in fields)


def ts_line(**overrides: str) -> str:
    """Pipe-delimited transmittal sheet line in the 2013 layout."""
    fields = SchemaRegistry().record_fields(YEAR, Scope.HEADER)
    return _line(fields, TS_DEFAULTS, overrides)


def lar_line(**overrides: str) -> str:
    """Pipe-delimited loan/application register line in the 2013 layout."""
    fields = SchemaRegistry().record_fields(YEAR, Scope.DETAIL)
    return _line(fields, LAR_DEFAULTS, overrides)


def submission_text(header: Optional[Dict[str, str]] = None, details: Optional[List[Dict[str, str]]] = None) -> str:
    """A whole submission; each detail gets a unique loan number unless overridden."""
    if details is None:
        details = [{}, {}]
    lines = [ts_line(**(header or {}))]
    for i, overrides in enumerate(details, start=1):
        lines.append(lar_line(**{"loanNumber": f"LN-{i:04d}", **overrides}))
    return "\n".join(lines) + "\n"


def make_document(
    header: Optional[Dict[str, str]] = None,
    details: Optional[List[Dict[str, str]]] = None,
) -> Document:
    """Document equivalent to ``submission_text`` without going through the reader."""
    if details is None:
        details = [{}, {}]
    header_record = Record(1, {**TS_DEFAULTS, **(header or {})})
    detail_records = [
        Record(i + 1, {**LAR_DEFAULTS, "loanNumber": f"LN-{i:04d}", **overrides})
        for i, overrides in enumerate(details, start=1)
    ]
    return Document(header=header_record, details=tuple(detail_records), year=YEAR)


def make_context(document: Optional[Document] = None, **options) -> RunContext:
    options.setdefault("year", YEAR)
    options.setdefault("api_url", API_URL)
    return RunContext(options=RunOptions(**options), document=document or make_document())


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry()


@pytest.fixture
def clean_document() -> Document:
    """Two well-formed detail records with distinct loan numbers."""
    return make_document()


@pytest.fixture
def submission_file(tmp_path: Path):
    """Factory writing a submission to a temporary file and returning its path."""

    def _write(text: str, name: str = "bank.dat") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def label_registry(tmp_path: Path) -> SchemaRegistry:
    """Registry with a tiny 2013 spec whose detail fields are ``a`` and ``b``."""
    specs_dir = tmp_path / "specs"
    specs_dir.mkdir()
    (specs_dir / "2013.yaml").write_text(
        "\n".join(
            [
                "transmittalSheet:",
                "  - id: recordID",
                "    label: Record Identifier",
                "  - id: agencyCode",
                "    label: Agency Code",
                "loanApplicationRegister:",
                "  - id: a",
                "    label: Field A",
                "  - id: b",
                "    label: Field B",
                "hmdaFile:",
                "  total:",
                "    label: File Total",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return SchemaRegistry(specs_dir)
