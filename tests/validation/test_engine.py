"""Tests for the edit engine facade."""

import asyncio

import pytest

from conftest import make_context, make_document
from hmda_edits.core.enums import Scope, Stage
from hmda_edits.validation.engine import EditEngine
from hmda_edits.validation.models import Violation
from hmda_edits.validation.totals import TOTALS_COLUMNS


class StubCheck:
    def __init__(self, stage, edit_id, count=1, years=None, layout=None):
        self.stage = stage
        self.edit_id = edit_id
        self.count = count
        self.years = years
        self.field_layouts = {edit_id: layout} if layout else {}

    def validate(self, context):
        return [
            Violation(self.edit_id, Scope.DETAIL, line, f"LN-{line}", {"loanAmount": "1"})
            for line in range(2, 2 + self.count)
        ]

    def applies_to_year(self, year):
        return self.years is None or year in self.years


class AsyncStubCheck(StubCheck):
    async def validate(self, context):
        await asyncio.sleep(0)
        return StubCheck.validate(self, context)


def test_checks_for_filters_by_stage_and_year():
    current = StubCheck(Stage.QUALITY, "Q001")
    old = StubCheck(Stage.QUALITY, "Q002", years={2012})
    other = StubCheck(Stage.MACRO, "Q003")
    engine = EditEngine([current, old, other])

    assert engine.checks_for(Stage.QUALITY, 2013) == [current]
    assert engine.checks_for(Stage.QUALITY, 2012) == [current, old]
    assert engine.checks_for(Stage.SPECIAL, 2013) == []


def test_operation_per_stage():
    engine = EditEngine([])
    for stage in Stage:
        assert engine.operation(stage) == getattr(engine, f"run_{stage.value}")


def test_stage_operation_records_into_stage_group():
    engine = EditEngine([StubCheck(Stage.QUALITY, "Q001", count=2)])
    context = make_context()
    asyncio.run(engine.run_quality(context))
    context.store.seal()

    buckets = context.store.snapshot().get(Stage.QUALITY)
    assert [b.edit_id for b in buckets] == ["Q001"]
    assert [v.line_number for v in buckets[0].errors] == [2, 3]


def test_async_checks_are_awaited():
    engine = EditEngine([AsyncStubCheck(Stage.SPECIAL, "Q100")])
    context = make_context()
    asyncio.run(engine.run_special(context))
    context.store.seal()

    assert context.store.snapshot().edit_ids(Stage.SPECIAL) == ["Q100"]


def test_declared_layout_is_kept_on_bucket():
    engine = EditEngine([StubCheck(Stage.MACRO, "Q200", layout=("loanAmount", "loanType"))])
    context = make_context()
    asyncio.run(engine.run_macro(context))
    context.store.seal()

    bucket = context.store.snapshot().get(Stage.MACRO)[0]
    assert bucket.field_layout() == ("loanAmount", "loanType")


def test_check_errors_propagate():
    class Broken(StubCheck):
        def validate(self, context):
            raise KeyError("loanAmount")

    engine = EditEngine([Broken(Stage.VALIDITY, "V001")])
    with pytest.raises(KeyError):
        asyncio.run(engine.run_validity(make_context()))


def test_totals_stage_fills_context():
    document = make_document(
        details=[
            {"metroArea": "40900", "loanAmount": "100"},
            {"metroArea": "NA", "loanAmount": "50"},
            {"metroArea": "40900", "loanAmount": "25"},
        ]
    )
    context = make_context(document)
    asyncio.run(EditEngine([]).run_totals(context))

    assert list(context.totals.columns) == TOTALS_COLUMNS
    assert context.totals["msa"].tolist() == ["40900", "NA"]
    assert context.totals["loan_count"].tolist() == [2, 1]
    assert context.totals["loan_amount"].tolist() == [125.0, 50.0]


def test_default_engine_uses_registered_checks():
    from hmda_edits.validation.registry import ALL_CHECKS

    engine = EditEngine()
    registered = [c for stage in Stage for c in engine.checks_for(stage, 2013)]
    assert sorted(map(id, registered)) == sorted(map(id, ALL_CHECKS))


def test_scope_mismatch_inside_stage_rejects_run():
    from hmda_edits.core.enums import SchedulePolicy
    from hmda_edits.core.errors import RunRejectedError, ScopeMismatchError
    from hmda_edits.validation.scheduler import StageScheduler

    class MixedScopes(StubCheck):
        def validate(self, context):
            return [
                Violation(self.edit_id, Scope.DETAIL, 2, "LN-1", {"loanAmount": "1"}),
                Violation(self.edit_id, Scope.HEADER, 1, None, {"agencyCode": "9"}),
            ]

    engine = EditEngine([MixedScopes(Stage.VALIDITY, "V900")])
    context = make_context()
    with pytest.raises(RunRejectedError) as excinfo:
        asyncio.run(StageScheduler(engine).run(SchedulePolicy.GROUPED, context))

    assert excinfo.value.stage == "validity"
    assert isinstance(excinfo.value.__cause__, ScopeMismatchError)
    assert context.store.sealed
