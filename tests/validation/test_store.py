"""Tests for the run-scoped error store."""

import pytest

from hmda_edits.core.enums import Scope, Stage
from hmda_edits.core.errors import ErrorStoreError, ScopeMismatchError
from hmda_edits.validation.models import Violation
from hmda_edits.validation.store import ErrorStore


def _violation(edit_id="S040", scope=Scope.DETAIL, line=2, key="L1", **props):
    return Violation(edit_id, scope, line, key, props)


def test_record_same_scope_preserves_order():
    """Test that two appends to one edit keep their insertion order."""
    store = ErrorStore()
    first = _violation(line=5, key="A")
    second = _violation(line=3, key="B")
    store.record(Stage.SYNTACTICAL, first)
    store.record(Stage.SYNTACTICAL, second)
    store.seal()

    buckets = store.snapshot().get(Stage.SYNTACTICAL)
    assert len(buckets) == 1
    assert buckets[0].errors == (first, second)
    assert buckets[0].scope == Scope.DETAIL


def test_record_scope_mismatch_is_fatal():
    """Test that a second append with a different scope raises."""
    store = ErrorStore()
    store.record(Stage.SYNTACTICAL, _violation(scope=Scope.DETAIL))
    with pytest.raises(ScopeMismatchError):
        store.record(Stage.SYNTACTICAL, _violation(scope=Scope.HEADER))


def test_bucket_order_is_insertion_order():
    store = ErrorStore()
    for edit_id in ["S100", "S010", "S040", "S011"]:
        store.record("syntactical", _violation(edit_id=edit_id))
    store.record("validity", _violation(edit_id="V220"))
    store.seal()

    snapshot = store.snapshot()
    assert snapshot.edit_ids(Stage.SYNTACTICAL) == ["S100", "S010", "S040", "S011"]
    assert list(snapshot) == ["syntactical", "validity"]
    assert snapshot.violation_count() == 5


def test_same_edit_in_two_groups_is_fatal():
    store = ErrorStore()
    store.record(Stage.SYNTACTICAL, _violation(edit_id="X1"))
    with pytest.raises(ErrorStoreError):
        store.record(Stage.VALIDITY, _violation(edit_id="X1"))


def test_snapshot_before_seal_raises():
    """Test that the store cannot be read while it is still being written."""
    store = ErrorStore()
    store.record(Stage.SYNTACTICAL, _violation())
    with pytest.raises(ErrorStoreError):
        store.snapshot()


def test_record_after_seal_raises():
    store = ErrorStore()
    store.seal()
    with pytest.raises(ErrorStoreError):
        store.record(Stage.SYNTACTICAL, _violation())


def test_snapshot_is_immutable():
    store = ErrorStore()
    store.record(Stage.SYNTACTICAL, _violation(loanNumber="L1"))
    store.seal()
    snapshot = store.snapshot()

    with pytest.raises(TypeError):
        snapshot.groups["validity"] = ()  # type: ignore[index]
    with pytest.raises(TypeError):
        snapshot.get(Stage.SYNTACTICAL)[0].first.properties["loanNumber"] = "L2"  # type: ignore[index]


def test_explicit_fields_fixed_on_first_record():
    store = ErrorStore()
    store.record(Stage.QUALITY, _violation(edit_id="Q024", a="1"), fields=("a", "b"))
    store.record(Stage.QUALITY, _violation(edit_id="Q024", a="2"), fields=("ignored",))
    store.seal()

    bucket = store.snapshot().get(Stage.QUALITY)[0]
    assert bucket.fields == ("a", "b")
    assert bucket.field_layout() == ("a", "b")


def test_reset_empties_and_reopens():
    store = ErrorStore()
    store.record(Stage.SYNTACTICAL, _violation())
    store.seal()
    store.reset()

    assert len(store) == 0
    assert store.sealed is False
    store.record(Stage.VALIDITY, _violation(scope=Scope.HEADER))
    assert len(store) == 1
