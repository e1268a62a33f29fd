"""Validation data models.

This module defines the data structures shared by the stages and the report:
- Violation: One failed edit instance
- EditBucket: All violations of one edit, with the edit's scope and layout
- RunResult: Outcome of a completed scheduler run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from hmda_edits.core.enums import SchedulePolicy, Scope, Stage


@dataclass(frozen=True)
class Violation:
    """A single recorded instance of a submission failing one edit.

    Attributes:
        edit_id: Edit identifier (e.g., "S040", "V260").
        scope: Part of the submission that gives the fields their meaning.
        line_number: Physical line of the offending record (1 for the
            transmittal sheet and for document-wide edits).
        record_key: Loan/application number of the offending detail record,
            when the edit reports one.
        properties: Field id to reported value, in report column order.

    Examples:
        >>> Violation(
        ...     edit_id="V260",
        ...     scope=Scope.DETAIL,
        ...     line_number=12,
        ...     record_key="LN-0001",
        ...     properties={"loanAmount": "abc"},
        ... )
    """

    edit_id: str
    scope: Scope
    line_number: int
    record_key: Optional[str] = None
    properties: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.edit_id:
            raise ValueError("edit_id must not be empty")
        object.__setattr__(self, "scope", Scope(self.scope))
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


@dataclass(frozen=True)
class EditBucket:
    """Read-only view of every violation recorded for one edit.

    Attributes:
        edit_id: Edit identifier.
        scope: Scope fixed when the first violation was recorded.
        errors: Violations in the order they were recorded.
        fields: Explicit report column layout declared by the edit, or None
            when the layout is taken from the first violation.
    """

    edit_id: str
    scope: Scope
    errors: Tuple[Violation, ...]
    fields: Optional[Tuple[str, ...]] = None

    @property
    def first(self) -> Violation:
        return self.errors[0]

    def field_layout(self) -> Tuple[str, ...]:
        """Report columns for this edit, in order."""
        if self.fields is not None:
            return self.fields
        return tuple(self.first.properties.keys())


@dataclass(frozen=True)
class RunResult:
    """Completion record for a scheduler run.

    Carries bookkeeping only; every finding lives in the error store.
    """

    policy: SchedulePolicy
    completed_stages: Tuple[Stage, ...]
    durations: Mapping[Stage, float] = field(default_factory=dict)

    @property
    def total_duration(self) -> float:
        return sum(self.durations.values())

    def summary(self) -> str:
        parts = ", ".join(
            f"{stage.value} {self.durations.get(stage, 0.0):.3f}s" for stage in self.completed_stages
        )
        return f"Completed {len(self.completed_stages)} stages ({self.policy.name.lower()}): {parts}"


__all__ = ["Violation", "EditBucket", "RunResult"]
