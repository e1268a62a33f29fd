"""Field value edits (validity stage).

The year spec attaches a ``validity`` block to fields with a closed code set
or a numeric format. Each block names its edit id, so adding a validity edit
for a new field is a spec change, not a code change.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from hmda_edits.core.document import Record
from hmda_edits.core.enums import Scope, Stage
from ..context import RunContext
from ..models import Violation


def is_non_negative_number(value: str) -> bool:
    try:
        return float(value) >= 0
    except ValueError:
        return False


def value_passes(value: str, rule: Mapping[str, Any]) -> bool:
    """Whether a raw value satisfies one ``validity`` block."""
    if value in rule.get("allow", ()):
        return True
    if rule.get("numeric"):
        return is_non_negative_number(value)
    values = rule.get("values")
    if values is not None:
        return value in {str(v) for v in values}
    return True


class FieldValuesCheck:
    """Validate field values against the year spec's validity blocks."""

    stage = Stage.VALIDITY

    def __init__(self) -> None:
        # Rebuilt by each validate() call from that run's year spec: one column per edit.
        self.field_layouts: Dict[str, Tuple[str, ...]] = {}

    def rules_for(self, context: RunContext) -> List[Tuple[Scope, str, Mapping[str, Any]]]:
        """(scope, field id, validity block) for every validated field, in spec order."""
        rules = []
        for scope in (Scope.HEADER, Scope.DETAIL):
            for field_id in context.registry.record_fields(context.year, scope):
                spec = context.registry.field_spec(context.year, scope, field_id)
                rule = spec.get("validity")
                if rule:
                    if "edit" not in rule:
                        raise ValueError(f"Validity block for '{field_id}' has no edit id")
                    rules.append((scope, field_id, rule))
        return rules

    def validate(self, context: RunContext) -> List[Violation]:
        """Check every validated field of every record.

        Args:
            context: Run context holding the document and the schema registry.

        Returns:
            Violations grouped by edit in spec field order, records in file order.
        """
        document = context.document
        layouts: Dict[str, Tuple[str, ...]] = {}
        self.field_layouts = layouts
        results = []
        for scope, field_id, rule in self.rules_for(context):
            edit_id = str(rule["edit"])
            layouts[edit_id] = (field_id,)
            records: List[Record] = [document.header] if scope == Scope.HEADER else list(document.details)
            for record in records:
                value = record.get(field_id, "")
                if value_passes(value, rule):
                    continue
                results.append(
                    Violation(
                        edit_id=edit_id,
                        scope=scope,
                        line_number=record.line_number,
                        record_key=record.loan_number if scope == Scope.DETAIL else None,
                        properties={field_id: value},
                    )
                )
        return results

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years; years without validity blocks yield nothing."""
        return True
