"""Edit checks base interface.

This module defines the protocol (interface) that all edit checks implement.
Each check inspects the submission for one edit (or one family of edits) of
a single stage and returns the violations it found. The engine records them
in the run's error store; checks never write to it themselves.

To implement a new edit check:

1. Create a new file in this directory (e.g., `my_edit.py`)
2. Define a class that implements the EditCheck protocol
3. Implement `validate()` and `applies_to_year()`, and set `stage` and
   `field_layouts`
4. Add the check to ALL_CHECKS in registry.py

Example:
    ```python
    # checks/my_edit.py
    from typing import List
    from hmda_edits.core.enums import Scope, Stage
    from ..models import Violation

    class MyEditCheck:
        stage = Stage.QUALITY
        field_layouts = {"Q999": ("loanAmount",)}

        def validate(self, context) -> List[Violation]:
            return [
                Violation("Q999", Scope.DETAIL, r.line_number, r.loan_number,
                          {"loanAmount": r["loanAmount"]})
                for r in context.document.details
                if r["loanAmount"] == "0"
            ]

        def applies_to_year(self, year: int) -> bool:
            return True
    ```
"""

from __future__ import annotations

from typing import Awaitable, List, Mapping, Protocol, Tuple, Union

from hmda_edits.core.enums import Stage
from ..context import RunContext
from ..models import Violation


class EditCheck(Protocol):
    """Protocol defining the interface for edit checks.

    Attributes:
        stage: Stage the check belongs to; also names its error store group.
        field_layouts: Report columns per edit id this check emits. Edits
            missing here take their columns from their first violation.

    Methods:
        validate: Run the check and return its violations.
        applies_to_year: Whether the check runs for a submission year.
    """

    stage: Stage
    field_layouts: Mapping[str, Tuple[str, ...]]

    def validate(
        self, context: RunContext
    ) -> Union[List[Violation], Awaitable[List[Violation]]]:
        """Run the check.

        Args:
            context: The run context. Checks read ``context.document`` and
                ``context.options`` and must not touch ``context.store``.

        Returns:
            Violations in record order, or an awaitable of them for checks
            that query reference data. Empty when the submission passes.
        """
        ...

    def applies_to_year(self, year: int) -> bool:
        """Check if this edit applies to a submission year."""
        ...


__all__ = ["EditCheck"]
