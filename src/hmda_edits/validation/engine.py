"""Edit engine facade.

One async operation per stage. Each operation runs the checks registered for
that stage and year, in registration order, and appends what they find to
the run's error store. The scheduler only sees that an operation completed
or raised.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from hmda_edits.core.enums import Stage
from .checks import EditCheck
from .context import RunContext
from .totals import compute_totals_by_msa

logger = logging.getLogger(__name__)

StageOperation = Callable[[RunContext], Awaitable[None]]


class EditEngine:
    """Runs edit checks by stage.

    Args:
        checks: Checks to run, in order. Defaults to ``registry.ALL_CHECKS``.
    """

    def __init__(self, checks: Optional[Sequence[EditCheck]] = None) -> None:
        if checks is None:
            from .registry import ALL_CHECKS

            checks = ALL_CHECKS
        self._by_stage: Dict[Stage, List[EditCheck]] = {stage: [] for stage in Stage}
        for check in checks:
            self._by_stage[Stage(check.stage)].append(check)

    def checks_for(self, stage: Stage, year: int) -> List[EditCheck]:
        return [c for c in self._by_stage[stage] if c.applies_to_year(year)]

    def operation(self, stage: Stage) -> StageOperation:
        """The async operation that runs ``stage``."""
        return getattr(self, f"run_{Stage(stage).value}")

    async def run_syntactical(self, context: RunContext) -> None:
        await self._run_checks(Stage.SYNTACTICAL, context)

    async def run_validity(self, context: RunContext) -> None:
        await self._run_checks(Stage.VALIDITY, context)

    async def run_quality(self, context: RunContext) -> None:
        await self._run_checks(Stage.QUALITY, context)

    async def run_macro(self, context: RunContext) -> None:
        await self._run_checks(Stage.MACRO, context)

    async def run_special(self, context: RunContext) -> None:
        await self._run_checks(Stage.SPECIAL, context)

    async def run_totals(self, context: RunContext) -> None:
        await self._run_checks(Stage.TOTALS, context)
        context.totals = compute_totals_by_msa(context.document)

    async def _run_checks(self, stage: Stage, context: RunContext) -> None:
        for check in self.checks_for(stage, context.year):
            found = check.validate(context)
            if inspect.isawaitable(found):
                found = await found
            # Appends for one check happen without suspending, so a sibling
            # stage never observes a half-recorded check.
            layouts: Mapping = getattr(check, "field_layouts", {}) or {}
            for violation in found:
                context.store.record(stage, violation, fields=layouts.get(violation.edit_id))
            if found:
                logger.debug(
                    "%s: %s reported %d violations", stage.value, type(check).__name__, len(found)
                )
            await asyncio.sleep(0)


__all__ = ["EditEngine", "StageOperation"]
