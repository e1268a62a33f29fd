"""Stage scheduler.

Runs the six stages over one run context under one of two policies:

- GROUPED: the members of a tier run concurrently as asyncio tasks; the
  whole tier is awaited before the next one starts.
- SEQUENTIAL: one stage at a time in the fixed stage order, trading wall
  clock time for lower peak memory.

Both policies leave the same findings in the store. A stage that raises (or
times out) rejects the run: no further stage starts, siblings already
running in the same tier are awaited and their outcome dropped.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence

from hmda_edits.core.enums import SchedulePolicy, Stage
from hmda_edits.core.errors import RunRejectedError, StageTimeoutError
from .config import STAGE_ORDER, TIERS
from .context import RunContext
from .engine import EditEngine
from .models import RunResult

logger = logging.getLogger(__name__)


class StageScheduler:
    """Executes the stage graph for a run.

    Args:
        engine: Facade providing one async operation per stage.
        stage_timeout: Seconds each stage may take, or None for no limit.
    """

    def __init__(self, engine: EditEngine, stage_timeout: Optional[float] = None) -> None:
        self.engine = engine
        self.stage_timeout = stage_timeout

    async def run(self, policy: SchedulePolicy, context: RunContext) -> RunResult:
        """Run all stages.

        The store is sealed when this returns or raises, so the report can
        only read it after the run is over.

        Returns:
            RunResult listing the completed stages and their durations.

        Raises:
            RunRejectedError: If any stage failed; chained to the cause.
        """
        policy = SchedulePolicy(policy)
        completed: List[Stage] = []
        durations: Dict[Stage, float] = {}
        started = time.perf_counter()
        logger.debug("Running stages (%s policy)", policy.name.lower())
        try:
            if policy == SchedulePolicy.SEQUENTIAL:
                for stage in STAGE_ORDER:
                    await self._run_tier((stage,), context, completed, durations)
            else:
                for tier in TIERS:
                    await self._run_tier(tier, context, completed, durations)
        finally:
            context.store.seal()

        logger.info("Time to run all stages: %.3fs", time.perf_counter() - started)
        return RunResult(policy=policy, completed_stages=tuple(completed), durations=durations)

    async def _run_tier(
        self,
        tier: Sequence[Stage],
        context: RunContext,
        completed: List[Stage],
        durations: Dict[Stage, float],
    ) -> None:
        if len(tier) == 1:
            outcomes = [await self._capture(tier[0], context, durations)]
        else:
            outcomes = await asyncio.gather(
                *(self._capture(stage, context, durations) for stage in tier)
            )

        failure = None
        for stage, error in zip(tier, outcomes):
            if error is None:
                completed.append(stage)
            elif failure is None:
                failure = (stage, error)
        if failure is not None:
            stage, error = failure
            logger.error("Stage %s failed: %s", stage.value, error)
            raise RunRejectedError(
                stage.value, str(error) or type(error).__name__, [s.value for s in completed]
            ) from error

    async def _capture(
        self, stage: Stage, context: RunContext, durations: Dict[Stage, float]
    ) -> Optional[Exception]:
        """Run one stage and return its exception instead of raising it."""
        try:
            await self._run_stage(stage, context, durations)
        except Exception as e:  # noqa: BLE001 - any stage error rejects the run
            return e
        return None

    async def _run_stage(
        self, stage: Stage, context: RunContext, durations: Dict[Stage, float]
    ) -> None:
        operation = self.engine.operation(stage)
        logger.debug("Stage %s started", stage.value)
        started = time.perf_counter()
        try:
            if self.stage_timeout is None:
                await operation(context)
            else:
                await asyncio.wait_for(operation(context), timeout=self.stage_timeout)
        except asyncio.TimeoutError:
            raise StageTimeoutError(
                f"{stage.value} did not finish within {self.stage_timeout}s"
            ) from None
        durations[stage] = time.perf_counter() - started
        logger.debug("Stage %s finished in %.3fs", stage.value, durations[stage])


__all__ = ["StageScheduler"]
