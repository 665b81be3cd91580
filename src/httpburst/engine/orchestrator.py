"""Bounded-duration concurrent load test against a single ``RequestSpec``."""

from __future__ import annotations

import asyncio
import time
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol

from httpburst._internal.errors import EngineError, ExecutionError
from httpburst._internal.logging import bind_dispatch, get_logger, unbind_dispatch
from httpburst.engine.progress import ProgressTracker
from httpburst.metrics.collector import OutcomeCollector
from httpburst.metrics.models import DispatchOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from httpburst._internal.config import LoadTestConfig
    from httpburst.metrics.models import LoadTestResult
    from httpburst.request.executor import ExecutionResult
    from httpburst.request.spec import RequestSpec

logger = get_logger("engine.orchestrator")


class Executor(Protocol):
    """Anything that can execute a ``RequestSpec`` asynchronously."""

    async def execute(self, spec: RequestSpec) -> ExecutionResult: ...


class OrchestratorState(Enum):
    """State machine for a load orchestrator."""

    IDLE = auto()
    RUNNING = auto()
    DONE = auto()


class LoadOrchestrator:
    """Runs a fixed-duration burst of concurrent executions.

    Two activities run side by side on the event loop once ``run`` starts:

    - dispatch: one task per iteration, all launched at once with no pacing
      or admission limit. Every task produces a ``DispatchOutcome``.
    - progress: a tick task scheduled on absolute deadlines
      ``start + k * tick_interval`` that writes the elapsed fraction of the
      budget into the ``ProgressTracker`` and commits 100 at the end.

    ``run`` returns once the full duration has elapsed. Executions still in
    flight at that point are cancelled and counted as abandoned. A failed
    execution is logged and recorded but never stops the run.

    State machine: IDLE -> RUNNING -> DONE. A config with a single iteration
    leaves the orchestrator IDLE.
    """

    def __init__(
        self,
        executor: Executor,
        tracker: ProgressTracker | None = None,
        *,
        tick_interval: float = 1.0,
        on_outcome: Callable[[DispatchOutcome], None] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            executor: Executes each dispatched request.
            tracker: Progress cell shared with renderers. A new one is
                created if omitted.
            tick_interval: Seconds between progress updates.
            on_outcome: Optional callback invoked as each execution finishes.
        """
        if tick_interval <= 0:
            msg = f"tick_interval must be positive, got: {tick_interval}"
            raise ValueError(msg)
        self._executor = executor
        self._tracker = tracker if tracker is not None else ProgressTracker()
        self._tick_interval = tick_interval
        self._on_outcome = on_outcome
        self._state = OrchestratorState.IDLE

    @property
    def state(self) -> OrchestratorState:
        """Return the current orchestrator state."""
        return self._state

    @property
    def tracker(self) -> ProgressTracker:
        """Return the progress tracker written by this orchestrator."""
        return self._tracker

    async def run(self, spec: RequestSpec, config: LoadTestConfig) -> LoadTestResult | None:
        """Run the load test for the configured duration.

        Args:
            spec: The request to repeat.
            config: Iteration count and duration budget.

        Returns:
            The load test summary, or None if ``config.iterations`` is 1 and
            no load test was run.

        Raises:
            EngineError: If the orchestrator was already used, or the
                progress activity fails.
        """
        if not config.load_enabled:
            logger.debug("Single iteration requested, skipping load test")
            return None

        if self._state is not OrchestratorState.IDLE:
            msg = f"LoadOrchestrator cannot run from state {self._state.name}"
            raise EngineError(msg)

        total = float(config.duration_seconds)
        logger.info(
            "Starting load test: %s, iterations=%d, duration=%.0fs",
            spec.describe(),
            config.iterations,
            total,
        )

        self._tracker.reset()
        self._state = OrchestratorState.RUNNING
        collector = OutcomeCollector()
        start_time = time.monotonic()
        deadline = start_time + total

        progress_task = asyncio.create_task(
            self._report_progress(start_time, total),
            name="load-progress",
        )
        dispatch_tasks = self._dispatch(spec, config.iterations, collector)

        abandoned: list[asyncio.Task[DispatchOutcome]] = []
        try:
            await progress_task
            remaining = deadline - time.monotonic()
            if remaining > 0:
                await asyncio.sleep(remaining)
        except Exception as exc:
            logger.exception("Load test failed")
            raise EngineError("Load test failed") from exc
        finally:
            if not progress_task.done():
                progress_task.cancel()
            abandoned = [t for t in dispatch_tasks if not t.done()]
            for task in abandoned:
                task.cancel()
            if abandoned:
                await asyncio.gather(*abandoned, return_exceptions=True)
            self._state = OrchestratorState.DONE

        elapsed = time.monotonic() - start_time
        result = collector.build_result(
            iterations=config.iterations,
            duration_seconds=total,
            elapsed_seconds=elapsed,
            dispatched=len(dispatch_tasks),
            abandoned=len(abandoned),
        )

        logger.info(
            "Load test completed: duration=%.1fs, dispatched=%d, succeeded=%d, "
            "failed=%d, abandoned=%d, p95=%.1fms",
            elapsed,
            result.dispatched,
            result.succeeded,
            result.failed,
            result.abandoned,
            result.latency.p95,
        )
        return result

    def _dispatch(
        self,
        spec: RequestSpec,
        iterations: int,
        collector: OutcomeCollector,
    ) -> list[asyncio.Task[DispatchOutcome]]:
        """Launch one execution task per iteration without waiting on any."""
        tasks = [
            asyncio.create_task(
                self._execute_one(spec, index, collector),
                name=f"dispatch-{index}",
            )
            for index in range(iterations)
        ]
        logger.debug("Dispatched %d executions", len(tasks))
        return tasks

    async def _execute_one(
        self,
        spec: RequestSpec,
        index: int,
        collector: OutcomeCollector,
    ) -> DispatchOutcome:
        """Execute one dispatched request and record its outcome."""
        token = bind_dispatch(index)
        try:
            outcome = await self._attempt(spec, index)
            collector.record(outcome)
            if self._on_outcome is not None:
                try:
                    self._on_outcome(outcome)
                except Exception:
                    logger.exception("Outcome callback failed for dispatch %d", index)
            return outcome
        finally:
            unbind_dispatch(token)

    async def _attempt(self, spec: RequestSpec, index: int) -> DispatchOutcome:
        try:
            result = await self._executor.execute(spec)
        except asyncio.CancelledError:
            raise
        except ExecutionError as exc:
            logger.warning("Dispatch %d failed: %s", index, exc)
            return DispatchOutcome(index=index, error=exc)
        except Exception as exc:
            logger.warning("Dispatch %d failed unexpectedly", index, exc_info=True)
            error = ExecutionError(f"{type(exc).__name__}: {exc}")
            error.__cause__ = exc
            return DispatchOutcome(index=index, error=error)
        logger.debug(
            "Dispatch %d: status=%d latency=%.1fms",
            index,
            result.status_code,
            result.latency_ms,
        )
        return DispatchOutcome(index=index, result=result)

    async def _report_progress(self, start_time: float, total: float) -> None:
        """Publish elapsed progress on each tick until the budget is spent."""
        tick = 0
        while True:
            elapsed = time.monotonic() - start_time
            if elapsed >= total:
                self._tracker.finish()
                logger.debug("Progress complete after %.2fs", elapsed)
                return

            self._tracker.set(int(elapsed / total * 100))

            tick += 1
            target = start_time + min(tick * self._tick_interval, total)
            await asyncio.sleep(max(0.0, target - time.monotonic()))
