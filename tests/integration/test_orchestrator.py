"""Integration tests for the LoadOrchestrator."""

from __future__ import annotations

import asyncio
import logging
import threading
import time

import pytest

from httpburst._internal.config import LoadTestConfig
from httpburst._internal.errors import EngineError, ExecutionError, NetworkError
from httpburst.engine.orchestrator import LoadOrchestrator, OrchestratorState
from httpburst.engine.progress import ProgressTracker
from httpburst.metrics.models import DispatchOutcome
from httpburst.request.executor import ExecutionResult, RequestExecutor
from httpburst.request.spec import RequestSpec

SPEC = RequestSpec(method="GET", url="http://localhost/fake")


# ============================================================================
# Test doubles
# ============================================================================


class FakeExecutor:
    """Counts calls and optionally delays or fails each execution."""

    def __init__(self, delay: float = 0.0, error: Exception | None = None) -> None:
        self.delay = delay
        self.error = error
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def execute(self, spec: RequestSpec) -> ExecutionResult:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return ExecutionResult(
                method=spec.method,
                url=spec.url,
                status_code=200,
                latency_ms=self.delay * 1000,
                body=b"ok",
                content_length=2,
            )
        finally:
            self.in_flight -= 1


class RecordingTracker(ProgressTracker):
    """ProgressTracker that remembers every committed value."""

    def __init__(self) -> None:
        super().__init__()
        self.history: list[int] = []

    def set(self, percent: int) -> None:
        super().set(percent)
        self.history.append(self.get())

    def finish(self) -> None:
        super().finish()
        self.history.append(self.get())


# ============================================================================
# Tests
# ============================================================================


class TestLoadOrchestrator:
    @pytest.mark.timeout(10)
    async def test_progress_reaches_100_after_duration(self):
        tracker = RecordingTracker()
        orchestrator = LoadOrchestrator(FakeExecutor(), tracker)

        start = time.monotonic()
        result = await orchestrator.run(SPEC, LoadTestConfig(iterations=2, duration_seconds=2))
        elapsed = time.monotonic() - start

        assert 2.0 <= elapsed < 3.0
        assert result is not None
        assert result.elapsed_seconds >= 2.0
        assert tracker.history[0] >= 0
        assert tracker.history == sorted(tracker.history)
        assert tracker.history[-1] == 100
        assert tracker.finished is True
        assert orchestrator.state is OrchestratorState.DONE

    @pytest.mark.timeout(10)
    async def test_progress_ticks_once_per_interval(self):
        tracker = RecordingTracker()
        orchestrator = LoadOrchestrator(FakeExecutor(), tracker, tick_interval=0.25)

        await orchestrator.run(SPEC, LoadTestConfig(iterations=2, duration_seconds=1))

        # Ticks at 0, 0.25, 0.5, 0.75 and the final commit at 1.0
        assert len(tracker.history) >= 5
        assert tracker.history == sorted(tracker.history)
        assert tracker.history[-1] == 100

    @pytest.mark.timeout(10)
    async def test_dispatches_exactly_iterations_without_waiting(self):
        """Slow executions do not extend the run; all five are still launched."""
        executor = FakeExecutor(delay=5.0)
        orchestrator = LoadOrchestrator(executor)

        start = time.monotonic()
        result = await orchestrator.run(SPEC, LoadTestConfig(iterations=5, duration_seconds=1))
        elapsed = time.monotonic() - start

        assert executor.calls == 5
        assert result is not None
        assert result.dispatched == 5
        assert result.abandoned == 5
        assert result.outcomes == []
        assert elapsed < 2.0

    @pytest.mark.timeout(10)
    async def test_dispatches_all_at_once(self):
        executor = FakeExecutor(delay=0.3)
        orchestrator = LoadOrchestrator(executor)

        result = await orchestrator.run(SPEC, LoadTestConfig(iterations=8, duration_seconds=1))

        assert executor.max_in_flight == 8
        assert result is not None
        assert result.succeeded == 8
        assert result.abandoned == 0
        assert result.status_codes == {200: 8}

    async def test_single_iteration_does_not_run(self):
        executor = FakeExecutor()
        tracker = RecordingTracker()
        orchestrator = LoadOrchestrator(executor, tracker)

        result = await orchestrator.run(SPEC, LoadTestConfig(iterations=1, duration_seconds=5))

        assert result is None
        assert executor.calls == 0
        assert tracker.history == []
        assert orchestrator.state is OrchestratorState.IDLE

    @pytest.mark.timeout(10)
    async def test_failures_do_not_abort_run(self):
        executor = FakeExecutor(error=NetworkError("connection refused"))
        tracker = RecordingTracker()
        orchestrator = LoadOrchestrator(executor, tracker)

        start = time.monotonic()
        result = await orchestrator.run(SPEC, LoadTestConfig(iterations=4, duration_seconds=1))

        assert time.monotonic() - start >= 1.0
        assert result is not None
        assert result.failed == 4
        assert result.succeeded == 0
        assert result.errors_by_type == {"NetworkError": 4}
        assert tracker.history[-1] == 100

    @pytest.mark.timeout(10)
    async def test_unexpected_exception_is_recorded_as_execution_error(self):
        executor = FakeExecutor(error=RuntimeError("bug"))
        orchestrator = LoadOrchestrator(executor)

        result = await orchestrator.run(SPEC, LoadTestConfig(iterations=2, duration_seconds=1))

        assert result is not None
        assert result.failed == 2
        for outcome in result.outcomes:
            assert isinstance(outcome.error, ExecutionError)
            assert isinstance(outcome.error.__cause__, RuntimeError)

    @pytest.mark.timeout(10)
    async def test_on_outcome_receives_every_finished_execution(self):
        received: list[DispatchOutcome] = []
        orchestrator = LoadOrchestrator(FakeExecutor(delay=0.05), on_outcome=received.append)

        await orchestrator.run(SPEC, LoadTestConfig(iterations=3, duration_seconds=1))

        assert sorted(o.index for o in received) == [0, 1, 2]
        assert all(o.ok for o in received)

    @pytest.mark.timeout(10)
    async def test_failing_on_outcome_is_logged_not_raised(self):
        calls: list[int] = []

        def on_outcome(outcome: DispatchOutcome) -> None:
            calls.append(outcome.index)
            raise RuntimeError("renderer broke")

        records: list[logging.LogRecord] = []
        handler = logging.Handler(level=logging.ERROR)
        handler.emit = records.append  # type: ignore[method-assign]
        orchestrator_logger = logging.getLogger("httpburst.engine.orchestrator")
        orchestrator_logger.addHandler(handler)
        try:
            orchestrator = LoadOrchestrator(FakeExecutor(), on_outcome=on_outcome)
            result = await orchestrator.run(
                SPEC, LoadTestConfig(iterations=3, duration_seconds=1)
            )
        finally:
            orchestrator_logger.removeHandler(handler)

        assert sorted(calls) == [0, 1, 2]
        assert result is not None
        assert result.succeeded == 3
        assert result.abandoned == 0
        failures = [r for r in records if "Outcome callback failed" in r.getMessage()]
        assert len(failures) == 3
        assert all(r.exc_info and isinstance(r.exc_info[1], RuntimeError) for r in failures)

    @pytest.mark.timeout(10)
    async def test_cannot_run_twice(self):
        orchestrator = LoadOrchestrator(FakeExecutor())
        config = LoadTestConfig(iterations=2, duration_seconds=1)
        await orchestrator.run(SPEC, config)

        with pytest.raises(EngineError, match="DONE"):
            await orchestrator.run(SPEC, config)

    def test_rejects_non_positive_tick_interval(self):
        with pytest.raises(ValueError, match="tick_interval"):
            LoadOrchestrator(FakeExecutor(), tick_interval=0)

    @pytest.mark.timeout(10)
    async def test_progress_readable_from_another_thread(self):
        tracker = ProgressTracker()
        seen: list[int] = []

        def _poll() -> None:
            while not tracker.wait_finished(timeout=0.05):
                seen.append(tracker.get())
            seen.append(tracker.get())

        orchestrator = LoadOrchestrator(FakeExecutor(), tracker, tick_interval=0.2)
        reader = threading.Thread(target=_poll, daemon=True)
        reader.start()
        await orchestrator.run(SPEC, LoadTestConfig(iterations=2, duration_seconds=1))
        reader.join(timeout=5.0)

        assert seen
        assert seen == sorted(seen)
        assert seen[-1] == 100

    @pytest.mark.timeout(15)
    async def test_runs_against_echo_server(self, echo_server: str):
        spec = RequestSpec(method="GET", url=f"{echo_server}/echo/load")
        async with RequestExecutor() as executor:
            orchestrator = LoadOrchestrator(executor)
            result = await orchestrator.run(spec, LoadTestConfig(iterations=10, duration_seconds=1))

        assert result is not None
        assert result.dispatched == 10
        assert result.succeeded == 10
        assert result.status_codes == {200: 10}
        assert result.latency.count == 10
