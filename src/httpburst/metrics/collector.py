"""In-memory collection of dispatch outcomes for a load test."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from httpburst._internal.logging import get_logger
from httpburst.metrics.histogram import LatencyHistogram
from httpburst.metrics.models import LatencySummary, LoadTestResult

if TYPE_CHECKING:
    from httpburst.metrics.models import DispatchOutcome

logger = get_logger("metrics.collector")


class OutcomeCollector:
    """Accumulates ``DispatchOutcome`` objects as executions finish.

    ``record`` is called from the orchestrator's event loop only, so no
    locking is needed. ``build_result`` summarizes everything recorded so
    far into a ``LoadTestResult``.
    """

    def __init__(self) -> None:
        self._outcomes: list[DispatchOutcome] = []
        self._status_codes: Counter[int] = Counter()
        self._errors_by_type: Counter[str] = Counter()
        self._histogram = LatencyHistogram()

    def __len__(self) -> int:
        return len(self._outcomes)

    def record(self, outcome: DispatchOutcome) -> None:
        """Add one finished execution.

        Args:
            outcome: The dispatch outcome to record.
        """
        self._outcomes.append(outcome)
        if outcome.result is not None:
            self._status_codes[outcome.result.status_code] += 1
            self._histogram.record_latency_ms(outcome.result.latency_ms)
        elif outcome.error_type is not None:
            self._errors_by_type[outcome.error_type] += 1

    def build_result(
        self,
        *,
        iterations: int,
        duration_seconds: float,
        elapsed_seconds: float,
        dispatched: int,
        abandoned: int,
    ) -> LoadTestResult:
        """Summarize the recorded outcomes.

        Args:
            iterations: Number of executions requested.
            duration_seconds: Configured wall-clock budget.
            elapsed_seconds: Measured wall-clock time of the run.
            dispatched: Number of executions launched.
            abandoned: Executions still in flight at the end of the run.

        Returns:
            The aggregated LoadTestResult.
        """
        h = self._histogram
        latency = LatencySummary(
            count=h.get_total_count(),
            min=h.get_min(),
            max=h.get_max(),
            avg=h.get_mean(),
            p50=h.get_percentile(50.0),
            p95=h.get_percentile(95.0),
            p99=h.get_percentile(99.0),
        )
        return LoadTestResult(
            iterations=iterations,
            duration_seconds=duration_seconds,
            elapsed_seconds=elapsed_seconds,
            dispatched=dispatched,
            outcomes=list(self._outcomes),
            abandoned=abandoned,
            status_codes=dict(self._status_codes),
            errors_by_type=dict(self._errors_by_type),
            latency=latency,
        )
