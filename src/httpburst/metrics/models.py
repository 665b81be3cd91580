"""Result dataclasses for load test runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from httpburst._internal.errors import ExecutionError
    from httpburst.request.executor import ExecutionResult

__all__ = [
    "DispatchOutcome",
    "LatencySummary",
    "LoadTestResult",
]


@dataclass(frozen=True)
class DispatchOutcome:
    """Outcome of one dispatched execution during a load test.

    Exactly one of ``result`` and ``error`` is set.

    Attributes:
        index: Zero-based dispatch index within the run.
        result: The execution result on success.
        error: The classified failure otherwise.
    """

    index: int
    result: ExecutionResult | None = None
    error: ExecutionError | None = None

    @property
    def ok(self) -> bool:
        """Return True if the execution produced a response."""
        return self.error is None

    @property
    def error_type(self) -> str | None:
        """Return the failure class name, or None on success."""
        return type(self.error).__name__ if self.error is not None else None


@dataclass(frozen=True)
class LatencySummary:
    """Latency distribution of successful dispatches, in milliseconds."""

    count: int = 0
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    p50: float = 0.0
    p95: float = 0.0
    p99: float = 0.0


@dataclass
class LoadTestResult:
    """Summary of a completed load test.

    The summary is informational; the run's correctness never depends on it.

    Attributes:
        iterations: Number of executions requested.
        duration_seconds: Configured wall-clock budget.
        elapsed_seconds: Measured wall-clock time of the run.
        dispatched: Number of executions launched.
        outcomes: Outcomes of executions that finished within the budget,
            in completion order.
        abandoned: Executions still in flight when the budget ran out.
        status_codes: Response count per HTTP status code.
        errors_by_type: Failure count per error class name.
        latency: Latency distribution of successful executions.
    """

    iterations: int
    duration_seconds: float
    elapsed_seconds: float
    dispatched: int
    outcomes: list[DispatchOutcome] = field(default_factory=list)
    abandoned: int = 0
    status_codes: dict[int, int] = field(default_factory=dict)
    errors_by_type: dict[str, int] = field(default_factory=dict)
    latency: LatencySummary = field(default_factory=LatencySummary)

    @property
    def succeeded(self) -> int:
        """Return the number of executions that produced a response."""
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        """Return the number of executions that raised a failure."""
        return sum(1 for o in self.outcomes if not o.ok)
