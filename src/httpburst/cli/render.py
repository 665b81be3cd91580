"""Terminal rendering of baseline results, live progress, and load summaries."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

if TYPE_CHECKING:
    from httpburst.engine.progress import ProgressTracker
    from httpburst.metrics.models import LoadTestResult
    from httpburst.request.executor import ExecutionResult


def print_baseline(console: Console, result: ExecutionResult) -> None:
    """Print the status code, response time, and body of the baseline request."""
    console.print(f"Status Code: {result.status_code}", highlight=False)
    console.print(f"Response Time: {result.latency_ms:.3f}ms", highlight=False)
    console.print(
        f"Response Body: {result.body.decode('utf-8', errors='replace')}",
        markup=False,
        highlight=False,
    )


class ProgressRenderer:
    """Draws a progress bar by polling a ``ProgressTracker`` from a thread.

    The load test writes the tracker on the event loop thread; this renderer
    only reads it, on its own daemon thread, until the tracker finishes or
    ``stop`` is called.
    """

    def __init__(
        self,
        console: Console,
        tracker: ProgressTracker,
        *,
        poll_interval: float = 0.1,
        description: str = "[Performing Stress Test]",
    ) -> None:
        self._tracker = tracker
        self._poll_interval = poll_interval
        self._progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(bar_width=30),
            TaskProgressColumn(),
            console=console,
        )
        self._task_id = self._progress.add_task(description, total=100, start=False)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._started = False

    def start(self) -> None:
        """Show the bar and start polling."""
        if self._started:
            return
        self._started = True
        self._progress.start()
        self._progress.start_task(self._task_id)
        self._thread = threading.Thread(
            target=self._poll,
            name="httpburst-progress-renderer",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop polling, draw the last committed value, and end the live view."""
        if not self._started:
            return
        self._started = False
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        self._progress.update(self._task_id, completed=self._tracker.get())
        self._progress.stop()

    def _poll(self) -> None:
        while not self._stop_event.is_set():
            state = self._tracker.snapshot()
            self._progress.update(self._task_id, completed=state.percent)
            if state.completed:
                return
            self._stop_event.wait(self._poll_interval)


def print_load_summary(console: Console, result: LoadTestResult) -> None:
    """Print a summary table after the load test completes."""
    table = Table(
        title="Stress Test Complete",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Iterations", str(result.iterations))
    table.add_row("Duration", f"{result.elapsed_seconds:.1f}s")
    table.add_row("Dispatched", str(result.dispatched))
    table.add_row("Succeeded", str(result.succeeded))
    table.add_row("Failed", str(result.failed))
    table.add_row("Still In Flight", str(result.abandoned))

    if result.latency.count:
        table.add_row("Min Latency", f"{result.latency.min:.1f}ms")
        table.add_row("Avg Latency", f"{result.latency.avg:.1f}ms")
        table.add_row("p50 Latency", f"{result.latency.p50:.1f}ms")
        table.add_row("p95 Latency", f"{result.latency.p95:.1f}ms")
        table.add_row("p99 Latency", f"{result.latency.p99:.1f}ms")
        table.add_row("Max Latency", f"{result.latency.max:.1f}ms")

    for status, count in sorted(result.status_codes.items()):
        table.add_row(f"HTTP {status}", str(count))
    for error_type, count in sorted(result.errors_by_type.items()):
        table.add_row(error_type, str(count))

    console.print(table)
