"""Top-level entry point: baseline request followed by an optional load test."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from httpburst._internal.config import LoadTestConfig, RuntimeSettings
from httpburst._internal.logging import get_logger, setup_logging
from httpburst.engine.orchestrator import LoadOrchestrator
from httpburst.engine.progress import ProgressTracker
from httpburst.request.executor import RequestExecutor

if TYPE_CHECKING:
    from collections.abc import Callable

    from httpburst.metrics.models import DispatchOutcome, LoadTestResult
    from httpburst.request.executor import ExecutionResult
    from httpburst.request.spec import RequestSpec

logger = get_logger("engine.runner")


@dataclass(frozen=True)
class RunReport:
    """Everything a run produced.

    Attributes:
        baseline: Result of the single always-performed request.
        load: Load test summary, or None when only one iteration was asked.
    """

    baseline: ExecutionResult
    load: LoadTestResult | None = None


def _install_uvloop() -> None:
    """Install uvloop as the default event loop policy if available.

    Falls back to the default asyncio event loop on Windows or if uvloop
    is not installed.
    """
    if sys.platform == "win32":
        return

    try:
        import uvloop

        uvloop.install()
        logger.debug("uvloop installed as event loop policy")
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")


def run_request(
    spec: RequestSpec,
    load_config: LoadTestConfig | None = None,
    *,
    settings: RuntimeSettings | None = None,
    tracker: ProgressTracker | None = None,
    on_baseline: Callable[[ExecutionResult], None] | None = None,
    on_load_start: Callable[[], None] | None = None,
    on_outcome: Callable[[DispatchOutcome], None] | None = None,
    log_level: int = logging.INFO,
) -> RunReport:
    """Execute the baseline request and, if configured, the load test.

    This is a blocking call. Any failure of the baseline request is fatal
    and propagates; failures during the load test are only recorded.

    Args:
        spec: The request to send.
        load_config: Iterations and duration. Defaults to a single iteration.
        settings: Runtime settings (timeout, tick interval, log format).
        tracker: Progress cell the load test writes to. Pass one in to
            observe progress from another thread.
        on_baseline: Callback invoked with the baseline result before the
            load test starts.
        on_load_start: Callback invoked right before the load test starts.
        on_outcome: Callback invoked as each load test execution finishes.
        log_level: Logging level.

    Returns:
        The baseline result and the optional load test summary.

    Raises:
        ExecutionError: If the baseline request fails.
        EngineError: If the load test itself fails.
    """
    settings = settings or RuntimeSettings()
    _install_uvloop()
    setup_logging(level=log_level, json_format=settings.json_logs)

    return asyncio.run(
        _run(
            spec,
            load_config or LoadTestConfig(),
            settings=settings,
            tracker=tracker or ProgressTracker(),
            on_baseline=on_baseline,
            on_load_start=on_load_start,
            on_outcome=on_outcome,
        )
    )


async def _run(
    spec: RequestSpec,
    load_config: LoadTestConfig,
    *,
    settings: RuntimeSettings,
    tracker: ProgressTracker,
    on_baseline: Callable[[ExecutionResult], None] | None,
    on_load_start: Callable[[], None] | None,
    on_outcome: Callable[[DispatchOutcome], None] | None,
) -> RunReport:
    """Async body of ``run_request`` sharing one executor for all requests."""
    async with RequestExecutor(timeout=settings.request_timeout) as executor:
        logger.info("Sending baseline request: %s", spec.describe())
        baseline = await executor.execute(spec)
        logger.info(
            "Baseline response: status=%d, latency=%.1fms, bytes=%d",
            baseline.status_code,
            baseline.latency_ms,
            len(baseline.body),
        )
        if on_baseline is not None:
            on_baseline(baseline)

        if not load_config.load_enabled:
            return RunReport(baseline=baseline)

        if on_load_start is not None:
            on_load_start()

        orchestrator = LoadOrchestrator(
            executor,
            tracker,
            tick_interval=settings.tick_interval,
            on_outcome=on_outcome,
        )
        load = await orchestrator.run(spec, load_config)

    return RunReport(baseline=baseline, load=load)
