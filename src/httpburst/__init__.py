"""httpburst: send a declarative HTTP request and stress test it."""

from __future__ import annotations

from httpburst._internal.config import LoadTestConfig, RuntimeSettings
from httpburst.engine.orchestrator import LoadOrchestrator, OrchestratorState
from httpburst.engine.progress import ProgressState, ProgressTracker
from httpburst.engine.runner import RunReport, run_request
from httpburst.metrics.models import DispatchOutcome, LoadTestResult
from httpburst.request.executor import ExecutionResult, RequestExecutor
from httpburst.request.loader import load_request_spec
from httpburst.request.spec import RequestSpec

__version__ = "0.1.0"

__all__ = [
    "DispatchOutcome",
    "ExecutionResult",
    "LoadOrchestrator",
    "LoadTestConfig",
    "LoadTestResult",
    "OrchestratorState",
    "ProgressState",
    "ProgressTracker",
    "RequestExecutor",
    "RequestSpec",
    "RunReport",
    "RuntimeSettings",
    "load_request_spec",
    "run_request",
]
