"""Configuration objects for httpburst."""

from __future__ import annotations

import os
from dataclasses import dataclass

from httpburst._internal.errors import ConfigError

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class LoadTestConfig:
    """Settings for the optional load test phase.

    Attributes:
        iterations: Number of concurrent executions to dispatch. A value of 1
            means only the baseline request runs.
        duration_seconds: Wall-clock budget of the load test in seconds.

    Raises:
        ConfigError: If either value is not strictly positive.
    """

    iterations: int = 1
    duration_seconds: int = 10

    def __post_init__(self) -> None:
        if self.iterations <= 0:
            msg = f"iterations must be positive, got: {self.iterations}"
            raise ConfigError(msg)
        if self.duration_seconds <= 0:
            msg = f"duration must be positive, got: {self.duration_seconds}"
            raise ConfigError(msg)

    @property
    def load_enabled(self) -> bool:
        """Return True if a load test runs after the baseline request."""
        return self.iterations > 1


@dataclass(frozen=True)
class RuntimeSettings:
    """Process-wide runtime settings.

    Attributes:
        request_timeout: Total per-request timeout in seconds.
        tick_interval: Seconds between progress updates during a load test.
        json_logs: Emit JSON-lines logs instead of plain text.
    """

    request_timeout: float = 300.0
    tick_interval: float = 1.0
    json_logs: bool = False


def _positive_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        value = float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None
    if value <= 0:
        msg = f"{name} must be positive, got: {value}"
        raise ConfigError(msg)
    return value


def load_settings() -> RuntimeSettings:
    """Load runtime settings from environment variables with defaults.

    Environment variables:
        HTTPBURST_TIMEOUT: Request timeout in seconds (default: 300.0).
        HTTPBURST_TICK_INTERVAL: Progress cadence in seconds (default: 1.0).
        HTTPBURST_LOG_JSON: Set to 1/true/yes for JSON logs.

    Returns:
        Populated RuntimeSettings instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    return RuntimeSettings(
        request_timeout=_positive_float("HTTPBURST_TIMEOUT", "300.0"),
        tick_interval=_positive_float("HTTPBURST_TICK_INTERVAL", "1.0"),
        json_logs=os.environ.get("HTTPBURST_LOG_JSON", "").strip().lower() in _TRUTHY,
    )
