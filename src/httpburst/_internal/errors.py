"""Custom exception hierarchy for httpburst."""

from __future__ import annotations


class HttpBurstError(Exception):
    """Base exception for all httpburst errors.

    All custom exceptions in httpburst inherit from this class, making it
    easy to catch any httpburst-specific error with a single except clause.
    """


class ConfigError(HttpBurstError):
    """Raised when configuration is invalid or missing.

    Examples:
        - The request config file cannot be opened or is not valid JSON.
        - The ``method`` or ``url`` field is missing or empty.
        - Iterations or duration are not strictly positive.
        - An environment variable has an invalid value.
    """


class EngineError(HttpBurstError):
    """Raised when the load orchestrator fails unexpectedly."""


class ExecutionError(HttpBurstError):
    """Base class for failures of a single request execution."""


class RequestBuildError(ExecutionError):
    """Raised when the method or URL cannot form a valid HTTP request.

    Always raised before any network I/O.
    """


class SerializationError(ExecutionError):
    """Raised when the request body cannot be encoded as JSON.

    Always raised before any network I/O.
    """


class NetworkError(ExecutionError):
    """Raised when the transport fails to connect, times out, or is reset.

    The underlying transport exception is available as ``__cause__``.
    """


class ReadError(ExecutionError):
    """Raised when the response body cannot be fully drained."""
