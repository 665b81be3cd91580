"""Builds, sends, and times a single HTTP request from a ``RequestSpec``."""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp
from yarl import URL

from httpburst._internal.errors import (
    NetworkError,
    ReadError,
    RequestBuildError,
    SerializationError,
)
from httpburst._internal.logging import get_logger

if TYPE_CHECKING:
    from httpburst._internal.types import Headers
    from httpburst.request.spec import RequestSpec

logger = get_logger("request.executor")

# RFC 9110 token characters.
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
# ASCII control characters are never valid inside a URL.
_URL_FORBIDDEN_RE = re.compile(r"[\x00-\x1f\x7f]")
_SUPPORTED_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one successful request execution.

    Any HTTP status counts as success here; only transport-level problems
    are failures.

    Attributes:
        method: HTTP method that was sent.
        url: Request URL.
        status_code: HTTP response status code.
        latency_ms: Wall-clock time from send to full body read, in ms.
        body: Raw response body.
        content_length: Value of the Content-Length header, if any.
    """

    method: str
    url: str
    status_code: int
    latency_ms: float
    body: bytes
    content_length: int | None = None

    @property
    def latency_seconds(self) -> float:
        """Return the latency in seconds."""
        return self.latency_ms / 1000.0


def build_url(raw_url: str) -> URL:
    """Parse and validate an absolute http(s) URL.

    Args:
        raw_url: URL string from the request spec.

    Returns:
        The parsed ``yarl.URL``.

    Raises:
        RequestBuildError: If the URL is malformed, relative, uses an
            unsupported scheme, or has no host.
    """
    if _URL_FORBIDDEN_RE.search(raw_url):
        msg = f"Cannot create request: invalid character in URL {raw_url!r}"
        raise RequestBuildError(msg)
    try:
        url = URL(raw_url)
    except (TypeError, ValueError) as exc:
        msg = f"Cannot create request: cannot parse URL {raw_url!r}: {exc}"
        raise RequestBuildError(msg) from exc
    if not url.is_absolute() or url.scheme not in _SUPPORTED_SCHEMES:
        msg = f"Cannot create request: URL must be absolute http(s), got {raw_url!r}"
        raise RequestBuildError(msg)
    if not url.host:
        msg = f"Cannot create request: URL has no host: {raw_url!r}"
        raise RequestBuildError(msg)
    if " " in url.host:
        msg = f"Cannot create request: invalid host in URL {raw_url!r}"
        raise RequestBuildError(msg)
    return url


def validate_method(method: str) -> str:
    """Return the upper-cased method if it is a valid HTTP token.

    Raises:
        RequestBuildError: If the method contains non-token characters.
    """
    if not _METHOD_RE.match(method):
        msg = f"Cannot create request: invalid method {method!r}"
        raise RequestBuildError(msg)
    return method.upper()


def serialize_body(body: object) -> bytes:
    """Encode a request body as UTF-8 JSON.

    Raises:
        SerializationError: If the body is cyclic, contains values JSON
            cannot represent, or includes NaN/Infinity.
    """
    try:
        return json.dumps(body, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        msg = f"Cannot encode request body as JSON: {exc}"
        raise SerializationError(msg) from exc


class RequestExecutor:
    """Executes ``RequestSpec`` objects over a shared ``aiohttp.ClientSession``.

    One executor is opened per run and shared by the baseline request and
    every load-test dispatch; ``RequestSpec`` objects are only read.
    Requests are never retried.
    """

    def __init__(self, timeout: float = 300.0) -> None:
        """Initialize the executor.

        Args:
            timeout: Total per-request timeout in seconds.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> RequestExecutor:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def execute(self, spec: RequestSpec) -> ExecutionResult:
        """Send one request described by ``spec`` and read the full response.

        Args:
            spec: The request to send.

        Returns:
            The status, latency, and body of the response.

        Raises:
            RequestBuildError: If the method or URL is invalid.
            SerializationError: If the body cannot be JSON-encoded.
            NetworkError: If the request cannot be sent.
            ReadError: If the response body cannot be fully read.
            RuntimeError: If used outside of an async context manager.
        """
        if self._session is None:
            msg = "RequestExecutor must be used as an async context manager"
            raise RuntimeError(msg)

        method = validate_method(spec.method)
        url = build_url(spec.url)
        headers: Headers = dict(spec.headers)

        payload: bytes | None = None
        if spec.body is not None:
            payload = serialize_body(spec.body)
            if not any(name.lower() == "content-type" for name in headers):
                headers["Content-Type"] = "application/json"

        start = time.monotonic()
        try:
            resp = await self._session.request(method, url, headers=headers, data=payload)
        except (aiohttp.InvalidURL, ValueError) as exc:
            msg = f"Cannot create request: {exc}"
            raise RequestBuildError(msg) from exc
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            msg = f"Cannot send request: {type(exc).__name__}: {exc}"
            raise NetworkError(msg) from exc

        try:
            body = await resp.read()
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            msg = f"Cannot read response body: {type(exc).__name__}: {exc}"
            raise ReadError(msg) from exc
        finally:
            resp.release()

        latency_ms = (time.monotonic() - start) * 1000
        logger.debug(
            "%s %s -> %d in %.1fms (%d bytes)",
            method,
            spec.url,
            resp.status,
            latency_ms,
            len(body),
        )

        return ExecutionResult(
            method=method,
            url=spec.url,
            status_code=resp.status,
            latency_ms=latency_ms,
            body=body,
            content_length=resp.content_length,
        )
