"""Immutable description of the HTTP request to issue."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from httpburst._internal.errors import ConfigError

if TYPE_CHECKING:
    from httpburst._internal.types import JsonBody


@dataclass(frozen=True)
class RequestSpec:
    """The HTTP call repeated by the baseline and the load test.

    Instances are created once from configuration and shared read-only
    between all concurrent executions.

    Attributes:
        method: HTTP method, e.g. ``"GET"``.
        url: Absolute request URL.
        headers: Read-only header mapping applied to every request.
        body: Optional JSON-encodable payload. ``None`` sends no body.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: JsonBody = None

    def __post_init__(self) -> None:
        if not isinstance(self.method, str) or not self.method.strip():
            msg = "Request method is required"
            raise ConfigError(msg)
        if not isinstance(self.url, str) or not self.url.strip():
            msg = "Request URL is required"
            raise ConfigError(msg)
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def describe(self) -> str:
        """Return a short human-readable label such as ``GET https://x/y``."""
        return f"{self.method} {self.url}"
