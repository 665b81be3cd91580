"""Shared type aliases for httpburst."""

from __future__ import annotations

from typing import Any

# HTTP headers dictionary.
Headers = dict[str, str]

# Any JSON-encodable value used as a request body.
JsonBody = Any
