"""Loading a ``RequestSpec`` from a JSON configuration file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from httpburst._internal.errors import ConfigError
from httpburst.request.spec import RequestSpec


def load_request_spec(file_path: str | Path) -> RequestSpec:
    """Load a request specification from a JSON file.

    The file holds an object with ``method`` and ``url`` (required), an
    optional ``config`` object of header names to values, and an optional
    ``body`` sent as JSON.

    Args:
        file_path: Path to the JSON configuration file.

    Returns:
        The parsed ``RequestSpec``.

    Raises:
        ConfigError: If the file cannot be opened, is not valid JSON, or
            does not describe a complete request.
    """
    path = Path(file_path)

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot open config file: {exc}"
        raise ConfigError(msg) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Cannot parse config JSON: {exc}"
        raise ConfigError(msg) from exc

    return parse_request_spec(data)


def parse_request_spec(data: Any) -> RequestSpec:
    """Build a ``RequestSpec`` from decoded JSON data.

    Args:
        data: The decoded top-level JSON value.

    Returns:
        The parsed ``RequestSpec``.

    Raises:
        ConfigError: If a field is missing, empty, or has the wrong type.
    """
    if not isinstance(data, dict):
        msg = f"Config must be a JSON object, got: {type(data).__name__}"
        raise ConfigError(msg)

    method = data.get("method")
    url = data.get("url")
    if not isinstance(method, str) or not method.strip():
        msg = "Config field 'method' is required and must be a non-empty string"
        raise ConfigError(msg)
    if not isinstance(url, str) or not url.strip():
        msg = "Config field 'url' is required and must be a non-empty string"
        raise ConfigError(msg)

    headers = data.get("config")
    if headers is None:
        headers = {}
    elif not isinstance(headers, dict):
        msg = "Config field 'config' must be an object of header names to values"
        raise ConfigError(msg)
    for name, value in headers.items():
        if not isinstance(value, str):
            msg = f"Header {name!r} must have a string value, got: {type(value).__name__}"
            raise ConfigError(msg)

    body = data.get("body")
    if body is not None and not isinstance(body, dict):
        msg = f"Config field 'body' must be a JSON object, got: {type(body).__name__}"
        raise ConfigError(msg)

    return RequestSpec(
        method=method,
        url=url,
        headers=headers,
        body=body,
    )
