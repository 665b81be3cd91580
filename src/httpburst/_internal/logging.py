"""Logging setup for httpburst.

Records emitted while a load-test dispatch is executing carry the dispatch
index, so interleaved output from concurrent requests can be told apart.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from datetime import UTC, datetime

_current_dispatch: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "httpburst_dispatch", default=None
)

_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s%(dispatch_tag)s: %(message)s"


def bind_dispatch(index: int | None) -> contextvars.Token[int | None]:
    """Tag log records from the current task with a dispatch index.

    Each asyncio task runs in its own copy of the context, so binding inside
    a dispatch task never leaks into its siblings.
    """
    return _current_dispatch.set(index)


def unbind_dispatch(token: contextvars.Token[int | None]) -> None:
    _current_dispatch.reset(token)


class _DispatchFilter(logging.Filter):
    """Attach ``dispatch`` and ``dispatch_tag`` attributes to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        index = _current_dispatch.get()
        record.dispatch = index
        record.dispatch_tag = "" if index is None else f" [dispatch {index}]"
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message.

    ``dispatch`` is added when the record was emitted inside a dispatch,
    ``exception`` when it carries exception info.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        dispatch = getattr(record, "dispatch", None)
        if dispatch is not None:
            entry["dispatch"] = dispatch
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _make_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the ``httpburst`` logger.

    A single stderr handler is installed on first use. Later calls reuse it
    and only update its level and formatter.

    Args:
        level: Logging level for the namespace and its handler.
        json_format: Emit JSON lines (``HTTPBURST_LOG_JSON``) instead of text.

    Returns:
        The ``httpburst`` logger.
    """
    logger = logging.getLogger("httpburst")
    logger.setLevel(level)

    if logger.handlers:
        handler = logger.handlers[0]
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.addFilter(_DispatchFilter())
        logger.addHandler(handler)
        logger.propagate = False

    handler.setLevel(level)
    handler.setFormatter(_make_formatter(json_format))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``httpburst.<name>``, e.g. ``get_logger("engine.orchestrator")``."""
    return logging.getLogger(f"httpburst.{name}")
