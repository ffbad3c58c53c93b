"""Centralized logging helpers.

Provides one place to configure the root logger from CLI flags or the
environment, plus small utilities used for structured DEBUG traces.
"""
from __future__ import annotations

import logging
import os
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_QUERY_KEYS = ("token", "key", "secret", "password", "auth")


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the root logger.

    Args:
        level: Level name; falls back to RAUR_LOG_LEVEL, then INFO.
        log_file: Optional path; when set, records are also written there.
    """
    name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    value = getattr(logging, name, None)
    if not isinstance(value, int):
        value = logging.INFO

    handlers: list = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=value,
        format=Constants.LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by logger."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an `extra` mapping for structured log records, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def safe_url(url: str) -> str:
    """Return url with credentials and sensitive query values masked."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return url
    netloc = parts.netloc
    if "@" in netloc:
        netloc = "***@" + netloc.split("@", 1)[1]
    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        masked = [
            (k, "***" if any(s in k.lower() for s in _SENSITIVE_QUERY_KEYS) else v)
            for k, v in pairs
        ]
        query = urllib.parse.urlencode(masked, safe="[]")
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still inside the block."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
