"""Shared HTTP client used by the metadata sources.

Encapsulates timeout and error handling so sources avoid duplicating
try/except blocks. One instance is built by the CLI entry point and handed
to every source that needs the network; nothing here is module-global.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import SourceUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """Minimal snapshot of a response, safe to cache and compare in tests."""

    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True for 2xx status codes."""
        return 200 <= self.status_code < 300


class HttpClient:
    """GET-only HTTP client with a per-request timeout and a small TTL cache.

    Every request is attempted exactly once. Transport failures surface as
    SourceUnavailableError so callers can turn them into a resolution result.

    Safe to share between worker threads: without an injected session each
    thread gets its own requests.Session, and the cache is lock-guarded.
    """

    def __init__(
        self,
        timeout: float = Constants.REQUEST_TIMEOUT,
        cache_ttl: float = Constants.HTTP_CACHE_TTL_SEC,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            timeout: Seconds before a single request is abandoned.
            cache_ttl: Seconds a non-5xx response is reused; 0 disables caching.
            session: Optional pre-built session used by every thread (tests pass a mock).
        """
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._shared_session = session
        if session is not None:
            session.headers.setdefault("User-Agent", Constants.USER_AGENT)
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()
        self._cache: Dict[str, Tuple[HttpResponse, float]] = {}

    def _session(self) -> requests.Session:
        """Session for the calling thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.setdefault("User-Agent", Constants.USER_AGENT)
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def close(self) -> None:
        """Release pooled connections of every session this client used."""
        if self._shared_session is not None:
            self._shared_session.close()
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _cached(self, url: str) -> Optional[HttpResponse]:
        with self._lock:
            entry = self._cache.get(url)
            if entry is None:
                return None
            response, stored_at = entry
            if time.monotonic() - stored_at >= self.cache_ttl:
                del self._cache[url]
                return None
            return response

    def _store(self, url: str, response: HttpResponse) -> None:
        """Cache response and drop every entry that has expired."""
        now = time.monotonic()
        with self._lock:
            expired = [k for k, (_, stored_at) in self._cache.items() if now - stored_at >= self.cache_ttl]
            for key in expired:
                del self._cache[key]
            self._cache[url] = (response, now)

    def get(self, url: str, *, context: str) -> HttpResponse:
        """Perform a GET request with consistent error handling and DEBUG traces.

        Args:
            url: Target URL.
            context: Human-readable source tag for logs (e.g., "aur", "mirror").

        Returns:
            HttpResponse: status, body text and headers.

        Raises:
            SourceUnavailableError: On timeout or connection failure.
        """
        safe_target = safe_url(url)
        cached = self._cached(url) if self.cache_ttl > 0 else None
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP cache hit",
                    extra=extra_context(
                        event="cache_hit",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        context=context
                    )
                )
            return cached

        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        context=context
                    )
                )
            try:
                res = self._session().get(url, timeout=self.timeout)
            except requests.Timeout as exc:
                logger.debug("%s request timed out after %s seconds", context, self.timeout)
                raise SourceUnavailableError(
                    f"{context} request timed out after {self.timeout} seconds"
                ) from exc
            except requests.RequestException as exc:  # includes ConnectionError
                logger.debug("%s connection error: %s", context, exc)
                raise SourceUnavailableError(f"{context} connection error: {exc}") from exc

            response = HttpResponse(
                status_code=res.status_code,
                text=res.text,
                headers=dict(res.headers),
            )
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action="GET",
                        outcome="success" if response.ok else "non_2xx",
                        status_code=response.status_code,
                        duration_ms=t.duration_ms(),
                        target=safe_target,
                        context=context
                    )
                )

        # Don't cache server errors
        if self.cache_ttl > 0 and response.status_code < 500:
            self._store(url, response)
        return response

    def get_json(self, url: str, *, context: str) -> Tuple[int, Optional[Any]]:
        """Perform GET and parse a JSON body.

        Returns:
            Tuple of (status_code, parsed_json_or_none). The payload is None
            for non-200 responses.

        Raises:
            SourceUnavailableError: On transport failure or an undecodable body.
        """
        response = self.get(url, context=context)
        if response.status_code != 200:
            return response.status_code, None
        try:
            return response.status_code, json.loads(response.text)
        except json.JSONDecodeError as exc:
            if is_debug_enabled(logger):
                logger.debug(
                    "JSON decode error",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="json_decode_error",
                        status_code=response.status_code,
                        target=safe_url(url)
                    )
                )
            raise SourceUnavailableError(f"{context} returned invalid JSON: {exc}") from exc
