"""Tests for the shared HTTP client."""

import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from common.http_client import HttpClient, HttpResponse
from errors import SourceUnavailableError


def _raw(status_code=200, text="{}"):
    res = MagicMock()
    res.status_code = status_code
    res.text = text
    res.headers = {"X-Test": "1"}
    return res


class TestGet:
    """Single GET requests."""

    def test_passes_timeout(self):
        session = MagicMock()
        session.get.return_value = _raw()
        client = HttpClient(timeout=7, session=session)
        client.get("https://example.org/a", context="test")
        session.get.assert_called_once_with("https://example.org/a", timeout=7)

    def test_returns_snapshot(self):
        session = MagicMock()
        session.get.return_value = _raw(status_code=201, text="body")
        response = HttpClient(session=session).get("https://example.org/a", context="test")
        assert response == HttpResponse(status_code=201, text="body", headers={"X-Test": "1"})
        assert response.ok

    def test_timeout_raises_source_unavailable(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout()
        with pytest.raises(SourceUnavailableError, match="timed out after 3 seconds"):
            HttpClient(timeout=3, session=session).get("https://example.org", context="aur")

    def test_request_exception_raises_source_unavailable(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(SourceUnavailableError, match="aur connection error"):
            HttpClient(session=session).get("https://example.org", context="aur")

    def test_default_session_gets_user_agent(self):
        with patch("common.http_client.requests.Session") as session_cls:
            session_cls.return_value.headers = {}
            session_cls.return_value.get.return_value = _raw()
            HttpClient().get("https://example.org/a", context="test")
        assert session_cls.return_value.headers["User-Agent"].startswith("raur/")


class TestSessionsPerThread:
    """Worker threads never share a session they did not inject."""

    def test_each_thread_gets_its_own_session(self):
        created = []

        def new_session():
            session = MagicMock()
            session.headers = {}
            session.get.return_value = _raw()
            created.append(session)
            return session

        with patch("common.http_client.requests.Session", side_effect=new_session):
            client = HttpClient(cache_ttl=0)
            client.get("https://example.org/a", context="test")
            client.get("https://example.org/b", context="test")
            worker = threading.Thread(
                target=client.get, args=("https://example.org/c",), kwargs={"context": "test"}
            )
            worker.start()
            worker.join()
            client.close()

        assert len(created) == 2
        assert created[0].get.call_count == 2
        assert created[1].get.call_count == 1
        for session in created:
            session.close.assert_called_once()

    def test_injected_session_is_used_by_all_threads(self):
        session = MagicMock()
        session.get.return_value = _raw()
        client = HttpClient(session=session, cache_ttl=0)
        worker = threading.Thread(
            target=client.get, args=("https://example.org/a",), kwargs={"context": "test"}
        )
        worker.start()
        worker.join()
        client.get("https://example.org/b", context="test")
        assert session.get.call_count == 2


class TestCache:
    """In-memory TTL cache."""

    def test_repeat_request_is_cached(self):
        session = MagicMock()
        session.get.return_value = _raw()
        client = HttpClient(session=session, cache_ttl=60)
        client.get("https://example.org/a", context="test")
        client.get("https://example.org/a", context="test")
        assert session.get.call_count == 1

    def test_server_errors_are_not_cached(self):
        session = MagicMock()
        session.get.return_value = _raw(status_code=503)
        client = HttpClient(session=session, cache_ttl=60)
        client.get("https://example.org/a", context="test")
        client.get("https://example.org/a", context="test")
        assert session.get.call_count == 2

    def test_zero_ttl_disables_cache(self):
        session = MagicMock()
        session.get.return_value = _raw()
        client = HttpClient(session=session, cache_ttl=0)
        client.get("https://example.org/a", context="test")
        client.get("https://example.org/a", context="test")
        assert session.get.call_count == 2

    def test_expired_entry_is_refetched(self):
        session = MagicMock()
        session.get.return_value = _raw()
        client = HttpClient(session=session, cache_ttl=10)
        with patch("common.http_client.time.monotonic", side_effect=[100.0, 200.0, 200.0]):
            client.get("https://example.org/a", context="test")
            client.get("https://example.org/a", context="test")
        assert session.get.call_count == 2

    def test_expired_entries_purged_on_insert(self):
        session = MagicMock()
        session.get.return_value = _raw()
        client = HttpClient(session=session, cache_ttl=10)
        with patch("common.http_client.time.monotonic", side_effect=[100.0, 105.0, 200.0]):
            client.get("https://example.org/a", context="test")
            client.get("https://example.org/b", context="test")
            client.get("https://example.org/c", context="test")
        assert list(client._cache) == ["https://example.org/c"]


class TestGetJson:
    """JSON decoding."""

    def test_parses_json(self):
        session = MagicMock()
        session.get.return_value = _raw(text='{"results": []}')
        status, data = HttpClient(session=session).get_json("https://x", context="t")
        assert status == 200
        assert data == {"results": []}

    def test_non_200_returns_none(self):
        session = MagicMock()
        session.get.return_value = _raw(status_code=404, text="nope")
        assert HttpClient(session=session).get_json("https://x", context="t") == (404, None)

    def test_invalid_json_raises(self):
        session = MagicMock()
        session.get.return_value = _raw(text="not json")
        with pytest.raises(SourceUnavailableError, match="invalid JSON"):
            HttpClient(session=session).get_json("https://x", context="t")


class TestContextManager:
    """Session lifecycle."""

    def test_close_on_exit(self):
        session = MagicMock()
        with HttpClient(session=session):
            pass
        session.close.assert_called_once()
