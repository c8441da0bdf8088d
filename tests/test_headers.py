"""Tests for sseline.http.headers: request and response headers."""

import pytest

from sseline.http.headers import Headers, ResponseHeaders


def _h(*pairs: tuple[str, str]) -> Headers:
    """Shorthand: build Headers from string pairs."""
    raw = tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)
    return Headers(raw)


class TestHeaders:
    def test_case_insensitive(self) -> None:
        h = _h(("Last-Event-ID", "9"))
        assert h["last-event-id"] == "9"
        assert h["LAST-EVENT-ID"] == "9"

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            _h(("Accept", "*/*"))["X-Missing"]

    def test_get_default(self) -> None:
        assert _h().get("Last-Event-ID") is None
        assert _h().get("Last-Event-ID", "0") == "0"

    def test_first_value_wins(self) -> None:
        assert _h(("X-A", "1"), ("x-a", "2"))["X-A"] == "1"

    def test_contains(self) -> None:
        h = _h(("Accept", "*/*"))
        assert "accept" in h
        assert "x-missing" not in h
        assert 42 not in h

    def test_pseudo_headers(self) -> None:
        h = _h((":path", "/events"), (":method", "GET"))
        assert h[":path"] == "/events"
        assert h[":method"] == "GET"

    def test_iter_and_len_deduplicate(self) -> None:
        h = _h(("X-A", "1"), ("x-a", "2"), ("Accept", "*/*"))
        assert list(h) == ["x-a", "accept"]
        assert len(h) == 2

    def test_repr(self) -> None:
        assert repr(_h(("Accept", "*/*"))) == "Headers({'accept': '*/*'})"


class TestResponseHeaders:
    def test_set_replaces_case_insensitively(self) -> None:
        headers = ResponseHeaders()
        headers.set("Cache-Control", "no-cache")
        headers.set("cache-control", "no-store")
        assert len(headers) == 1
        assert headers.get("Cache-Control") == "no-store"

    def test_update_keeps_order(self) -> None:
        headers = ResponseHeaders()
        headers.update({"Content-Type": "text/event-stream", "X-Accel-Buffering": "no"})
        assert headers.to_raw() == [
            (b"content-type", b"text/event-stream"),
            (b"x-accel-buffering", b"no"),
        ]

    def test_contains_and_default(self) -> None:
        headers = ResponseHeaders()
        headers.set("Connection", "keep-alive")
        assert "connection" in headers
        assert "Content-Type" not in headers
        assert headers.get("Content-Type", "text/plain") == "text/plain"
