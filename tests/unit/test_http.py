from __future__ import annotations

import pytest
import requests

from lotto_ledger.common.http import (
    HtmlPayloadError,
    HttpClient,
    HttpRequestError,
    RetryableHttpError,
    RetryConfig,
    TimeoutConfig,
    looks_like_html,
)


class FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str | None = None, raises_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else "{}"
        self._raises_json = raises_json

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def _client(max_attempts: int = 1) -> HttpClient:
    return HttpClient(retry=RetryConfig(max_attempts=max_attempts, multiplier=0, max_wait=0))


def test_http_get_json_success(monkeypatch):
    client = _client()

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.get_json("https://example.com")

    assert payload == {"ok": True}


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = _client()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com")


def test_http_non_success_status_raises(monkeypatch):
    client = _client()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(404, {"x": 1}))

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com")


def test_http_invalid_json_raises(monkeypatch):
    client = _client()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, text="not-json", raises_json=True))

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com")


def test_http_html_body_is_rejected_before_json_parsing(monkeypatch):
    client = _client()
    response = FakeResponse(200, text="\n  <!DOCTYPE html><html>maintenance</html>", raises_json=True)
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: response)

    with pytest.raises(HtmlPayloadError):
        client.get_json("https://example.com")


def test_http_retries_transport_errors_with_escalating_timeout(monkeypatch):
    client = HttpClient(
        timeout=TimeoutConfig(connect=1, read=10, read_increment=5),
        retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0),
    )
    seen_timeouts = []

    def flaky(**kwargs):
        seen_timeouts.append(kwargs["timeout"])
        if len(seen_timeouts) < 3:
            raise requests.Timeout("slow mirror")
        return FakeResponse(200, {"ok": True})

    monkeypatch.setattr(client.session, "request", flaky)

    assert client.get_json("https://example.com") == {"ok": True}
    assert seen_timeouts == [(1, 10), (1, 15), (1, 20)]


def test_http_gives_up_after_retry_budget(monkeypatch):
    client = _client(max_attempts=2)
    calls = []

    def down(**kwargs):
        calls.append(kwargs)
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", down)

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com")
    assert len(calls) == 2


def test_looks_like_html():
    assert looks_like_html("<html>")
    assert looks_like_html("\ufeff <!doctype html>")
    assert not looks_like_html('{"a": 1}')
    assert not looks_like_html("")
