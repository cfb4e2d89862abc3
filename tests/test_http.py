import pytest
import requests
from tenacity import wait_none

from catalog_feed.common import http


class DummyResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self._payload


def _session(monkeypatch, responses):
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append(kwargs)
        return responses.pop(0)

    monkeypatch.setattr(http.SESSION, "request", fake_request)
    return calls


def test_transient_errors_are_retried(monkeypatch):
    calls = _session(monkeypatch, [DummyResponse(503), DummyResponse(429), DummyResponse(200, {"ok": 1})])
    resp = http.request.retry_with(wait=wait_none())("GET", "https://api.example.com/x")
    assert resp.json() == {"ok": 1}
    assert len(calls) == 3


def test_client_errors_are_not_retried(monkeypatch):
    calls = _session(monkeypatch, [DummyResponse(404), DummyResponse(200)])
    with pytest.raises(requests.HTTPError):
        http.request.retry_with(wait=wait_none())("GET", "https://api.example.com/x")
    assert len(calls) == 1


def test_get_json_passes_request_options(monkeypatch):
    calls = _session(monkeypatch, [DummyResponse(200, {"hits": []})])
    headers = {"Authorization": "Bearer t0k"}
    assert http.get_json("https://api.example.com/x", params={"a": 1}, headers=headers) == {"hits": []}
    assert calls[0]["headers"] == headers
    assert calls[0]["params"] == {"a": 1}
