"""Shared fixtures: settings, a throwaway landing page and in-process clients."""

import json

import httpx
import pytest

from pirelay.common.config import RelaySettings


PI_BASE = "https://pi.test/v2"


@pytest.fixture
def index_file(tmp_path):
    path = tmp_path / "index.html"
    path.write_text("<!doctype html><title>relay</title>", encoding="utf-8")
    return path


@pytest.fixture
def settings(index_file):
    return RelaySettings(
        _env_file=None,
        pi_server_api_key="test-key",
        pi_api_base=PI_BASE,
        pi_api_timeout_seconds=2.0,
        index_path=index_file,
    )


@pytest.fixture
def make_client():
    """Return a factory for an httpx client bound to an ASGI app."""

    def _make(app, **transport_options) -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=app, **transport_options)
        return httpx.AsyncClient(transport=transport, base_url="http://relay.test")

    return _make


class Upstream:
    """Canned Pi API used through httpx.MockTransport; records every request."""

    def __init__(self, status_code: int = 200, body=None, text: str | None = None, exc: Exception | None = None):
        self.status_code = status_code
        self.body = body
        self.text = text
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        if self.body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, content=json.dumps(self.body).encode("utf-8"))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream():
    return Upstream()
