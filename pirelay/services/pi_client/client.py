"""Authenticated client for the Pi Network payments API.

One call per invocation, no retries. Anything outside 2xx becomes an
`UpstreamError` carrying the upstream status and body for diagnostics.
"""

import asyncio
import json
from time import perf_counter
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from pirelay.common.config import RelaySettings
from pirelay.common.errors import ConfigurationError, UpstreamError, UpstreamTimeout
from pirelay.common.logging import logger
from pirelay.common.metrics import pi_api_latency_seconds, pi_api_requests_total


# Characters encodeURIComponent leaves alone on top of quote()'s "_.-~".
SEGMENT_SAFE = "!*'()"


class PiPayments(Protocol):
    """Payment actions the gateway relays upstream."""

    async def approve(self, payment_id: str) -> Any: ...

    async def complete(self, payment_id: str, txid: str) -> Any: ...

    async def cancel(self, payment_id: str) -> Any: ...


def encode_segment(value: str) -> str:
    """Percent-encode `value` so it stays a single path segment."""

    encoded = quote(value, safe=SEGMENT_SAFE)
    if encoded and set(encoded) == {"."}:
        # "." and ".." would be collapsed by URL normalization.
        encoded = encoded.replace(".", "%2E")
    return encoded


def payment_path(payment_id: str, action: str) -> str:
    return f"/payments/{encode_segment(payment_id)}/{action}"


def parse_body(text: str) -> Any:
    """JSON-decode an upstream body, falling back to the raw text."""

    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def describe(parsed: Any) -> str:
    if isinstance(parsed, str):
        return parsed
    return json.dumps(parsed, separators=(",", ":"), ensure_ascii=False)


class PiClient:
    """Relays approve/complete/cancel to `{PI_API_BASE}/payments/{id}/...`."""

    def __init__(
        self,
        settings: RelaySettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.base_url = settings.pi_api_base.rstrip("/")
        self.timeout = settings.pi_api_timeout_seconds
        self.transport = transport

    def _headers(self, body: bytes) -> dict[str, str]:
        return {
            "Authorization": f"Key {self.settings.pi_server_api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        }

    def _record(self, action: str, outcome: str, start: float) -> None:
        service = self.settings.service_name
        pi_api_latency_seconds.labels(service=service, action=action).observe(max(0.0, perf_counter() - start))
        pi_api_requests_total.labels(service=service, action=action, outcome=outcome).inc()

    async def _send(self, method: str, url: str, content: bytes) -> httpx.Response:
        # httpx applies the timeout per phase; the caller bounds the whole exchange.
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.request(method, url, content=content, headers=self._headers(content))

    async def call(self, method: str, path: str, body: dict[str, Any] | None = None, action: str = "call") -> Any:
        """Issue one request and return the parsed upstream result."""

        if not self.settings.api_key_configured:
            raise ConfigurationError("PI_SERVER_API_KEY is not set")

        content = json.dumps(body).encode("utf-8") if body else b""
        url = f"{self.base_url}{path}"
        start = perf_counter()
        try:
            resp = await asyncio.wait_for(self._send(method, url, content), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            self._record(action, "timeout", start)
            logger.error("pi_api_timeout action=%s timeout=%s", action, self.timeout)
            raise UpstreamTimeout(f"Pi API did not respond within {self.timeout:g} seconds") from exc
        except httpx.HTTPError as exc:
            self._record(action, "transport_error", start)
            logger.error("pi_api_transport_error action=%s error=%s", action, exc)
            raise UpstreamError(str(exc) or "Unknown error") from exc

        parsed = parse_body(resp.text)
        if 200 <= resp.status_code < 300:
            self._record(action, "success", start)
            logger.info("pi_api_call action=%s status_code=%s", action, resp.status_code)
            return parsed

        self._record(action, "rejected", start)
        logger.warning("pi_api_rejected action=%s status_code=%s", action, resp.status_code)
        raise UpstreamError(describe(parsed), status_code=resp.status_code, response=parsed)

    async def approve(self, payment_id: str) -> Any:
        return await self.call("POST", payment_path(payment_id, "approve"), None, action="approve")

    async def complete(self, payment_id: str, txid: str) -> Any:
        return await self.call("POST", payment_path(payment_id, "complete"), {"txid": txid}, action="complete")

    async def cancel(self, payment_id: str) -> Any:
        return await self.call("POST", payment_path(payment_id, "cancel"), None, action="cancel")
