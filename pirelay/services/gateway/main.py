"""Public HTTP surface of the relay.

Serves the landing page and forwards approve/complete/cancel to the Pi API so
the server API key never reaches client code.
"""

from time import perf_counter
from typing import Any, Awaitable, Callable
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from pirelay.common.config import RelaySettings, load_settings
from pirelay.common.errors import ConfigurationError, RequestRejected, UpstreamError, UpstreamTimeout
from pirelay.common.logging import configure_logging, correlation_id_ctx, logger, payment_id_ctx
from pirelay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from pirelay.common.startup import log_startup_config
from pirelay.common.tracing import instrument_app, setup_tracing
from pirelay.services.gateway.body import read_json_body
from pirelay.services.gateway.responses import NoStoreJSONResponse, send_json
from pirelay.services.gateway.schemas import ErrorEnvelope, PaymentActionRequest
from pirelay.services.gateway.static import serve_index
from pirelay.services.pi_client.client import PiClient, PiPayments


STARTUP_KEYS = [
    "SERVICE_NAME",
    "PORT",
    "PI_API_BASE",
    "PI_SERVER_API_KEY",
    "PI_API_TIMEOUT_SECONDS",
    "MAX_BODY_BYTES",
]


def _failure(action: str, exc: Exception, status_code: int | None, response: Any) -> dict[str, Any]:
    return ErrorEnvelope(
        error=f"Pi API {action} failed",
        message=str(exc) or "Unknown error",
        status_code=status_code or None,
        response=response or None,
    ).as_body()


async def relay(action: str, call: Callable[[], Awaitable[Any]]) -> NoStoreJSONResponse:
    """Await one upstream call and map its outcome to an HTTP response."""

    try:
        result = await call()
    except ConfigurationError as exc:
        logger.error("relay_misconfigured action=%s error=%s", action, exc)
        return send_json(500, _failure(action, exc, 500, None))
    except UpstreamTimeout as exc:
        return send_json(504, _failure(action, exc, exc.status_code, exc.response))
    except UpstreamError as exc:
        return send_json(502, _failure(action, exc, exc.status_code, exc.response))
    return send_json(200, result)


def create_app(settings: RelaySettings | None = None, payments: PiPayments | None = None) -> FastAPI:
    """Build the relay app around explicit settings and an upstream client."""

    settings = settings or load_settings()
    payments = payments or PiClient(settings)

    configure_logging(settings.service_name, settings.log_level)
    setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
    log_startup_config(settings.service_name, STARTUP_KEYS)
    if not settings.api_key_configured:
        logger.error("PI_SERVER_API_KEY is not set; payment calls will fail with 500")

    app = FastAPI(
        title="Pi Payment Relay",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        default_response_class=NoStoreJSONResponse,
    )
    app.state.settings = settings
    app.state.payments = payments
    instrument_app(app)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Record request count and latency, and tag the request with a correlation id."""

        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        correlation_id = request.headers.get("x-correlation-id") or str(uuid4())
        token = correlation_id_ctx.set(correlation_id)
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            response.headers["X-Correlation-Id"] = correlation_id
            return response
        finally:
            correlation_id_ctx.reset(token)
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    @app.exception_handler(RequestRejected)
    async def rejected_handler(_: Request, exc: RequestRejected):
        logger.info("request_rejected reason=%s", exc.message)
        return send_json(exc.status_code, ErrorEnvelope(error=exc.message).as_body(), headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException):
        # Unknown paths and known paths with the wrong method look the same to callers.
        if exc.status_code in (404, 405):
            return send_json(404, ErrorEnvelope(error="Not found").as_body())
        return send_json(exc.status_code, ErrorEnvelope(error=str(exc.detail)).as_body())

    @app.exception_handler(Exception)
    async def unexpected_handler(_: Request, exc: Exception):
        logger.exception("unhandled_error error=%s", exc)
        return send_json(500, ErrorEnvelope(error="Internal server error").as_body())

    @app.get("/")
    @app.get("/index.html")
    async def index():
        """Landing page for the client app."""

        return await serve_index(settings.index_path)

    @app.post("/payment/approve")
    async def approve_payment(request: Request):
        """Approve a payment server-side once the client has created it."""

        body = await read_json_body(request, settings.max_body_bytes)
        req = PaymentActionRequest.from_body(body)
        payment_id_ctx.set(req.payment_id)
        return await relay("approve", lambda: payments.approve(req.payment_id))

    @app.post("/payment/complete")
    async def complete_payment(request: Request):
        """Complete a payment with the blockchain transaction id."""

        body = await read_json_body(request, settings.max_body_bytes)
        req = PaymentActionRequest.from_body(body, require_txid=True)
        payment_id_ctx.set(req.payment_id)
        return await relay("complete", lambda: payments.complete(req.payment_id, req.txid))

    @app.post("/payment/cancel")
    async def cancel_payment(request: Request):
        body = await read_json_body(request, settings.max_body_bytes)
        req = PaymentActionRequest.from_body(body)
        payment_id_ctx.set(req.payment_id)
        return await relay("cancel", lambda: payments.cancel(req.payment_id))

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    return app


def main() -> None:
    """Console entrypoint: refuse to boot without a key, then serve forever."""

    settings = load_settings()
    if not settings.api_key_configured:
        raise SystemExit("PI_SERVER_API_KEY is not set")
    app = create_app(settings)
    logger.info("server_listening url=http://localhost:%s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
