"""Response helpers: every answer is marked uncacheable."""

from typing import Any

from starlette.responses import HTMLResponse, JSONResponse, PlainTextResponse


NO_STORE = {"Cache-Control": "no-store"}


class NoStoreJSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"

    def __init__(self, content: Any, status_code: int = 200, headers: dict[str, str] | None = None, **kwargs) -> None:
        super().__init__(content, status_code=status_code, headers={**NO_STORE, **(headers or {})}, **kwargs)


def send_json(status_code: int, payload: Any, headers: dict[str, str] | None = None) -> NoStoreJSONResponse:
    return NoStoreJSONResponse(payload, status_code=status_code, headers=headers)


def send_text(status_code: int, text: str) -> PlainTextResponse:
    return PlainTextResponse(text, status_code=status_code, headers=NO_STORE)


def send_html(content: bytes) -> HTMLResponse:
    return HTMLResponse(content, status_code=200, headers=NO_STORE)
