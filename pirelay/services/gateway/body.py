"""Bounded JSON body reader."""

import json
from typing import Any

from starlette.requests import Request

from pirelay.common.errors import InvalidJSONBody, RequestBodyTooLarge


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON.
    raise ValueError(f"invalid JSON constant {name}")


async def read_json_body(request: Request, limit: int) -> Any:
    """Accumulate the request stream up to `limit` bytes and decode it as JSON.

    An empty body decodes to `{}`. Exceeding the limit stops reading before any
    parsing happens.
    """

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise RequestBodyTooLarge(limit)

    buf = bytearray()
    async for chunk in request.stream():
        buf.extend(chunk)
        if len(buf) > limit:
            raise RequestBodyTooLarge(limit)

    if not buf:
        return {}
    try:
        return json.loads(bytes(buf), parse_constant=_reject_constant)
    except ValueError as exc:
        raise InvalidJSONBody() from exc
