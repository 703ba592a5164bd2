"""Static landing page."""

from pathlib import Path

from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from pirelay.common.logging import logger
from pirelay.services.gateway.responses import send_html, send_text


async def serve_index(path: Path) -> Response:
    """Read the page from disk on every request; 500 when it cannot be read."""

    try:
        content = await run_in_threadpool(path.read_bytes)
    except OSError as exc:
        logger.error("index_read_failed path=%s error=%s", path, exc)
        return send_text(500, "Failed to read index.html")
    return send_html(content)
