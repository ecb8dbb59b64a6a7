"""Data Delivery — gzip-streamed files under /data/ with traversal rejection.

Invariants:
    - Paths containing ".." (after repeated percent-decoding) get 400 + empty body,
      before any filesystem call
    - Aliases (data/avatar/default) are applied after sanitation
    - Bodies are streamed through a level-2 gzip compressor, never buffered whole
    - Files that cannot be opened: 404 (missing / not a file) or 500, empty body
    - Security headers on every response, including rejections
"""

import logging
import mimetypes
import zlib
from collections.abc import AsyncIterator
from pathlib import Path

import anyio
from fastapi import APIRouter, Request, Response
from fastapi.responses import StreamingResponse

from forum.api.security_headers import apply_security_headers
from forum.core.paths import is_safe_data_path, resolve_alias, resolve_under_root

logger = logging.getLogger(__name__)
router = APIRouter(tags=["data"])

DATA_PREFIX = "data/"
GZIP_LEVEL = 2
GZIP_WBITS = 16 + zlib.MAX_WBITS
CHUNK_SIZE = 64 * 1024
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed is None:
        return DEFAULT_CONTENT_TYPE
    if guessed.startswith("text/") or guessed in ("application/javascript", "application/json"):
        return f"{guessed}; charset=utf-8"
    return guessed


def _empty(request: Request, status_code: int) -> Response:
    return apply_security_headers(Response(status_code=status_code), request)


async def gzip_stream(handle, path: Path) -> AsyncIterator[bytes]:
    compressor = zlib.compressobj(GZIP_LEVEL, zlib.DEFLATED, GZIP_WBITS)
    try:
        while True:
            try:
                chunk = await handle.read(CHUNK_SIZE)
            except OSError as e:
                logger.error(f"Read failed for {path}: {e}")
                break
            if not chunk:
                break
            compressed = compressor.compress(chunk)
            if compressed:
                yield compressed
        yield compressor.flush()
    finally:
        await handle.aclose()


@router.get("/data/{requested:path}")
async def serve_data(request: Request, requested: str) -> Response:
    raw_path = request.scope.get("raw_path", b"").decode("latin-1")
    if not is_safe_data_path(requested) or not is_safe_data_path(raw_path):
        logger.warning(
            "Rejected data path traversal attempt", extra={"path": raw_path or requested},
        )
        return _empty(request, 400)

    relative = resolve_alias(DATA_PREFIX + requested)
    root: Path = request.app.state.static_root
    target = resolve_under_root(root, relative)
    if target is None:
        return _empty(request, 400)

    try:
        handle = await anyio.open_file(target, "rb")
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        return _empty(request, 404)
    except OSError as e:
        logger.error(f"Cannot open {target}: {e}", extra={"path": relative})
        return _empty(request, 500)

    response = StreamingResponse(
        gzip_stream(handle, target),
        headers={
            "Content-Type": content_type_for(target),
            "Content-Encoding": "gzip",
            "Vary": "Accept-Encoding",
        },
    )
    return apply_security_headers(response, request)
