"""Request Codec — request body → RequestMap, handler mapping → JSON response.

Invariants:
    - decode_request never raises for bad bodies; it returns an empty RequestMap
    - Success bodies are JSON objects with status 200
    - A payload that cannot be serialized becomes the opaque 500 body, and is logged
"""

import logging
from collections.abc import Mapping

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from forum.core.request_map import RequestMap
from forum.core.status_mapping import MappedError, opaque_server_error

logger = logging.getLogger(__name__)


async def decode_request(request: Request) -> RequestMap:
    try:
        body = await request.body()
    except ClientDisconnect:
        return RequestMap()
    return RequestMap.from_body(body)


def encode_success(payload: Mapping, path: str = "") -> JSONResponse:
    if not isinstance(payload, Mapping):
        logger.error(
            f"Handler returned {type(payload).__name__}, expected a mapping",
            extra={"path": path},
        )
        return JSONResponse(status_code=500, content=opaque_server_error())
    try:
        return JSONResponse(status_code=200, content=dict(payload))
    except (TypeError, ValueError) as e:
        logger.error(
            f"Failed to encode handler result: {e}", extra={"path": path},
        )
        return JSONResponse(status_code=500, content=opaque_server_error())


def encode_error(mapped: MappedError) -> JSONResponse:
    return JSONResponse(status_code=mapped.status, content=mapped.body)
