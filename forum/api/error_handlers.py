"""Error Handlers — app-level exception handlers for routes outside the dispatcher.

Invariants:
    - ApiError → {"error": "<status>[ <reason>]"} with the mapped status
    - Exception (catch-all) → {"error": "500"}, never leaks internal details
    - Same envelope as dispatcher responses, security headers included
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from forum.api.security_headers import apply_security_headers
from forum.core.errors import ApiError
from forum.core.status_mapping import map_error, opaque_server_error

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_api_error_handler(app)
    _register_generic_error_handler(app)


def _register_api_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        mapped = map_error(exc)
        log = logger.error if exc.is_server_side else logger.warning
        log(
            f"ApiError on {request.url.path}: {exc.internal_detail or exc.reason}",
            extra={"kind": exc.kind.value, "path": request.url.path},
        )
        response = JSONResponse(status_code=mapped.status, content=mapped.body)
        return apply_security_headers(response, request)


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        response = JSONResponse(status_code=500, content=opaque_server_error())
        return apply_security_headers(response, request)
