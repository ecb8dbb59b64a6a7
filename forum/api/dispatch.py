"""Handler Registry & Generic Dispatcher — business functions as /api/ endpoints.

Invariants:
    - register(path, handler) binds "/api/" + path; later registration wins
    - The registry is frozen by mount(); register() afterwards raises RuntimeError
    - Order per request: decode → resolve identity → invoke → map status → encode → headers
    - No exception escapes the endpoint, except task cancellation from the transport
    - 5xx details are logged server-side only

Design Decisions:
    - The registry is a value owned by the app (app.state.registry), not a module global
    - Coroutine handlers are awaited; plain functions run in the threadpool
    - Every handler call is bounded by a timeout; expiry is an UpstreamError
"""

import asyncio
import inspect
import logging
from collections.abc import Mapping
from types import MappingProxyType

from fastapi import FastAPI, Request, Response
from starlette.concurrency import run_in_threadpool

from forum.api.auth import AuthenticationResolver
from forum.api.codec import decode_request, encode_error, encode_success
from forum.api.security_headers import apply_security_headers
from forum.core.errors import UpstreamError
from forum.core.identity import Handler, HandlerResult, Identity
from forum.core.request_map import RequestMap
from forum.core.status_mapping import map_error

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
API_METHODS = ["GET", "POST"]


class HandlerRegistry:
    """URL → business handler bindings, populated once at startup."""

    def __init__(self):
        self._bindings: dict[str, Handler] = {}
        self._frozen = False

    def register(self, path: str, handler: Handler) -> None:
        if self._frozen:
            raise RuntimeError(f"registry is frozen; cannot register {path!r}")
        url = API_PREFIX + path.lstrip("/")
        if url in self._bindings:
            logger.info(f"Handler for {url} replaced")
        self._bindings[url] = handler

    def register_all(self, handlers: Mapping[str, Handler]) -> None:
        for path, handler in handlers.items():
            self.register(path, handler)

    @property
    def bindings(self) -> Mapping[str, Handler]:
        return MappingProxyType(self._bindings)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, url: str) -> bool:
        return url in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def mount(
        self, app: FastAPI, resolver: AuthenticationResolver, timeout: float,
    ) -> None:
        """Add one route per binding to app and freeze the registry."""
        self._frozen = True
        for url, handler in self._bindings.items():
            app.add_api_route(
                url,
                generate_endpoint(handler, resolver, timeout),
                methods=API_METHODS,
                include_in_schema=False,
                name=url,
            )
        app.state.registry = self


async def invoke(
    handler: Handler, request_map: RequestMap, identity: Identity,
) -> HandlerResult:
    if inspect.iscoroutinefunction(handler):
        return await handler(request_map, identity.username, identity.authenticated)
    result = await run_in_threadpool(
        handler, request_map, identity.username, identity.authenticated,
    )
    if inspect.isawaitable(result):
        result = await result
    return result


def generate_endpoint(
    handler: Handler, resolver: AuthenticationResolver, timeout: float,
):
    """Wrap a business handler in the decode/auth/map/encode pipeline."""

    async def endpoint(request: Request) -> Response:
        path = request.url.path
        request_map = await decode_request(request)
        identity = resolver.resolve(request, request_map)
        try:
            result = await asyncio.wait_for(
                invoke(handler, request_map, identity), timeout,
            )
        except asyncio.TimeoutError:
            response = _error_response(
                UpstreamError("timeout", internal_detail=f"handler exceeded {timeout}s"),
                path, identity,
            )
        except Exception as exc:
            response = _error_response(exc, path, identity)
        else:
            response = encode_success(result, path)
        return apply_security_headers(response, request)

    endpoint.__name__ = getattr(handler, "__name__", "endpoint")
    return endpoint


def _error_response(exc: Exception, path: str, identity: Identity) -> Response:
    mapped = map_error(exc)
    extra = {
        "path": path,
        "status": mapped.status,
        "kind": mapped.error.kind.value,
        "username": identity.username or None,
    }
    if mapped.error.is_server_side:
        logger.error(
            f"Handler failed on {path}: {mapped.error.internal_detail or mapped.error}",
            extra=extra,
            exc_info=exc,
        )
    else:
        logger.info(f"Handler rejected request on {path}: {mapped.body['error']}", extra=extra)
    return encode_error(mapped)
