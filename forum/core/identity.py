"""Identity & Handler Contract — what every business handler receives and returns.

Invariants:
    - Identity is computed per request and never cached across requests
    - authenticated=False means username is at most client-asserted: never authorize on it
    - A handler returns a JSON-serializable mapping or raises ApiError

Handler contract:
    handler(request_map, username, authenticated) -> mapping

    Handlers may be coroutine functions or plain functions (run in a worker
    thread). Requests dispatch concurrently, so handlers must be reentrant;
    any shared resource a handler touches (DB pool, session store) provides
    its own concurrency safety.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from forum.core.request_map import RequestMap


@dataclass(frozen=True)
class Identity:
    username: str = ""
    authenticated: bool = False


HandlerResult = Mapping[str, Any]

Handler = Callable[
    [RequestMap, str, bool],
    Union[HandlerResult, Awaitable[HandlerResult]],
]
