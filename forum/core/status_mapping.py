"""Status Mapper — turns a handler failure into an HTTP status and client body.

Invariants:
    - Switches on ErrorKind only, never parses exception text
    - Non-ApiError exceptions map to UnknownError (500)
    - Body is always {"error": <str>}; 5xx bodies are the fixed opaque "500"
"""

from dataclasses import dataclass

from forum.core.errors import ApiError, UnknownError

ERROR_KEY = "error"
OPAQUE_SERVER_ERROR = "500"


@dataclass(frozen=True)
class MappedError:
    """Client-facing outcome of a failed handler call."""
    status: int
    body: dict[str, str]
    error: ApiError


def as_api_error(exc: BaseException) -> ApiError:
    """Wrap anything that is not already tagged as an UnknownError."""
    if isinstance(exc, ApiError):
        return exc
    return UnknownError(internal_detail=f"{type(exc).__name__}: {exc}")


def public_text(error: ApiError) -> str:
    """Status code, plus the reason token for client-error kinds."""
    if error.is_server_side:
        return OPAQUE_SERVER_ERROR
    if error.reason:
        return f"{error.http_status} {error.reason}"
    return str(error.http_status)


def map_error(exc: BaseException) -> MappedError:
    error = as_api_error(exc)
    return MappedError(
        status=error.http_status,
        body={ERROR_KEY: public_text(error)},
        error=error,
    )


def opaque_server_error() -> dict[str, str]:
    return {ERROR_KEY: OPAQUE_SERVER_ERROR}
