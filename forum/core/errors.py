"""Error Hierarchy — tagged exceptions that business handlers raise.

Invariants:
    - Every error carries a kind (ErrorKind); the HTTP status follows from the kind only
    - reason is a short machine-readable token safe to show to clients ("captcha")
    - internal_detail is for server-side logs and never leaves the process
    - Server-side kinds (UPSTREAM, UNKNOWN) never expose their reason to clients

Design Decisions:
    - Kind-tagged exceptions replace "status code in the error text" so a stray
      error message starting with a digit can never pick its own status
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Error classification, one per client-visible status family."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    UNKNOWN = "unknown"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 500,
    ErrorKind.UNKNOWN: 500,
}


class ApiError(Exception):
    """Base exception for failures raised by business handlers."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, reason: str = "", internal_detail: str | None = None):
        super().__init__(internal_detail or reason or self.kind.value)
        self.reason = reason
        self.internal_detail = internal_detail

    @property
    def http_status(self) -> int:
        return STATUS_BY_KIND[self.kind]

    @property
    def is_server_side(self) -> bool:
        return self.http_status >= 500


# ─── Client Errors (400-level) ───────────────────────────────────

class ValidationError(ApiError):
    """Missing or invalid input."""
    kind = ErrorKind.VALIDATION


class AuthorizationError(ApiError):
    """Caller is not authenticated or not allowed to do this."""
    kind = ErrorKind.AUTHORIZATION


class NotFoundError(ApiError):
    """Requested resource does not exist."""
    kind = ErrorKind.NOT_FOUND


# ─── Server Errors (500-level) ───────────────────────────────────

class UpstreamError(ApiError):
    """Data store or collaborator failure. Reason is never shown to clients."""
    kind = ErrorKind.UPSTREAM


class UnknownError(ApiError):
    """Anything that is not an ApiError, wrapped by the status mapper."""
    kind = ErrorKind.UNKNOWN
