"""Session Store — opaque bearer tokens mapped to usernames, in process memory.

Invariants:
    - Tokens are URL-safe random strings; only their SHA-256 digest is stored
    - Any str is a well-formed lookup key (lone surrogates included); a token
      that was never issued simply does not resolve
    - resolve() is read-only: it never creates, extends, or deletes sessions
      (expired entries are skipped, and pruned on the next create())
    - All access goes through one lock; safe for concurrent handlers and threads

Design Decisions:
    - In-memory store: single-process uvicorn, sessions lost on restart
"""

import hashlib
import secrets
import threading
import time
from dataclasses import dataclass
from functools import lru_cache

from forum.config import get_settings

TOKEN_BYTES = 32


@dataclass(frozen=True)
class SessionEntry:
    username: str
    expires_at: float


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8", "surrogatepass")).hexdigest()


class SessionStore:
    """Token → username map with expiry."""

    def __init__(self, ttl_seconds: int, clock=time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, SessionEntry] = {}
        self._lock = threading.Lock()

    def create(self, username: str) -> str:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        now = self._clock()
        with self._lock:
            self._prune(now)
            self._entries[_digest(token)] = SessionEntry(username, now + self._ttl)
        return token

    def resolve(self, token: str) -> str | None:
        """Username owning token, or None when unknown or expired."""
        if not token:
            return None
        with self._lock:
            entry = self._entries.get(_digest(token))
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry.username

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._entries.pop(_digest(token), None) is not None

    def revoke_user(self, username: str) -> int:
        with self._lock:
            doomed = [k for k, e in self._entries.items() if e.username == username]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _prune(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore(get_settings().session_ttl_seconds)
