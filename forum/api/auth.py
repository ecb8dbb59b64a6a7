"""Authentication Resolver — derives (username, authenticated) from session evidence.

Invariants:
    - Never raises; missing or invalid evidence yields authenticated=False
    - Read-only on the session store
    - Evidence: "token" in the JSON body, else the session cookie
    - A body "username" that differs from the session's owner is not authenticated
"""

from fastapi import Request

from forum.core.identity import Identity
from forum.core.request_map import RequestMap
from forum.infrastructure.sessions import SessionStore

TOKEN_KEY = "token"
USERNAME_KEY = "username"


class AuthenticationResolver:
    def __init__(self, store: SessionStore, cookie_name: str):
        self._store = store
        self._cookie_name = cookie_name

    def session_token(self, request: Request, request_map: RequestMap) -> str:
        return (
            request_map.get_string(TOKEN_KEY)
            or request.cookies.get(self._cookie_name, "")
        )

    def resolve(self, request: Request, request_map: RequestMap) -> Identity:
        asserted = request_map.get_string(USERNAME_KEY)
        owner = self._store.resolve(self.session_token(request, request_map))
        if owner is None:
            return Identity(asserted, False)
        if asserted and asserted != owner:
            return Identity(asserted, False)
        return Identity(owner, True)
