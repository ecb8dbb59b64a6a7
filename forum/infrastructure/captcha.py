"""Captcha Store — one-shot challenges checked by registration.

Invariants:
    - A challenge verifies at most once; a failed attempt also consumes it
    - Comparison is case-insensitive and constant-time
    - Any answer string is comparable (non-ASCII, lone surrogates); a mismatch is False

Feeding the store:
    The captcha image service is an external collaborator. For each challenge
    it renders, it calls get_captcha_store().issue() in this process, draws the
    returned solution, and hands the captcha_id to the client, which sends it
    back as "captcha" next to its "captchaValue" answer. Without such a service
    in the process, https.captcha must stay false: every registration would
    otherwise be refused with "403 captcha".
"""

import hmac
import secrets
import string
import threading
from functools import lru_cache

ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_LENGTH = 6


class CaptchaStore:
    def __init__(self):
        self._solutions: dict[str, str] = {}
        self._lock = threading.Lock()

    def issue(self, length: int = DEFAULT_LENGTH) -> tuple[str, str]:
        """Create a challenge; returns (captcha_id, solution)."""
        captcha_id = secrets.token_urlsafe(16)
        solution = "".join(secrets.choice(ALPHABET) for _ in range(length))
        with self._lock:
            self._solutions[captcha_id] = solution
        return captcha_id, solution

    def verify(self, captcha_id: str, value: str) -> bool:
        if not captcha_id:
            return False
        with self._lock:
            solution = self._solutions.pop(captcha_id, None)
        if solution is None or not value:
            return False
        return hmac.compare_digest(
            solution.upper().encode("utf-8"),
            value.strip().upper().encode("utf-8", "surrogatepass"),
        )


@lru_cache
def get_captcha_store() -> CaptchaStore:
    return CaptchaStore()
