"""Account Handlers — registration, login, logout, password change.

Invariants:
    - Passwords are stored only as bcrypt hashes
    - register is idempotent per username: an existing username yields
      {"done": False} and no write
    - editpassword and logout require authenticated=True, checked before any DB access
    - login issues tokens through the same SessionStore the resolver reads
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from forum.config import get_settings
from forum.core.errors import AuthorizationError, ValidationError
from forum.core.request_map import RequestMap
from forum.infrastructure.captcha import get_captcha_store
from forum.infrastructure.database import require_db
from forum.infrastructure.passwords import hash_password, verify_password
from forum.infrastructure.sessions import get_session_store
from forum.models.user import MAX_USERNAME_LENGTH, User

logger = logging.getLogger(__name__)

# bcrypt ignores (or rejects) input past 72 bytes
MAX_PASSWORD_BYTES = 72


def _is_encodable(value: str) -> bool:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _check_username(username: str) -> None:
    if not username or len(username) > MAX_USERNAME_LENGTH or not _is_encodable(username):
        raise ValidationError()


def _check_password(password: str) -> None:
    if not password or not _is_encodable(password):
        raise ValidationError()
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError()


async def register(request: RequestMap, username: str, authenticated: bool) -> dict:
    password = request.get_string("password")
    _check_username(username)
    _check_password(password)

    if get_settings().https.captcha and not get_captcha_store().verify(
        request.get_string("captcha"), request.get_string("captchaValue"),
    ):
        raise AuthorizationError("captcha")

    async with require_db().session() as db:
        existing = await db.scalar(select(User.id).where(User.username == username))
        if existing is not None:
            return {"done": False}

        db.add(User(
            username=username,
            passwordhash=await hash_password(password),
            registered=datetime.now(timezone.utc),
        ))
        try:
            await db.commit()
        except IntegrityError:
            # lost a race against a concurrent registration of the same name
            await db.rollback()
            return {"done": False}

    logger.info("User registered", extra={"username": username})
    return {"done": True}


async def edit_password(request: RequestMap, username: str, authenticated: bool) -> dict:
    if not authenticated:
        raise AuthorizationError()
    new_password = request.get_string("newPassword")
    _check_password(new_password)

    password_hash = await hash_password(new_password)
    async with require_db().session() as db:
        await db.execute(
            update(User)
            .where(User.username == username)
            .values(passwordhash=password_hash),
        )
        await db.commit()
    return {"success": True}


async def login(request: RequestMap, username: str, authenticated: bool) -> dict:
    password = request.get_string("password")
    _check_username(username)
    _check_password(password)

    async with require_db().session() as db:
        password_hash = await db.scalar(
            select(User.passwordhash).where(User.username == username),
        )
    if password_hash is None or not await verify_password(password, password_hash):
        return {"valid": False}

    token = get_session_store().create(username)
    return {"valid": True, "token": token}


async def logout(request: RequestMap, username: str, authenticated: bool) -> dict:
    if not authenticated:
        raise AuthorizationError()
    token = request.get_string("token")
    if token:
        get_session_store().revoke(token)
    else:
        get_session_store().revoke_user(username)
    return {"done": True}


# ADR: every mapping explicit — adding an endpoint requires editing this dict
HANDLERS = {
    "register": register,
    "editpassword": edit_password,
    "login": login,
    "logout": logout,
}
