"""Password Hashing — bcrypt, run off the event loop."""

import asyncio

import bcrypt

from forum.config import get_settings


async def hash_password(password: str) -> str:
    rounds = get_settings().bcrypt_rounds
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = await asyncio.to_thread(bcrypt.hashpw, password.encode("utf-8"), salt)
    return hashed.decode("ascii")


async def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    return await asyncio.to_thread(
        bcrypt.checkpw, password.encode("utf-8"), password_hash.encode("ascii"),
    )
