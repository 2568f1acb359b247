"""Password hashing with bcrypt."""

from __future__ import annotations

import bcrypt

DEFAULT_COST = 10
_MAX_PASSWORD_BYTES = 72


def new_from_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password``.

    Raises ValueError if the password is longer than bcrypt accepts.
    """
    secret_bytes = password.encode("utf-8")
    if len(secret_bytes) > _MAX_PASSWORD_BYTES:
        raise ValueError("password length exceeds 72 bytes")
    return bcrypt.hashpw(secret_bytes, bcrypt.gensalt(rounds=DEFAULT_COST)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if ``password`` matches ``password_hash``."""
    secret_bytes = password.encode("utf-8")
    if len(secret_bytes) > _MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(secret_bytes, password_hash.encode("utf-8"))
    except ValueError:
        return False