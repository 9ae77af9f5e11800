"""
Password hashing (bcrypt) and JWT access tokens (python-jose).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from app.core.config import get_settings

settings = get_settings()

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Identity:
    """The authenticated caller as carried by the access token."""

    id: int
    role: str


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {**data, "iat": now, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_identity_token(user_id: int, role: str) -> str:
    return create_access_token(data={"sub": str(user_id), "role": role})


def decode_identity(token: str) -> Optional[Identity]:
    """Return the identity in a valid token, or None for anything else."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    role = payload.get("role")
    if subject is None or role is None:
        return None
    try:
        return Identity(id=int(subject), role=role)
    except (TypeError, ValueError):
        return None
