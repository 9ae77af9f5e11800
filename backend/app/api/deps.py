"""
Identity dependencies.

`get_optional_identity` never fails: a missing or unusable bearer token
simply means an anonymous caller. Services decide whether that is allowed,
which keeps their own check order intact. `get_current_identity` is for
routes where nothing makes sense without a signed-in user.
"""

from typing import Optional

import structlog
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.core.errors import Unauthenticated
from app.core.security import Identity, decode_identity

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_optional_identity(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[Identity]:
    if not token:
        return None
    identity = decode_identity(token)
    if identity is not None:
        structlog.contextvars.bind_contextvars(user_id=identity.id)
    return identity


async def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity
