# auth.py

"""Bearer token checks for the admin print routes.

Tokens are issued by the admin login flow elsewhere in the platform; this
module only signs (for tooling and tests) and verifies them.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from config import get_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 15

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/login")


class User(BaseModel):
    """Authenticated staff member with an associated role."""

    username: str
    role: str


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT containing the provided claims."""

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, get_settings().secret_key, algorithm=ALGORITHM)


def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    """Resolve the user from a bearer token or raise ``HTTPException``."""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        raise credentials_exception
    username = payload.get("sub")
    role = payload.get("role")
    if username is None or role is None:
        raise credentials_exception
    return User(username=username, role=role)


def role_required(*roles: str):
    """Dependency factory enforcing that the current user has one of ``roles``.

    Without explicit ``roles`` the configured ``admin_roles`` apply.
    """

    def dependency(request: Request, user: User = Depends(get_current_user)) -> User:
        settings = getattr(request.app.state, "settings", None) or get_settings()
        allowed = roles or tuple(settings.admin_roles)
        if user.role not in allowed:
            logger.warning("user %s with role %s denied", user.username, user.role)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient privileges"
            )
        return user

    return dependency
