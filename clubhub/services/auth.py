from __future__ import annotations
import datetime
import secrets

from fastapi import Request
from passlib.context import CryptContext

from .exceptions import Unauthenticated
from .. import storage
from ..config import get_token_ttl_hours
from ..models import utcnow

TOKEN_TTL = datetime.timedelta(hours=get_token_ttl_hours())
REFRESH_TOKEN_TTL = datetime.timedelta(days=30)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def check_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        return False


def issue_tokens(user_id: str) -> tuple[str, str]:
    """Create and persist a fresh ``(access_token, refresh_token)`` pair."""
    access_token = secrets.token_hex(16)
    refresh_token = secrets.token_hex(16)
    storage.insert_token(access_token, user_id)
    storage.insert_refresh_token(user_id, refresh_token, utcnow() + REFRESH_TOKEN_TTL)
    return access_token, refresh_token


def require_auth(authorization: str | None = None, request: Request | None = None) -> str:
    """Validate token from the ``Authorization`` header and return the user id."""

    header = authorization
    if request is not None and not header:
        header = request.headers.get("Authorization")

    if not header or not header.startswith("Bearer "):
        raise Unauthenticated("Unauthorized")

    token = header[7:]

    info = storage.get_token(token)
    if not info:
        raise Unauthenticated("Unauthorized")
    user_id, ts = info
    if utcnow() - ts > TOKEN_TTL:
        storage.delete_token(token)
        raise Unauthenticated("Token expired")
    return user_id
