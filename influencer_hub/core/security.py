from __future__ import annotations
import logging
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from jose import jwt, JWTError
from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher
from pydantic import ValidationError as PydanticValidationError

from .config import settings
from .exceptions import DownstreamError
from .. import schemas

logger = logging.getLogger(__name__)

password_hash = PasswordHash((BcryptHasher(rounds=settings.PASSWORD_HASH_ROUNDS),))

BEARER_PREFIX = "Bearer "


def verify_password(plain_password: str, password: str) -> bool:
    try:
        return password_hash.verify(plain_password, password)
    except Exception as exc:
        logger.exception("Password verification failed")
        raise DownstreamError("Internal server error") from exc


def get_password_hash(password: str) -> str:
    try:
        return password_hash.hash(password)
    except Exception as exc:
        logger.exception("Password hashing failed")
        raise DownstreamError("Internal server error") from exc


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash compared against when no account matches, so failed logins cost the same."""
    return get_password_hash(secrets.token_urlsafe(16))


def _encode_token(data: dict, expires_delta: timedelta) -> str:
    issued_at = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
    })
    try:
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    except JWTError as exc:
        logger.exception("Token signing failed")
        raise DownstreamError("Internal server error") from exc


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode_token(data, expires_delta)


def create_refresh_token(data: dict, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode_token(data, expires_delta)


def verify_token(token: Optional[str]) -> Optional[schemas.TokenPayload]:
    """Decode a signed token.

    Returns None for anything that is not a well-formed, correctly signed,
    unexpired token carrying a known role. Never raises.
    """
    if not token:
        return None
    try:
        claims = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require_exp": True, "require_iat": True},
        )
        return schemas.TokenPayload.model_validate(claims)
    except (JWTError, PydanticValidationError, TypeError, ValueError):
        return None


def extract_token_from_header(auth_header: Optional[str]) -> Optional[str]:
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    return auth_header[len(BEARER_PREFIX):].strip() or None


def issue_token_pair(user_id: str, email: str, role: str) -> dict:
    claims = {"userId": user_id, "email": email, "role": role}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
    }
