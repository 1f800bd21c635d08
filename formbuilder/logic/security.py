"""Password hashing and bearer token helpers."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from formbuilder.config import get_config
from formbuilder.logic.errors import AuthenticationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    rounds = get_config().auth.bcrypt_rounds
    hashed = bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], hashed.encode("utf-8"))
    except ValueError:
        logger.warning("security.password_hash_malformed")
        return False


def issue_token(user: Dict[str, Any]) -> str:
    cfg = get_config().auth
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user["id"]),
        "email": user.get("email"),
        "is_admin": bool(user.get("is_admin")),
        "iat": now,
        "exp": now + timedelta(minutes=cfg.token_ttl_minutes),
    }
    return jwt.encode(claims, cfg.jwt_secret, algorithm=cfg.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    cfg = get_config().auth
    try:
        claims = jwt.decode(token, cfg.jwt_secret, algorithms=[cfg.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Could not validate credentials")
    if not claims.get("sub"):
        raise AuthenticationError("Could not validate credentials")
    return claims


__all__ = ["decode_token", "hash_password", "issue_token", "verify_password"]
