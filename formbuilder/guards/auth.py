"""Bearer-token dependencies that resolve the calling user.

``get_caller`` demands a valid token; ``get_optional_caller`` lets anonymous
requests through for publicly readable routes; ``require_admin`` gates the
admin surface. The user row is reloaded on every request so blocking or
demoting an account takes effect before its token expires.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from formbuilder.logic.accounts import resolve_caller
from formbuilder.logic.errors import AuthenticationError, AuthorizationError
from formbuilder.logic.security import decode_token
from formbuilder.models.caller import CallerContext

_bearer = HTTPBearer(auto_error=False)


def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[CallerContext]:
    if credentials is None or not credentials.credentials:
        return None
    claims = decode_token(credentials.credentials)
    return resolve_caller(str(claims["sub"]))


def get_caller(caller: Optional[CallerContext] = Depends(get_optional_caller)) -> CallerContext:
    if caller is None:
        raise AuthenticationError("Authentication required")
    return caller


def require_admin(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    if not caller.is_admin:
        raise AuthorizationError("Admin access required")
    return caller


__all__ = ["get_caller", "get_optional_caller", "require_admin"]
