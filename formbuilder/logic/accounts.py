"""User registration, login, preferences and admin account toggles."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from formbuilder.config import get_config
from formbuilder.db.base import utc_timestamp
from formbuilder.logic import repository_users as repo
from formbuilder.logic.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from formbuilder.logic.security import hash_password, issue_token, verify_password
from formbuilder.models.caller import CallerContext

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
LANGUAGES = ("en", "es", "ru", "de", "fr")
THEMES = ("light", "dark")


def public_user(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row.get("name"),
        "email": row.get("email"),
        "is_admin": bool(row.get("is_admin")),
        "blocked": bool(row.get("blocked")),
        "language": row.get("language") or "en",
        "theme": row.get("theme") or "light",
        "last_login_at": row.get("last_login_at"),
        "version": int(row.get("version") or 0),
        "created_at": row.get("created_at"),
    }


def normalize_email(email: Any) -> str:
    value = str(email or "").strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("A valid email is required", field="email")
    return value


def register(name: str, email: str, password: str, is_admin: bool = False, caller: Optional[CallerContext] = None) -> Dict[str, Any]:
    clean_name = str(name or "").strip()
    if not clean_name:
        raise ValidationError("Name is required", field="name")
    clean_email = normalize_email(email)
    if repo.email_exists(clean_email):
        raise ValidationError("User with this email already exists", field="email")
    grant_admin = bool(is_admin) and (get_config().auth.allow_admin_registration or (caller is not None and caller.is_admin))
    if is_admin and not grant_admin:
        logger.info("auth.register.admin_flag_ignored email=%s", clean_email)

    now = utc_timestamp()
    user_id = str(uuid.uuid4())
    inserted = repo.insert_user(
        {
            "id": user_id,
            "name": clean_name,
            "email": clean_email,
            "password_hash": hash_password(password),
            "is_admin": grant_admin,
            "blocked": False,
            "language": "en",
            "theme": "light",
            "last_login_at": None,
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
    )
    if not inserted:
        raise ValidationError("User with this email already exists", field="email")
    user = repo.get_user(user_id) or {}
    logger.info("auth.registered id=%s admin=%s", user_id, grant_admin)
    return {"token": issue_token(user), "user": public_user(user)}


def login(email: str, password: str) -> Dict[str, Any]:
    row = repo.get_user_with_password(str(email or "").strip().lower())
    if row is None or not verify_password(str(password or ""), row.get("password_hash") or ""):
        logger.info("auth.login.failed")
        raise AuthenticationError("Invalid email or password")
    if row.get("blocked"):
        raise AuthorizationError("This account has been blocked")
    repo.touch_last_login(row["id"], utc_timestamp())
    user = repo.get_user(row["id"]) or row
    return {"token": issue_token(user), "user": public_user(user)}


def resolve_caller(user_id: str) -> CallerContext:
    """Reload the token's user so blocks and role changes apply immediately."""
    row = repo.get_user(user_id)
    if row is None:
        raise AuthenticationError("User no longer exists")
    if row.get("blocked"):
        raise AuthorizationError("This account has been blocked")
    return CallerContext(user_id=str(row["id"]), is_admin=bool(row.get("is_admin")))


def get_profile(user_id: str) -> Dict[str, Any]:
    row = repo.get_user(user_id)
    if row is None:
        raise NotFoundError("User not found")
    return public_user(row)


def update_preferences(caller: CallerContext, language: Optional[str] = None, theme: Optional[str] = None) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if language is not None:
        if language not in LANGUAGES:
            raise ValidationError(f"language must be one of {', '.join(LANGUAGES)}", field="language")
        values["language"] = language
    if theme is not None:
        if theme not in THEMES:
            raise ValidationError(f"theme must be one of {', '.join(THEMES)}", field="theme")
        values["theme"] = theme
    if not repo.update_user_fields(caller.user_id, values, utc_timestamp()):
        raise NotFoundError("User not found")
    return get_profile(caller.user_id)


def list_users() -> List[Dict[str, Any]]:
    return [public_user(r) for r in repo.list_users()]


def _toggle(user_id: str, caller: CallerContext, column: str) -> Dict[str, Any]:
    row = repo.get_user(user_id)
    if row is None:
        raise NotFoundError("User not found")
    if not caller.is_admin:
        raise AuthorizationError("Admin access required")
    if str(user_id) == caller.user_id:
        raise ValidationError(f"Admins cannot change their own {column.replace('is_', '')} status", field=column)
    new_value = not bool(row.get(column))
    repo.update_user_fields(user_id, {column: new_value}, utc_timestamp())
    logger.info("admin.user.%s id=%s value=%s by=%s", column, user_id, new_value, caller.user_id)
    return get_profile(user_id)


def toggle_block(user_id: str, caller: CallerContext) -> Dict[str, Any]:
    return _toggle(user_id, caller, "blocked")


def toggle_admin(user_id: str, caller: CallerContext) -> Dict[str, Any]:
    return _toggle(user_id, caller, "is_admin")


__all__ = [
    "get_profile",
    "list_users",
    "login",
    "normalize_email",
    "public_user",
    "register",
    "resolve_caller",
    "toggle_admin",
    "toggle_block",
    "update_preferences",
]
