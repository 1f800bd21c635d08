"""User data access helpers."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.exc import IntegrityError

from formbuilder.db.base import get_engine

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = "id, name, email, is_admin, blocked, language, theme, last_login_at, version, created_at, updated_at"


def insert_user(row: Dict[str, Any]) -> bool:
    """Insert a user; returns False when the email is already taken."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO users (
                        id, name, email, password_hash, is_admin, blocked, language, theme,
                        last_login_at, version, created_at, updated_at
                    ) VALUES (
                        :id, :name, :email, :password_hash, :is_admin, :blocked, :language, :theme,
                        :last_login_at, :version, :created_at, :updated_at
                    )
                    """
                ),
                row,
            )
        return True
    except IntegrityError:
        logger.info("insert_user duplicate email=%s", row.get("email"))
        return False
    except Exception:
        logger.error("insert_user failed email=%s", row.get("email"), exc_info=True)
        raise


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = :id"), {"id": str(user_id)}
        ).mappings().fetchone()
    return dict(row) if row else None


def get_user_with_password(email: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_PUBLIC_COLUMNS}, password_hash FROM users WHERE LOWER(email) = :email"),
            {"email": str(email).strip().lower()},
        ).mappings().fetchone()
    return dict(row) if row else None


def email_exists(email: str) -> bool:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text("SELECT 1 FROM users WHERE LOWER(email) = :email"), {"email": str(email).strip().lower()}
        ).fetchone()
    return row is not None


def list_users(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = f"SELECT {_PUBLIC_COLUMNS} FROM users ORDER BY created_at DESC, id ASC"
    params: Dict[str, Any] = {}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def count_users(admins_only: bool = False) -> int:
    sql = "SELECT COUNT(*) FROM users"
    params: Dict[str, Any] = {}
    if admins_only:
        sql += " WHERE is_admin = :adm"
        params["adm"] = True
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(sql_text(sql), params).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def update_user_fields(user_id: str, values: Dict[str, Any], updated_at: str) -> bool:
    """Write ``values`` and bump the user's version; returns False when the user is gone."""
    allowed = ("language", "theme", "blocked", "is_admin", "last_login_at")
    params = {k: values[k] for k in allowed if k in values}
    if not params:
        return get_user(user_id) is not None
    assignments = ", ".join(f"{k} = :{k}" for k in params)
    params.update({"id": str(user_id), "updated_at": updated_at})
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text(
                    f"UPDATE users SET {assignments}, version = version + 1, updated_at = :updated_at WHERE id = :id"
                ),
                params,
            )
            return int(result.rowcount or 0) == 1
    except Exception:
        logger.error("update_user_fields failed id=%s", user_id, exc_info=True)
        raise


def touch_last_login(user_id: str, at: str) -> None:
    eng = get_engine()
    with eng.begin() as conn:
        conn.execute(sql_text("UPDATE users SET last_login_at = :at WHERE id = :id"), {"at": at, "id": str(user_id)})


__all__ = [
    "count_users",
    "email_exists",
    "get_user",
    "get_user_with_password",
    "insert_user",
    "list_users",
    "touch_last_login",
    "update_user_fields",
]
