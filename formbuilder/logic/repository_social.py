"""Comment and like data access helpers."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.exc import IntegrityError

from formbuilder.db.base import get_engine

logger = logging.getLogger(__name__)


# -- comments ---------------------------------------------------------------

def insert_comment(row: Dict[str, Any]) -> None:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    "INSERT INTO comments (id, template_id, user_id, content, version, created_at, updated_at) "
                    "VALUES (:id, :template_id, :user_id, :content, :version, :created_at, :updated_at)"
                ),
                row,
            )
    except Exception:
        logger.error("insert_comment failed template_id=%s", row.get("template_id"), exc_info=True)
        raise


def get_comment_row(comment_id: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(
                "SELECT c.id, c.template_id, c.user_id, c.content, c.version, c.created_at, c.updated_at, "
                "u.name AS user_name, t.owner_id AS template_owner_id "
                "FROM comments c "
                "LEFT JOIN users u ON u.id = c.user_id "
                "LEFT JOIN templates t ON t.id = c.template_id "
                "WHERE c.id = :id"
            ),
            {"id": str(comment_id)},
        ).mappings().fetchone()
    return dict(row) if row else None


def list_comments_for_template(template_id: str) -> List[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                "SELECT c.id, c.template_id, c.user_id, c.content, c.version, c.created_at, c.updated_at, "
                "u.name AS user_name "
                "FROM comments c LEFT JOIN users u ON u.id = c.user_id "
                "WHERE c.template_id = :tid ORDER BY c.created_at ASC, c.id ASC"
            ),
            {"tid": str(template_id)},
        ).mappings().all()
    return [dict(r) for r in rows]


def delete_comment_if_version(comment_id: str, expected_version: int) -> bool:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text("DELETE FROM comments WHERE id = :id AND version = :expected"),
                {"id": str(comment_id), "expected": int(expected_version)},
            )
            return int(result.rowcount or 0) == 1
    except Exception:
        logger.error("delete_comment_if_version failed id=%s", comment_id, exc_info=True)
        raise


def count_comments(owner_id: Optional[str] = None) -> int:
    if owner_id is None:
        sql, params = "SELECT COUNT(*) FROM comments", {}
    else:
        sql = "SELECT COUNT(*) FROM comments c JOIN templates t ON t.id = c.template_id WHERE t.owner_id = :owner"
        params = {"owner": str(owner_id)}
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(sql_text(sql), params).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


# -- likes ------------------------------------------------------------------

def find_like(template_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(
                "SELECT id, template_id, user_id, created_at FROM likes WHERE template_id = :tid AND user_id = :uid"
            ),
            {"tid": str(template_id), "uid": str(user_id)},
        ).mappings().fetchone()
    return dict(row) if row else None


def insert_like(row: Dict[str, Any]) -> bool:
    """Insert a like; returns False when the (template, user) pair already exists."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    "INSERT INTO likes (id, template_id, user_id, created_at) "
                    "VALUES (:id, :template_id, :user_id, :created_at)"
                ),
                row,
            )
        return True
    except IntegrityError:
        logger.info("insert_like duplicate template_id=%s user_id=%s", row.get("template_id"), row.get("user_id"))
        return False


def delete_like(template_id: str, user_id: str) -> bool:
    eng = get_engine()
    with eng.begin() as conn:
        result = conn.execute(
            sql_text("DELETE FROM likes WHERE template_id = :tid AND user_id = :uid"),
            {"tid": str(template_id), "uid": str(user_id)},
        )
        return int(result.rowcount or 0) > 0


def list_likes_for_template(template_id: str) -> List[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                "SELECT id, template_id, user_id, created_at FROM likes "
                "WHERE template_id = :tid ORDER BY created_at ASC, id ASC"
            ),
            {"tid": str(template_id)},
        ).mappings().all()
    return [dict(r) for r in rows]


def count_likes(*, template_id: Optional[str] = None, owner_id: Optional[str] = None) -> int:
    if template_id is not None:
        sql, params = "SELECT COUNT(*) FROM likes WHERE template_id = :tid", {"tid": str(template_id)}
    elif owner_id is not None:
        sql = "SELECT COUNT(*) FROM likes l JOIN templates t ON t.id = l.template_id WHERE t.owner_id = :owner"
        params = {"owner": str(owner_id)}
    else:
        sql, params = "SELECT COUNT(*) FROM likes", {}
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(sql_text(sql), params).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


__all__ = [
    "count_comments",
    "count_likes",
    "delete_comment_if_version",
    "delete_like",
    "find_like",
    "get_comment_row",
    "insert_comment",
    "insert_like",
    "list_comments_for_template",
    "list_likes_for_template",
]
