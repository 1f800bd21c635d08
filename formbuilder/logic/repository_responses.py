"""Form response data access helpers."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text

from formbuilder.db.base import get_engine

logger = logging.getLogger(__name__)

_COLUMNS = (
    "r.id, r.template_id, r.user_id, r.answers, r.score, r.total_possible_points, "
    "r.score_viewed, r.version, r.created_at, r.updated_at"
)
_JOINED = (
    f"SELECT {_COLUMNS}, t.title AS template_title, t.owner_id AS template_owner_id, u.name AS user_name "
    "FROM form_responses r "
    "LEFT JOIN templates t ON t.id = r.template_id "
    "LEFT JOIN users u ON u.id = r.user_id"
)


def insert_response(row: Dict[str, Any]) -> None:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO form_responses (
                        id, template_id, user_id, answers, score, total_possible_points,
                        score_viewed, version, created_at, updated_at
                    ) VALUES (
                        :id, :template_id, :user_id, :answers, :score, :total_possible_points,
                        :score_viewed, :version, :created_at, :updated_at
                    )
                    """
                ),
                row,
            )
    except Exception:
        logger.error("insert_response failed template_id=%s", row.get("template_id"), exc_info=True)
        raise


def get_response_row(response_id: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(sql_text(f"{_JOINED} WHERE r.id = :id"), {"id": str(response_id)}).mappings().fetchone()
    return dict(row) if row else None


def list_responses_for_template(template_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = f"{_JOINED} WHERE r.template_id = :tid ORDER BY r.created_at DESC, r.id ASC"
    params: Dict[str, Any] = {"tid": str(template_id)}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def list_responses_for_user(user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = f"{_JOINED} WHERE r.user_id = :uid ORDER BY r.created_at DESC, r.id ASC"
    params: Dict[str, Any] = {"uid": str(user_id)}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def list_responses_for_owner(owner_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Responses received on any template owned by ``owner_id``."""
    sql = f"{_JOINED} WHERE t.owner_id = :owner ORDER BY r.created_at DESC, r.id ASC"
    params: Dict[str, Any] = {"owner": str(owner_id)}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def list_all_responses(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = f"{_JOINED} ORDER BY r.created_at DESC, r.id ASC"
    params: Dict[str, Any] = {}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def count_responses(*, user_id: Optional[str] = None, owner_id: Optional[str] = None) -> int:
    if user_id is not None:
        sql, params = "SELECT COUNT(*) FROM form_responses WHERE user_id = :uid", {"uid": str(user_id)}
    elif owner_id is not None:
        sql = (
            "SELECT COUNT(*) FROM form_responses r JOIN templates t ON t.id = r.template_id "
            "WHERE t.owner_id = :owner"
        )
        params = {"owner": str(owner_id)}
    else:
        sql, params = "SELECT COUNT(*) FROM form_responses", {}
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(sql_text(sql), params).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def count_active_submitters(since: str) -> int:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text("SELECT COUNT(DISTINCT user_id) FROM form_responses WHERE created_at > :since"),
            {"since": since},
        ).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def mark_score_viewed_if_version(response_id: str, expected_version: int, updated_at: str) -> bool:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text(
                    "UPDATE form_responses SET score_viewed = :viewed, version = :next_version, "
                    "updated_at = :updated_at WHERE id = :id AND version = :expected"
                ),
                {
                    "viewed": True,
                    "id": str(response_id),
                    "expected": int(expected_version),
                    "next_version": int(expected_version) + 1,
                    "updated_at": updated_at,
                },
            )
            return int(result.rowcount or 0) == 1
    except Exception:
        logger.error("mark_score_viewed_if_version failed id=%s", response_id, exc_info=True)
        raise


__all__ = [
    "count_active_submitters",
    "count_responses",
    "get_response_row",
    "insert_response",
    "list_all_responses",
    "list_responses_for_owner",
    "list_responses_for_template",
    "list_responses_for_user",
    "mark_score_viewed_if_version",
]
