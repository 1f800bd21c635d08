"""Template data access helpers.

Encapsulates every SQL statement touching the ``templates`` table so the
protocol layer works on plain dicts. Writes that must honour optimistic
concurrency are single conditional statements (``WHERE id = :id AND
version = :expected``); callers learn about a lost race from the affected
row count, never from a separate read.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text

from formbuilder.db.base import get_engine

logger = logging.getLogger(__name__)

_TEMPLATE_COLUMNS = (
    "t.id, t.owner_id, t.topic_id, t.title, t.description, t.is_public, t.allowed_users, "
    "t.is_quiz, t.show_score_immediately, t.scoring_criteria, t.slot_state, t.question_order, "
    "t.version, t.created_at, t.updated_at"
)
_JOINED = (
    f"SELECT {_TEMPLATE_COLUMNS}, u.name AS owner_name, tp.name AS topic_name "
    "FROM templates t "
    "LEFT JOIN users u ON u.id = t.owner_id "
    "LEFT JOIN topics tp ON tp.id = t.topic_id"
)
_MUTABLE_COLUMNS = (
    "topic_id",
    "title",
    "description",
    "is_public",
    "allowed_users",
    "is_quiz",
    "show_score_immediately",
    "scoring_criteria",
    "slot_state",
    "question_order",
)


def insert_template(row: Dict[str, Any]) -> None:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO templates (
                        id, owner_id, topic_id, title, description, is_public, allowed_users,
                        is_quiz, show_score_immediately, scoring_criteria, slot_state,
                        question_order, version, created_at, updated_at
                    ) VALUES (
                        :id, :owner_id, :topic_id, :title, :description, :is_public, :allowed_users,
                        :is_quiz, :show_score_immediately, :scoring_criteria, :slot_state,
                        :question_order, :version, :created_at, :updated_at
                    )
                    """
                ),
                row,
            )
    except Exception:
        logger.error("insert_template failed id=%s", row.get("id"), exc_info=True)
        raise


def get_template_row(template_id: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(sql_text(f"{_JOINED} WHERE t.id = :id"), {"id": str(template_id)}).mappings().fetchone()
    return dict(row) if row else None


def get_template_version(template_id: str) -> Optional[int]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text("SELECT version FROM templates WHERE id = :id"), {"id": str(template_id)}
        ).fetchone()
    return int(row[0]) if row else None


def update_template_if_version(template_id: str, expected_version: int, values: Dict[str, Any], updated_at: str) -> bool:
    """Apply ``values`` and bump the version only when it still equals ``expected_version``.

    Returns True when exactly one row was written.
    """
    assignments = ", ".join(f"{col} = :{col}" for col in _MUTABLE_COLUMNS if col in values)
    params = {col: values[col] for col in _MUTABLE_COLUMNS if col in values}
    params.update(
        {
            "id": str(template_id),
            "expected": int(expected_version),
            "next_version": int(expected_version) + 1,
            "updated_at": updated_at,
        }
    )
    set_clause = f"{assignments}, " if assignments else ""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text(
                    f"UPDATE templates SET {set_clause}version = :next_version, updated_at = :updated_at "
                    "WHERE id = :id AND version = :expected"
                ),
                params,
            )
            return int(result.rowcount or 0) == 1
    except Exception:
        logger.error("update_template_if_version failed id=%s expected=%s", template_id, expected_version, exc_info=True)
        raise


def delete_template_if_version(template_id: str, expected_version: int) -> bool:
    """Delete a template and its dependents in one transaction.

    The version bump acts as the compare-and-swap: when it touches no row,
    nothing is deleted and False is returned.
    """
    eng = get_engine()
    params = {"id": str(template_id), "expected": int(expected_version)}
    try:
        with eng.begin() as conn:
            claimed = conn.execute(
                sql_text("UPDATE templates SET version = version + 1 WHERE id = :id AND version = :expected"),
                params,
            )
            if int(claimed.rowcount or 0) != 1:
                return False
            for table in ("comments", "likes", "form_responses"):
                conn.execute(sql_text(f"DELETE FROM {table} WHERE template_id = :id"), {"id": str(template_id)})
            conn.execute(sql_text("DELETE FROM templates WHERE id = :id"), {"id": str(template_id)})
            return True
    except Exception:
        logger.error("delete_template_if_version failed id=%s", template_id, exc_info=True)
        raise


def list_public_templates() -> List[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(f"{_JOINED} WHERE t.is_public = :pub ORDER BY t.created_at DESC, t.id ASC"),
            {"pub": True},
        ).mappings().all()
    return [dict(r) for r in rows]


def search_public_templates(query: str) -> List[Dict[str, Any]]:
    pattern = f"%{str(query).strip().lower()}%"
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                f"{_JOINED} WHERE t.is_public = :pub "
                "AND (LOWER(t.title) LIKE :pattern OR LOWER(t.description) LIKE :pattern) "
                "ORDER BY t.created_at DESC, t.id ASC"
            ),
            {"pub": True, "pattern": pattern},
        ).mappings().all()
    return [dict(r) for r in rows]


def list_templates_by_owner(owner_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = f"{_JOINED} WHERE t.owner_id = :owner ORDER BY t.created_at DESC, t.id ASC"
    params: Dict[str, Any] = {"owner": str(owner_id)}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def list_all_templates_with_counts(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = (
        f"SELECT {_TEMPLATE_COLUMNS}, u.name AS owner_name, tp.name AS topic_name, "
        "(SELECT COUNT(*) FROM form_responses r WHERE r.template_id = t.id) AS responses_count, "
        "(SELECT COUNT(*) FROM likes l WHERE l.template_id = t.id) AS likes_count "
        "FROM templates t "
        "LEFT JOIN users u ON u.id = t.owner_id "
        "LEFT JOIN topics tp ON tp.id = t.topic_id "
        "ORDER BY t.created_at DESC, t.id ASC"
    )
    params: Dict[str, Any] = {}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = int(limit)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def count_templates(owner_id: Optional[str] = None) -> int:
    eng = get_engine()
    with eng.connect() as conn:
        if owner_id is None:
            row = conn.execute(sql_text("SELECT COUNT(*) FROM templates")).fetchone()
        else:
            row = conn.execute(
                sql_text("SELECT COUNT(*) FROM templates WHERE owner_id = :owner"), {"owner": str(owner_id)}
            ).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def count_templates_for_topic(topic_id: str) -> int:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text("SELECT COUNT(*) FROM templates WHERE topic_id = :tid"), {"tid": str(topic_id)}
        ).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


__all__ = [
    "count_templates",
    "count_templates_for_topic",
    "delete_template_if_version",
    "get_template_row",
    "get_template_version",
    "insert_template",
    "list_all_templates_with_counts",
    "list_public_templates",
    "list_templates_by_owner",
    "search_public_templates",
    "update_template_if_version",
]
