"""Topic data access helpers."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text

from formbuilder.db.base import get_engine

logger = logging.getLogger(__name__)

_COLUMNS = "id, name, description, version, created_at, updated_at"


def insert_topic(row: Dict[str, Any]) -> None:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    "INSERT INTO topics (id, name, description, version, created_at, updated_at) "
                    "VALUES (:id, :name, :description, :version, :created_at, :updated_at)"
                ),
                row,
            )
    except Exception:
        logger.error("insert_topic failed name=%s", row.get("name"), exc_info=True)
        raise


def get_topic(topic_id: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM topics WHERE id = :id"), {"id": str(topic_id)}
        ).mappings().fetchone()
    return dict(row) if row else None


def find_topic_by_name(name: str) -> Optional[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM topics WHERE LOWER(name) = :name"), {"name": str(name).strip().lower()}
        ).mappings().fetchone()
    return dict(row) if row else None


def list_topics() -> List[Dict[str, Any]]:
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(sql_text(f"SELECT {_COLUMNS} FROM topics ORDER BY name ASC")).mappings().all()
    return [dict(r) for r in rows]


def count_topics() -> int:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(sql_text("SELECT COUNT(*) FROM topics")).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def update_topic_if_version(topic_id: str, expected_version: int, name: str, description: str, updated_at: str) -> bool:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text(
                    "UPDATE topics SET name = :name, description = :description, version = :next_version, "
                    "updated_at = :updated_at WHERE id = :id AND version = :expected"
                ),
                {
                    "id": str(topic_id),
                    "name": name,
                    "description": description,
                    "expected": int(expected_version),
                    "next_version": int(expected_version) + 1,
                    "updated_at": updated_at,
                },
            )
            return int(result.rowcount or 0) == 1
    except Exception:
        logger.error("update_topic_if_version failed id=%s", topic_id, exc_info=True)
        raise


def delete_topic_if_version(topic_id: str, expected_version: int) -> bool:
    eng = get_engine()
    try:
        with eng.begin() as conn:
            result = conn.execute(
                sql_text("DELETE FROM topics WHERE id = :id AND version = :expected"),
                {"id": str(topic_id), "expected": int(expected_version)},
            )
            return int(result.rowcount or 0) == 1
    except Exception:
        logger.error("delete_topic_if_version failed id=%s", topic_id, exc_info=True)
        raise


__all__ = [
    "count_topics",
    "delete_topic_if_version",
    "find_topic_by_name",
    "get_topic",
    "insert_topic",
    "list_topics",
    "update_topic_if_version",
]
