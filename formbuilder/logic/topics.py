"""Topic catalogue operations (admin managed)."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from formbuilder.db.base import utc_timestamp
from formbuilder.logic import repository_topics as repo
from formbuilder.logic.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from formbuilder.logic.repository_templates import count_templates_for_topic
from formbuilder.models.caller import CallerContext

logger = logging.getLogger(__name__)


def _topic(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row.get("name"),
        "description": row.get("description") or "",
        "version": int(row.get("version") or 0),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }


def _clean_name(name: Any) -> str:
    value = str(name or "").strip()
    if not value:
        raise ValidationError("Topic name is required", field="name")
    return value


def _load(topic_id: str) -> Dict[str, Any]:
    row = repo.get_topic(topic_id)
    if row is None:
        raise NotFoundError("Topic not found")
    return row


def _require_admin(caller: CallerContext) -> None:
    if not caller.is_admin:
        raise AuthorizationError("Admin access required")


def _check_version(row: Dict[str, Any], expected_version: Optional[int]) -> int:
    if expected_version is None:
        raise ValidationError("version is required", field="version")
    current = int(row["version"])
    if int(expected_version) != current:
        raise ConflictError(
            "Topic was modified by another request", expected_version=int(expected_version), current_version=current
        )
    return current


def list_topics() -> List[Dict[str, Any]]:
    return [_topic(r) for r in repo.list_topics()]


def get_topic(topic_id: str) -> Dict[str, Any]:
    return _topic(_load(topic_id))


def create_topic(name: str, description: str, caller: CallerContext) -> Dict[str, Any]:
    _require_admin(caller)
    clean = _clean_name(name)
    if repo.find_topic_by_name(clean) is not None:
        raise ValidationError("Topic with this name already exists", field="name")
    now = utc_timestamp()
    topic_id = str(uuid.uuid4())
    repo.insert_topic(
        {
            "id": topic_id,
            "name": clean,
            "description": str(description or ""),
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
    )
    logger.info("topic.created id=%s", topic_id)
    return get_topic(topic_id)


def update_topic(
    topic_id: str, name: str, description: str, expected_version: Optional[int], caller: CallerContext
) -> Dict[str, Any]:
    row = _load(topic_id)
    _require_admin(caller)
    expected = _check_version(row, expected_version)
    clean = _clean_name(name)
    existing = repo.find_topic_by_name(clean)
    if existing is not None and existing["id"] != topic_id:
        raise ValidationError("Topic with this name already exists", field="name")
    if not repo.update_topic_if_version(topic_id, expected, clean, str(description or ""), utc_timestamp()):
        latest = repo.get_topic(topic_id)
        if latest is None:
            raise NotFoundError("Topic not found")
        raise ConflictError(
            "Topic was modified by another request", expected_version=expected, current_version=int(latest["version"])
        )
    return get_topic(topic_id)


def delete_topic(topic_id: str, expected_version: Optional[int], caller: CallerContext) -> None:
    row = _load(topic_id)
    _require_admin(caller)
    expected = _check_version(row, expected_version)
    in_use = count_templates_for_topic(topic_id)
    if in_use:
        raise ValidationError(f"Cannot delete topic used by {in_use} template(s)", field="topic_id")
    if not repo.delete_topic_if_version(topic_id, expected):
        latest = repo.get_topic(topic_id)
        if latest is None:
            raise NotFoundError("Topic not found")
        raise ConflictError(
            "Topic was modified by another request", expected_version=expected, current_version=int(latest["version"])
        )
    logger.info("topic.deleted id=%s", topic_id)


__all__ = ["create_topic", "delete_topic", "get_topic", "list_topics", "update_topic"]
