"""Template create/update protocol (server half).

Every mutating operation checks, in this order: the template exists, the
caller may manage it, the expected version matches. Only then is the payload
merged and validated, and the write itself is a single conditional statement
so a concurrent writer that slipped in after the version check still loses
with a conflict rather than overwriting.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from formbuilder.db.base import utc_timestamp
from formbuilder.logic import repository_templates as repo
from formbuilder.logic.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from formbuilder.logic.etag import resolve_expected_version
from formbuilder.logic.field_slots import (
    build_slot_state,
    describe_slots,
    slot_state_from_json,
    slot_state_to_json,
    validate_slot_state,
)
from formbuilder.logic.question_order import load_order, parse_order, reconcile, serialize_order
from formbuilder.logic.repository_topics import get_topic
from formbuilder.logic.repository_users import get_user
from formbuilder.models.caller import CallerContext

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255


def _payload_dict(payload: Any) -> Dict[str, Any]:
    if payload is None:
        return {}
    if hasattr(payload, "model_dump"):
        return payload.model_dump(exclude_unset=True)
    if isinstance(payload, Mapping):
        return dict(payload)
    raise ValidationError("payload must be an object")


def _parse_id_list(raw: Any) -> List[str]:
    if isinstance(raw, list):
        return [str(v) for v in raw]
    try:
        value = json.loads(raw or "[]")
    except (TypeError, json.JSONDecodeError):
        logger.warning("template.allowed_users_unparseable")
        return []
    return [str(v) for v in value] if isinstance(value, list) else []


def _normalize_title(value: Any) -> str:
    title = str(value or "").strip()
    if not title:
        raise ValidationError("Title is required", field="title")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters", field="title")
    return title


def _require_topic(topic_id: Any) -> str:
    if not topic_id or get_topic(str(topic_id)) is None:
        raise ValidationError("Topic not found", field="topic_id")
    return str(topic_id)


def _normalize_criteria(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _normalize_allowed(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError("allowed_users must be a list of user ids", field="allowed_users")
    # de-duplicate, keep first occurrence
    return list(dict.fromkeys(v.strip() for v in value if v.strip()))


def row_to_template(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Decode a stored row into the template entity; the order self-heals here."""
    state = slot_state_from_json(row.get("slot_state"))
    order = load_order(row.get("question_order"), state.enabled_ids, template_id=row.get("id"))
    entity = {
        "id": row["id"],
        "owner_id": row.get("owner_id"),
        "owner_name": row.get("owner_name"),
        "topic_id": row.get("topic_id"),
        "topic_name": row.get("topic_name"),
        "title": row.get("title"),
        "description": row.get("description") or "",
        "is_public": bool(row.get("is_public")),
        "allowed_users": _parse_id_list(row.get("allowed_users")),
        "is_quiz": bool(row.get("is_quiz")),
        "show_score_immediately": bool(row.get("show_score_immediately")),
        "scoring_criteria": row.get("scoring_criteria"),
        "fields": state.to_dict(),
        "question_order": order,
        "questions": describe_slots(state, order),
        "version": int(row.get("version") or 0),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }
    for extra in ("responses_count", "likes_count"):
        if extra in row:
            entity[extra] = int(row[extra] or 0)
    return entity


def can_read(template: Mapping[str, Any], caller: Optional[CallerContext]) -> bool:
    if template.get("is_public"):
        return True
    if caller is None:
        return False
    return caller.may_manage(template.get("owner_id")) or caller.user_id in (template.get("allowed_users") or [])


def _load_row(template_id: str) -> Dict[str, Any]:
    row = repo.get_template_row(template_id)
    if row is None:
        raise NotFoundError("Template not found")
    return row


def _check_version(
    template_id: str, expected_version: Optional[int], current: int, op: str, if_match: Optional[str] = None
) -> int:
    # If-Match is parsed only after existence and permission have been settled
    expected_version = resolve_expected_version(expected_version, if_match, "template")
    if expected_version is None:
        raise ValidationError("version is required", field="version")
    if int(expected_version) != current:
        logger.info(
            "template.%s.conflict id=%s expected=%s current=%s", op, template_id, expected_version, current
        )
        raise ConflictError(
            "Template was modified by another request",
            expected_version=int(expected_version),
            current_version=current,
        )
    return int(expected_version)


def _lost_race(template_id: str, expected_version: int, op: str) -> Exception:
    current = repo.get_template_version(template_id)
    if current is None:
        return NotFoundError("Template not found")
    logger.info("template.%s.conflict id=%s expected=%s current=%s", op, template_id, expected_version, current)
    return ConflictError(
        "Template was modified by another request",
        expected_version=expected_version,
        current_version=current,
    )


def create_template(caller: CallerContext, payload: Any, owner_id: Optional[str] = None) -> Dict[str, Any]:
    data = _payload_dict(payload)
    owner = str(owner_id or data.get("owner_id") or caller.user_id)
    if not caller.may_manage(owner):
        raise AuthorizationError("Not allowed to create templates for another user")
    if owner != caller.user_id and get_user(owner) is None:
        raise ValidationError("Owner not found", field="owner_id")

    title = _normalize_title(data.get("title"))
    topic_id = _require_topic(data.get("topic_id"))
    state = validate_slot_state(build_slot_state(data.get("fields")))
    order = reconcile(parse_order(data.get("question_order")), state.enabled_ids)

    now = utc_timestamp()
    template_id = str(uuid.uuid4())
    repo.insert_template(
        {
            "id": template_id,
            "owner_id": owner,
            "topic_id": topic_id,
            "title": title,
            "description": str(data.get("description") or ""),
            "is_public": bool(data.get("is_public", True)),
            "allowed_users": json.dumps(_normalize_allowed(data.get("allowed_users"))),
            "is_quiz": bool(data.get("is_quiz", False)),
            "show_score_immediately": bool(data.get("show_score_immediately", True)),
            "scoring_criteria": _normalize_criteria(data.get("scoring_criteria")),
            "slot_state": slot_state_to_json(state),
            "question_order": serialize_order(order),
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
    )
    logger.info("template.created id=%s owner_id=%s fields=%s", template_id, owner, len(state.enabled_ids))
    return row_to_template(_load_row(template_id))


def update_template(
    template_id: str,
    payload: Any,
    expected_version: Optional[int],
    caller: CallerContext,
    *,
    if_match: Optional[str] = None,
) -> Dict[str, Any]:
    row = _load_row(template_id)
    if not caller.may_manage(row.get("owner_id")):
        raise AuthorizationError("Not allowed to modify this template")
    expected = _check_version(template_id, expected_version, int(row["version"]), "update", if_match)

    data = _payload_dict(payload)
    data.pop("version", None)
    current = row_to_template(row)
    values: Dict[str, Any] = {}
    if "title" in data:
        values["title"] = _normalize_title(data["title"])
    if "topic_id" in data:
        values["topic_id"] = _require_topic(data["topic_id"])
    if "description" in data:
        values["description"] = str(data["description"] or "")
    for flag in ("is_public", "is_quiz", "show_score_immediately"):
        if data.get(flag) is not None:
            values[flag] = bool(data[flag])
    if "allowed_users" in data:
        values["allowed_users"] = json.dumps(_normalize_allowed(data["allowed_users"]))
    if "scoring_criteria" in data:
        values["scoring_criteria"] = _normalize_criteria(data["scoring_criteria"])

    base = slot_state_from_json(row.get("slot_state"))
    state = validate_slot_state(build_slot_state(data.get("fields"), base=base))
    requested_order = data.get("question_order")
    order_source = parse_order(requested_order) if requested_order is not None else current["question_order"]
    values["slot_state"] = slot_state_to_json(state)
    values["question_order"] = serialize_order(reconcile(order_source, state.enabled_ids))

    if not repo.update_template_if_version(template_id, expected, values, utc_timestamp()):
        raise _lost_race(template_id, expected, "update")
    logger.info("template.updated id=%s version=%s", template_id, expected + 1)
    return row_to_template(_load_row(template_id))


def delete_template(
    template_id: str, expected_version: Optional[int], caller: CallerContext, *, if_match: Optional[str] = None
) -> None:
    row = _load_row(template_id)
    if not caller.may_manage(row.get("owner_id")):
        raise AuthorizationError("Not allowed to delete this template")
    expected = _check_version(template_id, expected_version, int(row["version"]), "delete", if_match)
    if not repo.delete_template_if_version(template_id, expected):
        raise _lost_race(template_id, expected, "delete")
    logger.info("template.deleted id=%s", template_id)


def get_template(template_id: str, caller: Optional[CallerContext]) -> Dict[str, Any]:
    template = row_to_template(_load_row(template_id))
    if not can_read(template, caller):
        raise AuthorizationError("This template is private")
    return template


def list_public_templates() -> List[Dict[str, Any]]:
    return [row_to_template(r) for r in repo.list_public_templates()]


def search_templates(query: Optional[str]) -> List[Dict[str, Any]]:
    text = str(query or "").strip()
    if not text:
        raise ValidationError("Search query is required", field="query")
    return [row_to_template(r) for r in repo.search_public_templates(text)]


def list_templates_for_owner(owner_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    return [row_to_template(r) for r in repo.list_templates_by_owner(owner_id, limit)]


def list_templates_with_counts(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    return [row_to_template(r) for r in repo.list_all_templates_with_counts(limit)]


__all__ = [
    "can_read",
    "create_template",
    "delete_template",
    "get_template",
    "list_public_templates",
    "list_templates_for_owner",
    "list_templates_with_counts",
    "row_to_template",
    "search_templates",
    "update_template",
]
