"""Form response submission and reads."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from formbuilder.db.base import utc_timestamp
from formbuilder.logic import repository_responses as repo
from formbuilder.logic.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from formbuilder.logic.etag import resolve_expected_version
from formbuilder.logic.field_slots import SlotState, slot_state_from_json
from formbuilder.logic.repository_templates import get_template_row
from formbuilder.logic.repository_users import get_user
from formbuilder.logic.scoring import score_answers, summarize_answers
from formbuilder.logic.template_protocol import get_template
from formbuilder.models.caller import CallerContext
from formbuilder.models.slots import SlotType, parse_slot_id

logger = logging.getLogger(__name__)


def _check_answer(slot_type: str, slot_id: str, value: Any) -> Any:
    if value is None:
        return None
    if slot_type in (SlotType.STRING, SlotType.TEXT):
        ok = isinstance(value, str)
        expected = "a string"
    elif slot_type == SlotType.INT:
        ok = isinstance(value, int) and not isinstance(value, bool)
        expected = "an integer"
    else:
        ok = isinstance(value, bool)
        expected = "a boolean"
    if not ok:
        raise ValidationError(f"Answer for {slot_id} must be {expected}", field=f"answers.{slot_id}")
    return value


def validate_answers(answers: Any, state: SlotState) -> Dict[str, Any]:
    """Check every answer names an enabled slot and carries that slot's type."""
    if answers is None:
        return {}
    if not isinstance(answers, Mapping):
        raise ValidationError("answers must be an object", field="answers")
    enabled = set(state.enabled_ids)
    cleaned: Dict[str, Any] = {}
    for slot_id, value in answers.items():
        parsed = parse_slot_id(slot_id)
        if parsed is None:
            raise ValidationError(f"Unknown field {slot_id}", field=f"answers.{slot_id}")
        if slot_id not in enabled:
            raise ValidationError(f"Field {slot_id} is not enabled on this template", field=f"answers.{slot_id}")
        cleaned[slot_id] = _check_answer(parsed[0], slot_id, value)
    return cleaned


def _parse_answers(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        value = json.loads(raw or "{}")
    except (TypeError, json.JSONDecodeError):
        logger.warning("response.answers_unparseable")
        return {}
    return value if isinstance(value, dict) else {}


def row_to_response(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "template_id": row.get("template_id"),
        "template_title": row.get("template_title"),
        "user_id": row.get("user_id"),
        "user_name": row.get("user_name"),
        "answers": _parse_answers(row.get("answers")),
        "score": row.get("score"),
        "total_possible_points": row.get("total_possible_points"),
        "score_viewed": bool(row.get("score_viewed")),
        "version": int(row.get("version") or 0),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }


def _load_row(response_id: str) -> Dict[str, Any]:
    row = repo.get_response_row(response_id)
    if row is None:
        raise NotFoundError("Response not found")
    return row


def submit_response(template_id: str, answers: Any, caller: CallerContext) -> Dict[str, Any]:
    template = get_template(template_id, caller)
    state = slot_state_from_json(template["fields"])
    cleaned = validate_answers(answers, state)

    score: Optional[int] = None
    total: Optional[int] = None
    if template["is_quiz"]:
        score, total = score_answers(template.get("scoring_criteria"), cleaned, state.enabled_ids)

    now = utc_timestamp()
    response_id = str(uuid.uuid4())
    repo.insert_response(
        {
            "id": response_id,
            "template_id": template_id,
            "user_id": caller.user_id,
            "answers": json.dumps(cleaned),
            "score": score,
            "total_possible_points": total,
            "score_viewed": False,
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
    )
    logger.info("response.submitted id=%s template_id=%s answers=%s", response_id, template_id, len(cleaned))
    return row_to_response(_load_row(response_id))


def get_response(response_id: str, caller: CallerContext) -> Dict[str, Any]:
    row = _load_row(response_id)
    if not (caller.may_manage(row.get("user_id")) or caller.owns(row.get("template_owner_id"))):
        raise AuthorizationError("Not allowed to view this response")
    return row_to_response(row)


def list_responses_for_template(template_id: str, caller: CallerContext) -> List[Dict[str, Any]]:
    template = get_template_row(template_id)
    if template is None:
        raise NotFoundError("Template not found")
    if not caller.may_manage(template.get("owner_id")):
        raise AuthorizationError("Only the template owner can view its responses")
    return [row_to_response(r) for r in repo.list_responses_for_template(template_id)]


def list_responses_for_user(user_id: str, caller: CallerContext) -> List[Dict[str, Any]]:
    if get_user(user_id) is None:
        raise NotFoundError("User not found")
    if not caller.may_manage(user_id):
        raise AuthorizationError("Not allowed to view another user's responses")
    return [row_to_response(r) for r in repo.list_responses_for_user(user_id)]


def list_all_responses(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    return [row_to_response(r) for r in repo.list_all_responses(limit)]


def mark_score_viewed(
    response_id: str, expected_version: Optional[int], caller: CallerContext, *, if_match: Optional[str] = None
) -> Dict[str, Any]:
    row = _load_row(response_id)
    if not caller.may_manage(row.get("user_id")):
        raise AuthorizationError("Not allowed to modify this response")
    current = int(row["version"])
    expected_version = resolve_expected_version(expected_version, if_match, "response")
    if expected_version is None:
        raise ValidationError("version is required", field="version")
    if int(expected_version) != current:
        logger.info("response.score_viewed.conflict id=%s expected=%s current=%s", response_id, expected_version, current)
        raise ConflictError(
            "Response was modified by another request", expected_version=int(expected_version), current_version=current
        )
    if not repo.mark_score_viewed_if_version(response_id, current, utc_timestamp()):
        latest = repo.get_response_row(response_id)
        if latest is None:
            raise NotFoundError("Response not found")
        raise ConflictError(
            "Response was modified by another request",
            expected_version=current,
            current_version=int(latest["version"]),
        )
    return row_to_response(_load_row(response_id))


def aggregate_responses(template_id: str, caller: CallerContext) -> Dict[str, Any]:
    row = get_template_row(template_id)
    if row is None:
        raise NotFoundError("Template not found")
    if not caller.may_manage(row.get("owner_id")):
        raise AuthorizationError("Only the template owner can view aggregates")
    state = slot_state_from_json(row.get("slot_state"))
    responses = repo.list_responses_for_template(template_id)
    summary = summarize_answers((_parse_answers(r.get("answers")) for r in responses), state.enabled_ids)
    scored = [r for r in responses if r.get("score") is not None]
    summary["avg_score"] = (sum(int(r["score"]) for r in scored) / len(scored)) if scored else None
    summary["avg_total_points"] = (
        sum(int(r.get("total_possible_points") or 0) for r in scored) / len(scored) if scored else None
    )
    summary["template_id"] = template_id
    return summary


__all__ = [
    "aggregate_responses",
    "get_response",
    "list_all_responses",
    "list_responses_for_template",
    "list_responses_for_user",
    "mark_score_viewed",
    "row_to_response",
    "submit_response",
    "validate_answers",
]
