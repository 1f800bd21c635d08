"""Comments and likes on templates."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from formbuilder.db.base import utc_timestamp
from formbuilder.logic import repository_social as repo
from formbuilder.logic.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from formbuilder.logic.template_protocol import get_template
from formbuilder.models.caller import CallerContext

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 2000


def _comment(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "template_id": row.get("template_id"),
        "user_id": row.get("user_id"),
        "user_name": row.get("user_name"),
        "content": row.get("content"),
        "version": int(row.get("version") or 0),
        "created_at": row.get("created_at"),
    }


def list_comments(template_id: str, caller: Optional[CallerContext]) -> List[Dict[str, Any]]:
    get_template(template_id, caller)
    return [_comment(r) for r in repo.list_comments_for_template(template_id)]


def add_comment(template_id: str, content: str, caller: CallerContext) -> Dict[str, Any]:
    get_template(template_id, caller)
    text = str(content or "").strip()
    if not text:
        raise ValidationError("Comment content is required", field="content")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters", field="content")
    now = utc_timestamp()
    comment_id = str(uuid.uuid4())
    repo.insert_comment(
        {
            "id": comment_id,
            "template_id": template_id,
            "user_id": caller.user_id,
            "content": text,
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
    )
    logger.info("comment.created id=%s template_id=%s", comment_id, template_id)
    return _comment(repo.get_comment_row(comment_id) or {"id": comment_id})


def delete_comment(comment_id: str, expected_version: Optional[int], caller: CallerContext) -> None:
    row = repo.get_comment_row(comment_id)
    if row is None:
        raise NotFoundError("Comment not found")
    if not (caller.may_manage(row.get("user_id")) or caller.owns(row.get("template_owner_id"))):
        raise AuthorizationError("Not allowed to delete this comment")
    if expected_version is None:
        raise ValidationError("version is required", field="version")
    current = int(row["version"])
    expected = int(expected_version)
    if expected != current or not repo.delete_comment_if_version(comment_id, expected):
        raise ConflictError(
            "Comment was modified by another request", expected_version=expected, current_version=current
        )
    logger.info("comment.deleted id=%s", comment_id)


def toggle_like(template_id: str, caller: CallerContext) -> Dict[str, Any]:
    """Like the template, or remove the caller's existing like."""
    get_template(template_id, caller)
    if repo.delete_like(template_id, caller.user_id):
        liked = False
    else:
        liked = repo.insert_like(
            {
                "id": str(uuid.uuid4()),
                "template_id": template_id,
                "user_id": caller.user_id,
                "created_at": utc_timestamp(),
            }
        )
    return {"template_id": template_id, "liked": liked, "count": repo.count_likes(template_id=template_id)}


def like_status(template_id: str, caller: CallerContext) -> Dict[str, Any]:
    get_template(template_id, caller)
    return {"template_id": template_id, "liked": repo.find_like(template_id, caller.user_id) is not None}


def like_count(template_id: str, caller: Optional[CallerContext]) -> Dict[str, Any]:
    get_template(template_id, caller)
    return {"template_id": template_id, "count": repo.count_likes(template_id=template_id)}


def list_likes(template_id: str, caller: Optional[CallerContext]) -> List[Dict[str, Any]]:
    get_template(template_id, caller)
    return repo.list_likes_for_template(template_id)


__all__ = [
    "add_comment",
    "delete_comment",
    "like_count",
    "like_status",
    "list_comments",
    "list_likes",
    "toggle_like",
]
