"""Per-user dashboard and system-wide admin summaries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from formbuilder.logic import repository_responses as responses_repo
from formbuilder.logic import repository_social as social_repo
from formbuilder.logic import repository_templates as templates_repo
from formbuilder.logic import repository_topics as topics_repo
from formbuilder.logic import repository_users as users_repo
from formbuilder.logic.accounts import public_user
from formbuilder.logic.response_protocol import row_to_response
from formbuilder.logic.template_protocol import list_templates_for_owner, row_to_template
from formbuilder.models.caller import CallerContext

RECENT_LIMIT = 5
ACTIVE_WINDOW_DAYS = 30


def user_stats(caller: CallerContext) -> Dict[str, int]:
    uid = caller.user_id
    return {
        "templates": templates_repo.count_templates(owner_id=uid),
        "responses_submitted": responses_repo.count_responses(user_id=uid),
        "responses_received": responses_repo.count_responses(owner_id=uid),
        "likes_received": social_repo.count_likes(owner_id=uid),
        "comments_received": social_repo.count_comments(owner_id=uid),
    }


def recent_activity(caller: CallerContext) -> Dict[str, List[Dict[str, Any]]]:
    uid = caller.user_id
    return {
        "templates": list_templates_for_owner(uid, RECENT_LIMIT),
        "responses_submitted": [row_to_response(r) for r in responses_repo.list_responses_for_user(uid, RECENT_LIMIT)],
        "responses_received": [row_to_response(r) for r in responses_repo.list_responses_for_owner(uid, RECENT_LIMIT)],
    }


def own_templates(caller: CallerContext) -> List[Dict[str, Any]]:
    return list_templates_for_owner(caller.user_id)


def own_responses(caller: CallerContext) -> List[Dict[str, Any]]:
    return [row_to_response(r) for r in responses_repo.list_responses_for_user(caller.user_id)]


def system_stats() -> Dict[str, int]:
    since = (datetime.now(timezone.utc) - timedelta(days=ACTIVE_WINDOW_DAYS)).strftime("%Y-%m-%dT%H:%M:%S.000Z")
    return {
        "users": users_repo.count_users(),
        "admins": users_repo.count_users(admins_only=True),
        "templates": templates_repo.count_templates(),
        "responses": responses_repo.count_responses(),
        "topics": topics_repo.count_topics(),
        "comments": social_repo.count_comments(),
        "likes": social_repo.count_likes(),
        "active_users": responses_repo.count_active_submitters(since),
    }


def system_activity(limit: int = 10) -> List[Dict[str, Any]]:
    """Newest templates, responses and registrations merged by timestamp."""
    events: List[Dict[str, Any]] = []
    for row in templates_repo.list_all_templates_with_counts(limit):
        t = row_to_template(row)
        events.append({"type": "template_created", "id": t["id"], "title": t["title"], "user_id": t["owner_id"], "at": t["created_at"]})
    for row in responses_repo.list_all_responses(limit):
        events.append(
            {"type": "response_submitted", "id": row["id"], "title": row.get("template_title"), "user_id": row.get("user_id"), "at": row.get("created_at")}
        )
    for row in users_repo.list_users(limit):
        user = public_user(row)
        events.append({"type": "user_registered", "id": user["id"], "title": user["name"], "user_id": user["id"], "at": user["created_at"]})
    events.sort(key=lambda e: e.get("at") or "", reverse=True)
    return events[: max(0, int(limit))]


__all__ = [
    "own_responses",
    "own_templates",
    "recent_activity",
    "system_activity",
    "system_stats",
    "user_stats",
]
