"""Per-user dashboard and admin endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from formbuilder.guards.auth import get_caller, require_admin
from formbuilder.logic.accounts import get_profile, list_users, toggle_admin, toggle_block
from formbuilder.logic.dashboard import (
    own_responses,
    own_templates,
    recent_activity,
    system_activity,
    system_stats,
    user_stats,
)
from formbuilder.logic.response_protocol import list_all_responses
from formbuilder.logic.template_protocol import list_templates_with_counts
from formbuilder.models.caller import CallerContext

dashboard_router = APIRouter(prefix="/dashboard")
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@dashboard_router.get("/stats", summary="Caller's counters", operation_id="dashboardStats", tags=["Dashboard"])
def stats(caller: CallerContext = Depends(get_caller)):
    return user_stats(caller)


@dashboard_router.get("/recent", summary="Caller's recent activity", operation_id="dashboardRecent", tags=["Dashboard"])
def recent(caller: CallerContext = Depends(get_caller)):
    return recent_activity(caller)


@dashboard_router.get("/templates", summary="Caller's templates", operation_id="dashboardTemplates", tags=["Dashboard"])
def templates(caller: CallerContext = Depends(get_caller)):
    return own_templates(caller)


@dashboard_router.get("/responses", summary="Caller's responses", operation_id="dashboardResponses", tags=["Dashboard"])
def responses(caller: CallerContext = Depends(get_caller)):
    return own_responses(caller)


@admin_router.get("/users", summary="List users", operation_id="adminListUsers", tags=["Admin"])
def users():
    return list_users()


@admin_router.get("/users/{user_id}", summary="Get a user", operation_id="adminGetUser", tags=["Admin"])
def user_detail(user_id: str):
    return get_profile(user_id)


@admin_router.put("/users/{user_id}/toggle-block", summary="Block or unblock a user", operation_id="adminToggleBlock", tags=["Admin"])
def block(user_id: str, caller: CallerContext = Depends(require_admin)):
    return toggle_block(user_id, caller)


@admin_router.put("/users/{user_id}/toggle-admin", summary="Grant or revoke admin", operation_id="adminToggleAdmin", tags=["Admin"])
def admin_flag(user_id: str, caller: CallerContext = Depends(require_admin)):
    return toggle_admin(user_id, caller)


@admin_router.get("/stats", summary="System counters", operation_id="adminStats", tags=["Admin"])
def admin_stats():
    return system_stats()


@admin_router.get("/activity", summary="Newest system activity", operation_id="adminActivity", tags=["Admin"])
def activity(limit: int = Query(10, ge=1, le=100)):
    return system_activity(limit)


@admin_router.get("/templates", summary="All templates with counts", operation_id="adminTemplates", tags=["Admin"])
def all_templates():
    return list_templates_with_counts()


@admin_router.get("/responses", summary="All responses", operation_id="adminResponses", tags=["Admin"])
def all_responses():
    return list_all_responses()


__all__ = ["admin_router", "dashboard_router"]
