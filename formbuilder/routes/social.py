"""Comment and like endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from formbuilder.guards.auth import get_caller, get_optional_caller
from formbuilder.logic.social import (
    add_comment,
    delete_comment,
    like_count,
    like_status,
    list_comments,
    list_likes,
    toggle_like,
)
from formbuilder.models.caller import CallerContext
from formbuilder.models.payloads import CommentCreateModel

comments_router = APIRouter(prefix="/comments")
likes_router = APIRouter(prefix="/likes")


@comments_router.get(
    "/template/{template_id}", summary="List comments on a template", operation_id="listComments", tags=["Comments"]
)
def comments_for_template(template_id: str, caller: Optional[CallerContext] = Depends(get_optional_caller)):
    return list_comments(template_id, caller)


@comments_router.post("", status_code=201, summary="Comment on a template", operation_id="createComment", tags=["Comments"])
def create_comment(payload: CommentCreateModel, caller: CallerContext = Depends(get_caller)):
    return add_comment(payload.template_id, payload.content, caller)


@comments_router.delete(
    "/{comment_id}", status_code=204, summary="Delete a comment", operation_id="deleteComment", tags=["Comments"]
)
def remove_comment(comment_id: str, version: Optional[int] = Query(None), caller: CallerContext = Depends(get_caller)):
    delete_comment(comment_id, version, caller)
    return Response(status_code=204)


@likes_router.post("/template/{template_id}", summary="Like or unlike a template", operation_id="toggleLike", tags=["Likes"])
def toggle(template_id: str, caller: CallerContext = Depends(get_caller)):
    result = toggle_like(template_id, caller)
    return JSONResponse(result, status_code=201 if result["liked"] else 200)


@likes_router.get("/template/{template_id}", summary="List likes on a template", operation_id="listLikes", tags=["Likes"])
def likes_for_template(template_id: str, caller: Optional[CallerContext] = Depends(get_optional_caller)):
    return list_likes(template_id, caller)


@likes_router.get("/count/{template_id}", summary="Count likes on a template", operation_id="countLikes", tags=["Likes"])
def count(template_id: str, caller: Optional[CallerContext] = Depends(get_optional_caller)):
    return like_count(template_id, caller)


@likes_router.get("/check/{template_id}", summary="Has the caller liked a template", operation_id="checkLike", tags=["Likes"])
def check(template_id: str, caller: CallerContext = Depends(get_caller)):
    return like_status(template_id, caller)


__all__ = ["comments_router", "likes_router"]
