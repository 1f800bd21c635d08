"""Form response endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, Response

from formbuilder.guards.auth import get_caller
from formbuilder.http.headers import emit_etag
from formbuilder.logic.response_protocol import (
    aggregate_responses,
    get_response,
    list_responses_for_template,
    list_responses_for_user,
    mark_score_viewed,
    submit_response,
)
from formbuilder.models.caller import CallerContext
from formbuilder.models.payloads import ResponseSubmitModel, VersionModel

router = APIRouter(prefix="/responses")


@router.post("", status_code=201, summary="Submit a response", operation_id="submitResponse", tags=["Responses"])
def submit(payload: ResponseSubmitModel, response: Response, caller: CallerContext = Depends(get_caller)):
    result = submit_response(payload.template_id, payload.answers, caller)
    emit_etag(response, "response", result["version"])
    return result


@router.get("/user", summary="List the caller's responses", operation_id="listMyResponses", tags=["Responses"])
def list_mine(caller: CallerContext = Depends(get_caller)):
    return list_responses_for_user(caller.user_id, caller)


@router.get("/user/{user_id}", summary="List a user's responses", operation_id="listUserResponses", tags=["Responses"])
def list_for_user(user_id: str, caller: CallerContext = Depends(get_caller)):
    return list_responses_for_user(user_id, caller)


@router.get(
    "/template/{template_id}",
    summary="List responses to a template",
    operation_id="listTemplateResponses",
    tags=["Responses"],
)
def list_for_template(template_id: str, caller: CallerContext = Depends(get_caller)):
    return list_responses_for_template(template_id, caller)


@router.get(
    "/template/{template_id}/aggregate",
    summary="Aggregate statistics over a template's responses",
    operation_id="aggregateTemplateResponses",
    tags=["Responses"],
)
def aggregate(template_id: str, caller: CallerContext = Depends(get_caller)):
    return aggregate_responses(template_id, caller)


@router.get("/{response_id}", summary="Get a response", operation_id="getResponse", tags=["Responses"])
def read(response_id: str, response: Response, caller: CallerContext = Depends(get_caller)):
    result = get_response(response_id, caller)
    emit_etag(response, "response", result["version"])
    return result


@router.patch(
    "/{response_id}/score-viewed",
    summary="Mark a quiz score as viewed",
    operation_id="markScoreViewed",
    tags=["Responses"],
)
def score_viewed(
    response_id: str,
    response: Response,
    payload: Optional[VersionModel] = Body(None),
    if_match: Optional[str] = Header(None, alias="If-Match"),
    caller: CallerContext = Depends(get_caller),
):
    result = mark_score_viewed(response_id, payload.version if payload else None, caller, if_match=if_match)
    emit_etag(response, "response", result["version"])
    return result


__all__ = ["router"]
