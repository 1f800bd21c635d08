"""Template CRUD endpoints.

Reads and writes emit a weak ``ETag: W/"template-v{n}"``. Writes take the
expected version from the body ``version`` or from ``If-Match``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from formbuilder.guards.auth import get_caller, get_optional_caller
from formbuilder.http.headers import emit_etag
from formbuilder.logic.template_protocol import (
    create_template,
    delete_template,
    get_template,
    list_public_templates,
    search_templates,
    update_template,
)
from formbuilder.models.caller import CallerContext
from formbuilder.models.payloads import TemplateCreateModel, TemplateUpdateModel

router = APIRouter(prefix="/templates")
logger = logging.getLogger(__name__)


@router.get("", summary="List public templates", operation_id="listTemplates", tags=["Templates"])
def list_templates():
    return list_public_templates()


@router.get("/search", summary="Search public templates", operation_id="searchTemplates", tags=["Templates"])
def search(query: str = Query("")):
    return search_templates(query)


@router.post(
    "",
    status_code=201,
    summary="Create a template",
    operation_id="createTemplate",
    tags=["Templates"],
)
def create(payload: TemplateCreateModel, response: Response, caller: CallerContext = Depends(get_caller)):
    template = create_template(caller, payload)
    emit_etag(response, "template", template["version"])
    return template


@router.get("/{template_id}", summary="Get a template", operation_id="getTemplate", tags=["Templates"])
def read(template_id: str, response: Response, caller: Optional[CallerContext] = Depends(get_optional_caller)):
    template = get_template(template_id, caller)
    emit_etag(response, "template", template["version"])
    return template


@router.put("/{template_id}", summary="Update a template", operation_id="updateTemplate", tags=["Templates"])
def update(
    template_id: str,
    payload: TemplateUpdateModel,
    response: Response,
    if_match: Optional[str] = Header(None, alias="If-Match"),
    caller: CallerContext = Depends(get_caller),
):
    template = update_template(template_id, payload, payload.version, caller, if_match=if_match)
    emit_etag(response, "template", template["version"])
    return template


@router.delete(
    "/{template_id}",
    status_code=204,
    summary="Delete a template and its responses, comments and likes",
    operation_id="deleteTemplate",
    tags=["Templates"],
)
def delete(
    template_id: str,
    version: Optional[int] = Query(None),
    if_match: Optional[str] = Header(None, alias="If-Match"),
    caller: CallerContext = Depends(get_caller),
):
    delete_template(template_id, version, caller, if_match=if_match)
    return Response(status_code=204)


__all__ = ["router"]
