"""Topic catalogue endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from formbuilder.guards.auth import get_caller
from formbuilder.logic.topics import create_topic, delete_topic, get_topic, list_topics, update_topic
from formbuilder.models.caller import CallerContext
from formbuilder.models.payloads import TopicModel

router = APIRouter(prefix="/topics")


@router.get("", summary="List topics", operation_id="listTopics", tags=["Topics"])
def list_all():
    return list_topics()


@router.get("/{topic_id}", summary="Get a topic", operation_id="getTopic", tags=["Topics"])
def read(topic_id: str):
    return get_topic(topic_id)


@router.post("", status_code=201, summary="Create a topic", operation_id="createTopic", tags=["Topics"])
def create(payload: TopicModel, caller: CallerContext = Depends(get_caller)):
    return create_topic(payload.name, payload.description, caller)


@router.put("/{topic_id}", summary="Update a topic", operation_id="updateTopic", tags=["Topics"])
def update(topic_id: str, payload: TopicModel, caller: CallerContext = Depends(get_caller)):
    return update_topic(topic_id, payload.name, payload.description, payload.version, caller)


@router.delete("/{topic_id}", status_code=204, summary="Delete an unused topic", operation_id="deleteTopic", tags=["Topics"])
def delete(topic_id: str, version: Optional[int] = Query(None), caller: CallerContext = Depends(get_caller)):
    delete_topic(topic_id, version, caller)
    return Response(status_code=204)


__all__ = ["router"]
