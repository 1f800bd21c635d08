"""Pydantic request payloads.

Declared outside the route modules so logic and client code can share the
shapes without importing FastAPI. Slot entries and answers are left as plain
mappings here; their typing rules live in the field slot model so unknown or
mistyped slots surface as domain validation errors.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TemplateCreateModel(BaseModel):
    title: str
    topic_id: str
    description: str = ""
    owner_id: Optional[str] = None
    is_public: bool = True
    allowed_users: List[str] = Field(default_factory=list)
    is_quiz: bool = False
    show_score_immediately: bool = True
    scoring_criteria: Optional[Any] = None
    fields: Dict[str, Any] = Field(default_factory=dict)
    question_order: Optional[List[str]] = None


class TemplateUpdateModel(BaseModel):
    title: Optional[str] = None
    topic_id: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None
    allowed_users: Optional[List[str]] = None
    is_quiz: Optional[bool] = None
    show_score_immediately: Optional[bool] = None
    scoring_criteria: Optional[Any] = None
    fields: Optional[Dict[str, Any]] = None
    question_order: Optional[List[str]] = None
    # Expected version; If-Match is accepted as an alternative
    version: Optional[int] = None


class ResponseSubmitModel(BaseModel):
    template_id: str
    answers: Dict[str, Any] = Field(default_factory=dict)


class VersionModel(BaseModel):
    version: Optional[int] = None


class RegisterModel(BaseModel):
    name: str
    email: str
    password: str = Field(min_length=6)
    is_admin: bool = False


class LoginModel(BaseModel):
    email: str
    password: str


class PreferencesModel(BaseModel):
    language: Optional[str] = None
    theme: Optional[str] = None


class TopicModel(BaseModel):
    name: str
    description: str = ""
    version: Optional[int] = None


class CommentCreateModel(BaseModel):
    template_id: str
    content: str


__all__ = [
    "CommentCreateModel",
    "LoginModel",
    "PreferencesModel",
    "RegisterModel",
    "ResponseSubmitModel",
    "TemplateCreateModel",
    "TemplateUpdateModel",
    "TopicModel",
    "VersionModel",
]
