"""HTTP client and template editor for the formbuilder API."""

from __future__ import annotations

from formbuilder.client.api import AuthClient, TemplateClient
from formbuilder.client.editor import EditorState, InvalidTransition, TemplateEditor
from formbuilder.client.session import ApiError, ApiSession

__all__ = [
    "ApiError",
    "ApiSession",
    "AuthClient",
    "EditorState",
    "InvalidTransition",
    "TemplateClient",
    "TemplateEditor",
]
