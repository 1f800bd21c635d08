"""The template editor driving the real API through ApiSession."""

from __future__ import annotations

import uuid

from formbuilder.client import ApiSession, AuthClient, EditorState, TemplateClient, TemplateEditor
from formbuilder.logic.errors import ConflictError
from formbuilder.models.slots import SlotType


def _signed_in(client, name: str) -> ApiSession:
    session = ApiSession(client=client)
    AuthClient(session).register(name, f"{name}-{uuid.uuid4().hex[:8]}@example.com", "secret123")
    return session


def test_editor_creates_then_updates_a_template(client, topic):
    session = _signed_in(client, "editor")
    editor = TemplateEditor(TemplateClient(session), topic_id=topic["id"])
    editor.load()
    editor.title = "Event feedback"
    assert editor.can_submit() is False

    first = editor.add_field(SlotType.STRING, "Your name")
    second = editor.add_field(SlotType.INT, "Rating")
    editor.move_question(1, 0)
    saved = editor.submit()

    assert saved is not None
    assert editor.state == EditorState.SUCCESS
    assert editor.detail_path == f"/templates/{saved['id']}"
    assert saved["question_order"] == [second, first]
    assert saved["version"] == 1

    editor.continue_editing()
    editor.remove_field(first)
    updated = editor.submit()
    assert updated["version"] == 2
    assert updated["question_order"] == [second]


def test_concurrent_editors_surface_a_conflict(client, topic):
    session = _signed_in(client, "writer")
    templates = TemplateClient(session)
    created = templates.create(
        {"title": "Shared", "topic_id": topic["id"], "fields": {"customText1": {"enabled": True, "label": "Notes"}}}
    )

    mine, theirs = TemplateEditor(templates), TemplateEditor(templates)
    mine.load(created["id"])
    theirs.load(created["id"])
    mine.title = "Mine"
    theirs.title = "Theirs"

    assert mine.submit()["version"] == 2
    assert theirs.submit() is None
    assert isinstance(theirs.last_error, ConflictError)
    assert theirs.last_error.current_version == 2
    assert theirs.state == EditorState.READY
    assert templates.get(created["id"])["title"] == "Mine"
