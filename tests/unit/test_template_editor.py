"""Template editor state machine against an in-memory template client."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pytest

from formbuilder.client.editor import EditorState, InvalidTransition, TemplateEditor
from formbuilder.logic.errors import ConflictError, NotFoundError, ValidationError


class FakeTemplates:
    """Stores templates by id and enforces the version check like the server."""

    def __init__(self) -> None:
        self.store: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []
        self.fail_next: Optional[Exception] = None

    def _raise_if_scripted(self) -> None:
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc

    def get(self, template_id: str) -> Dict[str, Any]:
        self.calls.append("get")
        if template_id not in self.store:
            raise NotFoundError("Template not found")
        return copy.deepcopy(self.store[template_id])

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append("create")
        self._raise_if_scripted()
        template_id = f"t{len(self.store) + 1}"
        self.store[template_id] = {**copy.deepcopy(payload), "id": template_id, "version": 1}
        return copy.deepcopy(self.store[template_id])

    def update(self, template_id: str, payload: Dict[str, Any], version: Optional[int]) -> Dict[str, Any]:
        self.calls.append("update")
        self._raise_if_scripted()
        current = self.store[template_id]
        if version != current["version"]:
            raise ConflictError("stale", expected_version=version, current_version=current["version"])
        self.store[template_id] = {**copy.deepcopy(payload), "id": template_id, "version": version + 1}
        return copy.deepcopy(self.store[template_id])


@pytest.fixture
def templates() -> FakeTemplates:
    return FakeTemplates()


@pytest.fixture
def editor(templates: FakeTemplates) -> TemplateEditor:
    ed = TemplateEditor(templates, topic_id="topic-1")
    ed.load()
    ed.title = "Survey"
    return ed


def test_blank_load_reaches_ready_without_fetching(editor, templates):
    assert editor.state == EditorState.READY
    assert editor.history == ["idle", "loading", "ready"]
    assert templates.calls == []


def test_cannot_submit_without_fields(editor, templates):
    assert editor.can_submit() is False
    assert editor.submit() is None
    assert isinstance(editor.last_error, ValidationError)
    assert editor.state == EditorState.READY
    assert templates.calls == []


def test_add_field_uses_first_free_slot_and_stops_at_four(editor):
    ids = [editor.add_field("Int", f"Q{i}") for i in range(4)]
    assert ids == ["customInt1", "customInt2", "customInt3", "customInt4"]
    with pytest.raises(ValidationError):
        editor.add_field("Int")
    editor.remove_field("customInt2")
    assert editor.add_field("Int", "again") == "customInt2"


def test_edits_keep_question_order_reconciled(editor):
    editor.add_field("String", "Name")
    editor.add_field("Checkbox", "Agree")
    editor.add_field("Int", "Age")
    assert editor.question_order == ["customString1", "customCheckbox1", "customInt1"]
    editor.move_question(2, 0)
    assert editor.question_order == ["customInt1", "customString1", "customCheckbox1"]
    editor.remove_field("customString1")
    assert editor.question_order == ["customInt1", "customCheckbox1"]
    editor.set_field("customText1", enabled=True, label="Bio")
    assert editor.question_order[-1] == "customText1"


def test_successful_create_exposes_detail_path(editor, templates):
    editor.add_field("String", "Name")
    saved = editor.submit()
    assert saved["version"] == 1
    assert editor.state == EditorState.SUCCESS
    assert editor.detail_path == f"/templates/{saved['id']}"
    assert templates.store[saved["id"]]["fields"]["customString1"] == {"enabled": True, "label": "Name"}


def test_failed_submit_passes_through_error_and_keeps_edits(editor, templates):
    editor.add_field("Text", "Story")
    templates.fail_next = ConflictError("stale", expected_version=1, current_version=2)
    assert editor.submit() is None
    assert editor.history[-3:] == ["submitting", "error", "ready"]
    assert isinstance(editor.last_error, ConflictError)
    assert editor.slots.enabled_ids == ("customText1",)
    assert editor.detail_path is None
    # retry succeeds with the same edits
    assert editor.submit() is not None


def test_loading_existing_template_then_update(templates):
    creator = TemplateEditor(templates, topic_id="topic-1")
    creator.load()
    creator.title = "Quiz"
    creator.add_field("Int", "2+2")
    template_id = creator.submit()["id"]

    ed = TemplateEditor(templates)
    ed.load(template_id)
    assert ed.version == 1
    assert ed.slots.enabled_ids == ("customInt1",)
    ed.add_field("Checkbox", "Sure?")
    saved = ed.submit()
    assert saved["version"] == 2
    assert templates.calls.count("update") == 1


def test_failed_load_returns_to_idle(templates):
    ed = TemplateEditor(templates)
    with pytest.raises(NotFoundError):
        ed.load("missing")
    assert ed.state == EditorState.IDLE


def test_illegal_transitions_raise(templates):
    ed = TemplateEditor(templates)
    with pytest.raises(InvalidTransition):
        ed.submit()
    with pytest.raises(InvalidTransition):
        ed.add_field("String")
