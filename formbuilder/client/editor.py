"""Template editor state machine (client half of the template protocol).

States move ``IDLE -> LOADING -> READY -> SUBMITTING -> SUCCESS | ERROR``.
A failed submit records the error, passes through ERROR and settles back in
READY with every edit intact; a failed load returns to IDLE. Slot edits go
through the same field slot and question order helpers the server uses, so
the local state is always one the server would accept shape-wise.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from formbuilder.client.api import TemplateClient
from formbuilder.logic.errors import DomainError, ValidationError
from formbuilder.logic.field_slots import (
    SlotState,
    build_slot_state,
    can_add_field,
    empty_slot_state,
    enabled_count,
    slot_state_from_json,
)
from formbuilder.logic.question_order import reconcile, reorder
from formbuilder.models.slots import SLOT_IDS, SLOT_TYPES, parse_slot_id

logger = logging.getLogger(__name__)


class EditorState:
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


_TRANSITIONS = {
    EditorState.IDLE: {EditorState.LOADING},
    EditorState.LOADING: {EditorState.READY, EditorState.IDLE},
    EditorState.READY: {EditorState.SUBMITTING, EditorState.LOADING},
    EditorState.SUBMITTING: {EditorState.SUCCESS, EditorState.ERROR},
    EditorState.ERROR: {EditorState.READY},
    EditorState.SUCCESS: {EditorState.LOADING, EditorState.READY},
}


class InvalidTransition(Exception):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"cannot move from {current} to {target}")
        self.current = current
        self.target = target


class TemplateEditor:
    def __init__(self, templates: TemplateClient, *, topic_id: Optional[str] = None) -> None:
        self.templates = templates
        self.state = EditorState.IDLE
        self.history: List[str] = [self.state]
        self.template_id: Optional[str] = None
        self.version: Optional[int] = None
        self.title = ""
        self.description = ""
        self.topic_id = topic_id
        self.is_public = True
        self.allowed_users: List[str] = []
        self.is_quiz = False
        self.show_score_immediately = True
        self.scoring_criteria: Any = None
        self.slots: SlotState = empty_slot_state()
        self.question_order: List[str] = []
        self.last_error: Optional[Exception] = None
        self.saved: Optional[Dict[str, Any]] = None

    def _move(self, target: str) -> None:
        if target not in _TRANSITIONS.get(self.state, set()):
            raise InvalidTransition(self.state, target)
        logger.debug("editor.transition from=%s to=%s", self.state, target)
        self.state = target
        self.history.append(target)

    def _require_ready(self) -> None:
        if self.state != EditorState.READY:
            raise InvalidTransition(self.state, EditorState.READY)

    # -- loading ----------------------------------------------------------

    def _populate(self, template: Dict[str, Any]) -> None:
        self.template_id = template["id"]
        self.version = template.get("version")
        self.title = template.get("title") or ""
        self.description = template.get("description") or ""
        self.topic_id = template.get("topic_id")
        self.is_public = bool(template.get("is_public", True))
        self.allowed_users = list(template.get("allowed_users") or [])
        self.is_quiz = bool(template.get("is_quiz", False))
        self.show_score_immediately = bool(template.get("show_score_immediately", True))
        self.scoring_criteria = template.get("scoring_criteria")
        self.slots = slot_state_from_json(template.get("fields"))
        self.question_order = reconcile(template.get("question_order") or [], self.slots.enabled_ids)

    def load(self, template_id: Optional[str] = None) -> None:
        """Fetch an existing template, or start a blank one when no id is given."""
        self._move(EditorState.LOADING)
        if template_id is None:
            self.template_id = None
            self.version = None
            self._move(EditorState.READY)
            return
        try:
            template = self.templates.get(template_id)
        except DomainError as exc:
            self.last_error = exc
            self._move(EditorState.IDLE)
            raise
        self._populate(template)
        self.last_error = None
        self._move(EditorState.READY)

    # -- editing ----------------------------------------------------------

    def _apply(self, slot_id: str, entry: Dict[str, Any]) -> None:
        self.slots = build_slot_state({slot_id: entry}, base=self.slots)
        self.question_order = reconcile(self.question_order, self.slots.enabled_ids)

    def set_field(self, slot_id: str, *, enabled: Optional[bool] = None, label: Optional[str] = None) -> None:
        self._require_ready()
        entry: Dict[str, Any] = {}
        if enabled is not None:
            entry["enabled"] = enabled
        if label is not None:
            entry["label"] = label
        self._apply(slot_id, entry)

    def add_field(self, slot_type: str, label: str = "") -> str:
        """Enable the first free slot of ``slot_type`` and return its id."""
        self._require_ready()
        if slot_type not in SLOT_TYPES:
            raise ValidationError(f"Unknown field type {slot_type}", field="type")
        if not can_add_field(self.slots, slot_type):
            raise ValidationError(f"All {slot_type} fields are already in use", field="type")
        for slot_id in SLOT_IDS:
            parsed = parse_slot_id(slot_id)
            if parsed and parsed[0] == slot_type and not self.slots.get(slot_id).enabled:
                self._apply(slot_id, {"enabled": True, "label": label})
                return slot_id
        raise ValidationError(f"All {slot_type} fields are already in use", field="type")

    def remove_field(self, slot_id: str) -> None:
        self._require_ready()
        self._apply(slot_id, {"enabled": False})

    def move_question(self, from_index: int, to_index: int) -> None:
        self._require_ready()
        self.question_order = reorder(self.question_order, from_index, to_index)

    # -- submitting -------------------------------------------------------

    def can_submit(self) -> bool:
        return self.state == EditorState.READY and enabled_count(self.slots) > 0

    def payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "topic_id": self.topic_id,
            "is_public": self.is_public,
            "allowed_users": list(self.allowed_users),
            "is_quiz": self.is_quiz,
            "show_score_immediately": self.show_score_immediately,
            "scoring_criteria": self.scoring_criteria,
            "fields": self.slots.to_dict(),
            "question_order": list(self.question_order),
        }

    def submit(self) -> Optional[Dict[str, Any]]:
        """Create or update the template.

        Returns the saved template on success. On failure the error is kept
        in ``last_error``, the editor ends up READY again and None is returned.
        """
        self._require_ready()
        self._move(EditorState.SUBMITTING)
        try:
            if enabled_count(self.slots) == 0:
                raise ValidationError("At least one form field is required", field="fields")
            if self.template_id is None:
                saved = self.templates.create(self.payload())
            else:
                saved = self.templates.update(self.template_id, self.payload(), self.version)
        except DomainError as exc:
            logger.info("editor.submit.failed error=%s", type(exc).__name__)
            self.last_error = exc
            self._move(EditorState.ERROR)
            self._move(EditorState.READY)
            return None
        self.last_error = None
        self.saved = saved
        self.template_id = saved["id"]
        self.version = saved.get("version")
        self._move(EditorState.SUCCESS)
        return saved

    def continue_editing(self) -> None:
        """Return to READY after a successful save to keep editing."""
        self._move(EditorState.READY)

    @property
    def detail_path(self) -> Optional[str]:
        if self.state != EditorState.SUCCESS or self.template_id is None:
            return None
        return f"/templates/{self.template_id}"


__all__ = ["EditorState", "InvalidTransition", "TemplateEditor"]
