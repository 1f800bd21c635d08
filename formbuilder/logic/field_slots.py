"""Field slot model: canonical sixteen-slot state for a template.

``build_slot_state`` turns a requested mapping of ``slot_id -> {enabled,
label}`` into an immutable ``SlotState``. Slots absent from the request keep
their value from ``base`` (used when merging an update onto the stored
template) or default to disabled.

Label policy: a label supplied for a disabled slot is ignored and the stored
label becomes the empty string. Enabling a slot with an empty label is
allowed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from formbuilder.logic.errors import ValidationError
from formbuilder.models.slots import SLOT_IDS, SLOT_TYPES, SLOTS_PER_TYPE, Slot, parse_slot_id

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 255


@dataclass(frozen=True)
class SlotState:
    slots: Tuple[Slot, ...]

    @property
    def enabled_ids(self) -> Tuple[str, ...]:
        return tuple(s.slot_id for s in self.slots if s.enabled)

    @property
    def enabled_counts(self) -> Dict[str, int]:
        return enabled_counts(self)

    def get(self, slot_id: str) -> Slot:
        for s in self.slots:
            if s.slot_id == slot_id:
                return s
        raise KeyError(slot_id)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {s.slot_id: {"enabled": s.enabled, "label": s.label} for s in self.slots}


def empty_slot_state() -> SlotState:
    slots = []
    for sid in SLOT_IDS:
        slot_type, index = parse_slot_id(sid)  # type: ignore[misc]
        slots.append(Slot(slot_id=sid, slot_type=slot_type, index=index))
    return SlotState(slots=tuple(slots))


def _coerce_entry(slot_id: str, entry: Any) -> Tuple[Optional[bool], Optional[str]]:
    if hasattr(entry, "model_dump"):
        entry = entry.model_dump()
    if not isinstance(entry, Mapping):
        raise ValidationError("slot entry must be an object", field=f"fields.{slot_id}")
    enabled = entry.get("enabled")
    label = entry.get("label")
    if enabled is not None and not isinstance(enabled, bool):
        raise ValidationError("enabled must be a boolean", field=f"fields.{slot_id}.enabled")
    if label is not None:
        if not isinstance(label, str):
            raise ValidationError("label must be a string", field=f"fields.{slot_id}.label")
        label = label.strip()
        if len(label) > MAX_LABEL_LENGTH:
            raise ValidationError(
                f"label must be at most {MAX_LABEL_LENGTH} characters",
                field=f"fields.{slot_id}.label",
            )
    return enabled, label


def build_slot_state(requested: Mapping[str, Any] | None, base: SlotState | None = None) -> SlotState:
    """Apply ``requested`` onto ``base`` and return the full sixteen-slot state.

    Raises ValidationError for unknown slot ids or malformed entries. Does not
    check the at-least-one-enabled invariant; call ``validate_slot_state``.
    """
    current = base or empty_slot_state()
    requested = dict(requested or {})
    unknown = sorted(k for k in requested if parse_slot_id(k) is None)
    if unknown:
        raise ValidationError(
            f"unknown field slot(s): {', '.join(unknown)}",
            errors=[{"path": f"fields.{k}", "message": "unknown field slot"} for k in unknown],
        )

    slots = []
    for slot in current.slots:
        enabled, label = slot.enabled, slot.label
        if slot.slot_id in requested:
            req_enabled, req_label = _coerce_entry(slot.slot_id, requested[slot.slot_id])
            if req_enabled is not None:
                enabled = req_enabled
            if req_label is not None:
                label = req_label
        if not enabled:
            label = ""
        slots.append(Slot(slot_id=slot.slot_id, slot_type=slot.slot_type, index=slot.index, enabled=enabled, label=label))
    return SlotState(slots=tuple(slots))


def enabled_count(state: SlotState) -> int:
    return sum(1 for s in state.slots if s.enabled)


def enabled_counts(state: SlotState) -> Dict[str, int]:
    counts = {t: 0 for t in SLOT_TYPES}
    for s in state.slots:
        if s.enabled:
            counts[s.slot_type] += 1
    return counts


def can_add_field(state: SlotState, slot_type: str) -> bool:
    return enabled_counts(state).get(slot_type, SLOTS_PER_TYPE) < SLOTS_PER_TYPE


def validate_slot_state(state: SlotState) -> SlotState:
    """Raise ValidationError unless at least one slot is enabled."""
    if enabled_count(state) == 0:
        raise ValidationError("At least one form field is required", field="fields")
    return state


def slot_state_to_json(state: SlotState) -> str:
    return json.dumps(state.to_dict(), separators=(",", ":"))


def slot_state_from_json(raw: str | Mapping[str, Any] | None) -> SlotState:
    """Rebuild a stored state; unknown keys in the stored document are dropped."""
    if raw is None or raw == "":
        return empty_slot_state()
    data: Any = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("field_slots.stored_state_unparseable", exc_info=True)
            return empty_slot_state()
    if not isinstance(data, Mapping):
        logger.warning("field_slots.stored_state_not_object type=%s", type(data).__name__)
        return empty_slot_state()
    cleaned = {k: v for k, v in data.items() if parse_slot_id(k) is not None and isinstance(v, Mapping)}
    dropped = sorted(set(data) - set(cleaned))
    if dropped:
        logger.warning("field_slots.stored_state_dropped_keys keys=%s", dropped)
    return build_slot_state(cleaned)


def describe_slots(state: SlotState, ids: Iterable[str] | None = None) -> list:
    """Return slot dicts for ``ids`` (defaults to every slot, ascending)."""
    wanted = list(ids) if ids is not None else list(SLOT_IDS)
    return [state.get(sid).to_dict() for sid in wanted]


__all__ = [
    "MAX_LABEL_LENGTH",
    "SlotState",
    "build_slot_state",
    "can_add_field",
    "describe_slots",
    "empty_slot_state",
    "enabled_count",
    "enabled_counts",
    "slot_state_from_json",
    "slot_state_to_json",
    "validate_slot_state",
]
