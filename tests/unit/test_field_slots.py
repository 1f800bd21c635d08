"""Field slot model: building, merging and validating the sixteen-slot state."""

from __future__ import annotations

import pytest

from formbuilder.logic.errors import ValidationError
from formbuilder.logic.field_slots import (
    build_slot_state,
    can_add_field,
    empty_slot_state,
    enabled_count,
    enabled_counts,
    slot_state_from_json,
    slot_state_to_json,
    validate_slot_state,
)
from formbuilder.models.slots import SLOT_IDS, SlotType, parse_slot_id


def test_slot_ids_cover_four_of_each_type_in_slot_order():
    assert len(SLOT_IDS) == 16
    assert SLOT_IDS[:4] == ("customString1", "customString2", "customString3", "customString4")
    assert SLOT_IDS[-1] == "customCheckbox4"
    assert parse_slot_id("customInt3") == ("Int", 3)
    assert parse_slot_id("customInt5") is None
    assert parse_slot_id("customFloat1") is None


def test_build_enables_requested_slots_and_defaults_the_rest():
    state = build_slot_state(
        {
            "customString1": {"enabled": True, "label": "Name"},
            "customCheckbox2": {"enabled": True, "label": "Agree?"},
        }
    )
    assert len(state.slots) == 16
    assert state.enabled_ids == ("customString1", "customCheckbox2")
    assert state.get("customString1").label == "Name"
    assert state.get("customText1").enabled is False
    assert enabled_count(state) == 2
    assert enabled_counts(state) == {"String": 1, "Text": 0, "Int": 0, "Checkbox": 1}


def test_label_on_disabled_slot_is_dropped():
    state = build_slot_state({"customText2": {"enabled": False, "label": "ignored"}})
    assert state.get("customText2").label == ""


def test_unknown_slot_id_is_rejected_with_its_path():
    with pytest.raises(ValidationError) as exc:
        build_slot_state({"customString9": {"enabled": True}})
    assert exc.value.errors[0]["path"] == "fields.customString9"


def test_non_boolean_enabled_is_rejected():
    with pytest.raises(ValidationError):
        build_slot_state({"customInt1": {"enabled": "yes"}})


def test_overlong_label_is_rejected():
    with pytest.raises(ValidationError):
        build_slot_state({"customString1": {"enabled": True, "label": "x" * 256}})


def test_merge_keeps_unmentioned_slots_from_base():
    base = build_slot_state({"customString1": {"enabled": True, "label": "A"}, "customInt1": {"enabled": True, "label": "B"}})
    merged = build_slot_state({"customInt1": {"enabled": False}}, base=base)
    assert merged.enabled_ids == ("customString1",)
    assert merged.get("customString1").label == "A"
    assert merged.get("customInt1").label == ""


def test_all_disabled_state_fails_validation():
    with pytest.raises(ValidationError) as exc:
        validate_slot_state(empty_slot_state())
    assert exc.value.message == "At least one form field is required"


def test_can_add_field_stops_at_four_per_type():
    state = build_slot_state({f"customInt{i}": {"enabled": True} for i in range(1, 4)})
    assert can_add_field(state, SlotType.INT) is True
    full = build_slot_state({"customInt4": {"enabled": True}}, base=state)
    assert can_add_field(full, SlotType.INT) is False
    assert can_add_field(full, SlotType.TEXT) is True


def test_stored_state_round_trip_drops_unknown_keys():
    state = build_slot_state({"customText1": {"enabled": True, "label": "Bio"}})
    restored = slot_state_from_json(slot_state_to_json(state))
    assert restored == state

    tolerant = slot_state_from_json('{"customText1": {"enabled": true, "label": "Bio"}, "legacyField": {}}')
    assert tolerant.enabled_ids == ("customText1",)
    assert slot_state_from_json("not json").enabled_ids == ()
