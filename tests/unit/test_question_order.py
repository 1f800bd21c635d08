"""Question order ledger: reorder, reconcile and loading malformed stored orders."""

from __future__ import annotations

import logging

import pytest

from formbuilder.logic.question_order import load_order, parse_order, reconcile, reorder, serialize_order


ORDER = ["customString1", "customInt1", "customCheckbox1", "customText2"]


@pytest.mark.parametrize(
    "src,dst,expected",
    [
        (0, 2, ["customInt1", "customCheckbox1", "customString1", "customText2"]),
        (3, 0, ["customText2", "customString1", "customInt1", "customCheckbox1"]),
        (1, 1, ORDER),
    ],
)
def test_reorder_moves_one_element_and_keeps_the_rest(src, dst, expected):
    result = reorder(ORDER, src, dst)
    assert result == expected
    assert sorted(result) == sorted(ORDER)
    assert ORDER == ["customString1", "customInt1", "customCheckbox1", "customText2"]


@pytest.mark.parametrize("src,dst", [(-1, 0), (0, 4), (4, 0), (True, 0)])
def test_reorder_rejects_out_of_range_indices(src, dst):
    with pytest.raises(IndexError):
        reorder(ORDER, src, dst)


def test_reconcile_drops_disabled_and_appends_new_in_slot_order():
    enabled = ["customString1", "customCheckbox1", "customText1", "customString3"]
    result = reconcile(ORDER, enabled)
    assert result == ["customString1", "customCheckbox1", "customString3", "customText1"]


def test_reconcile_is_idempotent_and_deduplicates():
    enabled = ["customString1", "customInt1"]
    once = reconcile(["customInt1", "customInt1", "customString1"], enabled)
    assert once == ["customInt1", "customString1"]
    assert reconcile(once, enabled) == once


def test_serialize_and_parse_order():
    assert parse_order(serialize_order(ORDER)) == ORDER
    assert parse_order(None) == []
    assert parse_order('{"a": 1}') == []


def test_load_order_self_heals_and_logs(caplog):
    stored = serialize_order(["customInt2", "customString1", "customString1"])
    with caplog.at_level(logging.WARNING, logger="formbuilder.logic.question_order"):
        healed = load_order(stored, ["customString1", "customText1"], template_id="t-1")
    assert healed == ["customString1", "customText1"]
    assert any("question_order.self_healed" in r.getMessage() for r in caplog.records)


def test_load_order_survives_garbage():
    assert load_order("[not json", ["customInt1"]) == ["customInt1"]
