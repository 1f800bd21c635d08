"""Quiz scoring and response aggregation.

Scoring criteria are stored on the template as opaque text. When that text
parses as a JSON object of ``{slot_id: {"answer": ..., "points": n}}`` the
template can be scored; any other content leaves responses unscored.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from formbuilder.models.slots import SlotType, parse_slot_id

logger = logging.getLogger(__name__)


def _whole_points(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0 or value != int(value):
        return None
    return int(value)


def parse_criteria(raw: Any) -> Dict[str, Dict[str, Any]]:
    """Return usable criteria keyed by slot id; unusable input yields ``{}``."""
    if raw is None or raw == "":
        return {}
    data = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.info("scoring.criteria_not_json")
            return {}
    if not isinstance(data, Mapping):
        return {}
    criteria: Dict[str, Dict[str, Any]] = {}
    for slot_id, entry in data.items():
        if parse_slot_id(slot_id) is None or not isinstance(entry, Mapping):
            continue
        points = _whole_points(entry.get("points", 0))
        if points is None:
            # points must be whole and non-negative
            logger.info("scoring.criteria_points_rejected slot_id=%s", slot_id)
            continue
        criteria[slot_id] = {"answer": entry.get("answer"), "points": points}
    return criteria


def _matches(slot_type: str, given: Any, expected: Any) -> bool:
    if given is None:
        return False
    if slot_type in (SlotType.STRING, SlotType.TEXT):
        return isinstance(given, str) and isinstance(expected, str) and given.strip().lower() == expected.strip().lower()
    if slot_type == SlotType.INT:
        return not isinstance(expected, bool) and given == expected
    return given is expected or given == expected


def score_answers(
    criteria_raw: Any, answers: Mapping[str, Any], enabled_ids: Iterable[str]
) -> Tuple[Optional[int], Optional[int]]:
    """Compute ``(score, total_possible_points)`` over enabled, scored slots.

    Returns ``(None, None)`` when the template carries no usable criteria.
    """
    criteria = parse_criteria(criteria_raw)
    enabled = set(enabled_ids)
    scored = {sid: c for sid, c in criteria.items() if sid in enabled}
    if not scored:
        return None, None
    earned = 0
    total = 0
    for slot_id, rule in scored.items():
        points = rule["points"]
        total += points
        slot_type, _index = parse_slot_id(slot_id)  # type: ignore[misc]
        if _matches(slot_type, answers.get(slot_id), rule["answer"]):
            earned += points
    return int(earned), int(total)


def summarize_answers(answer_sets: Iterable[Mapping[str, Any]], enabled_ids: Iterable[str]) -> Dict[str, Any]:
    """Count checkbox ``True`` answers and average integer answers per slot."""
    enabled = [sid for sid in enabled_ids]
    checkbox_ids = [sid for sid in enabled if (parse_slot_id(sid) or ("",))[0] == SlotType.CHECKBOX]
    int_ids = [sid for sid in enabled if (parse_slot_id(sid) or ("",))[0] == SlotType.INT]
    checkbox_stats = {sid: 0 for sid in checkbox_ids}
    int_values: Dict[str, list] = {sid: [] for sid in int_ids}
    count = 0
    for answers in answer_sets:
        count += 1
        for sid in checkbox_ids:
            if answers.get(sid) is True:
                checkbox_stats[sid] += 1
        for sid in int_ids:
            value = answers.get(sid)
            if isinstance(value, int) and not isinstance(value, bool):
                int_values[sid].append(value)
    int_stats = {sid: (sum(vals) / len(vals) if vals else None) for sid, vals in int_values.items()}
    return {"response_count": count, "checkbox_stats": checkbox_stats, "int_stats": int_stats}


__all__ = ["parse_criteria", "score_answers", "summarize_answers"]
