"""Question order ledger.

The display order of a template's questions is an ordered list of enabled
slot identifiers, stored separately from the slot state as JSON text. These
helpers reorder the list and reconcile it after slots are toggled. Stored
orders that fail to parse load as empty lists.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Sequence

from formbuilder.models.slots import SLOT_POSITION

logger = logging.getLogger(__name__)


def reorder(order: Sequence[str], from_index: int, to_index: int) -> List[str]:
    """Move the element at ``from_index`` to ``to_index``.

    All other elements keep their relative order. Negative indices are not
    accepted; either index outside ``[0, len(order))`` raises IndexError.
    """
    items = list(order)
    n = len(items)
    for name, idx in (("from_index", from_index), ("to_index", to_index)):
        if not isinstance(idx, int) or isinstance(idx, bool) or idx < 0 or idx >= n:
            raise IndexError(f"{name} {idx!r} out of range for order of length {n}")
    moved = items.pop(from_index)
    items.insert(to_index, moved)
    return items


def reconcile(order: Iterable[str], enabled_ids: Iterable[str]) -> List[str]:
    """Align ``order`` with the currently enabled slots.

    Retained ids keep their relative order (first occurrence wins), ids that
    are no longer enabled are removed, and newly enabled ids are appended in
    ascending slot-number order. Calling it again on its own output with the
    same ``enabled_ids`` returns the same list.
    """
    enabled = set(enabled_ids)
    result: List[str] = []
    seen: set[str] = set()
    for sid in order:
        if sid in enabled and sid not in seen:
            result.append(sid)
            seen.add(sid)
    missing = sorted(enabled - seen, key=lambda s: SLOT_POSITION.get(s, len(SLOT_POSITION)))
    result.extend(missing)
    return result


def serialize_order(order: Sequence[str]) -> str:
    return json.dumps(list(order), separators=(",", ":"))


def parse_order(raw: Any) -> List[str]:
    """Parse a stored or submitted order into a list of strings.

    Accepts a JSON array string, a list, or None. Anything else yields an
    empty list with a warning so template loads never fail on this column.
    """
    if raw is None or raw == "":
        return []
    value = raw
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("question_order.unparseable raw=%r", raw[:200] if isinstance(raw, str) else raw)
            return []
    if not isinstance(value, list):
        logger.warning("question_order.not_a_list type=%s", type(value).__name__)
        return []
    return [str(v) for v in value if isinstance(v, str)]


def load_order(raw: Any, enabled_ids: Iterable[str], *, template_id: str | None = None) -> List[str]:
    """Load a stored order and self-heal it against the enabled slots.

    Stray ids (disabled or unknown slots) and duplicates are dropped and
    logged; enabled slots missing from the stored order are appended.
    """
    stored = parse_order(raw)
    enabled = list(enabled_ids)
    healed = reconcile(stored, enabled)
    if healed != stored:
        dropped = [sid for sid in stored if sid not in set(enabled)]
        logger.warning(
            "question_order.self_healed template_id=%s dropped=%s stored_len=%s healed_len=%s",
            template_id,
            dropped,
            len(stored),
            len(healed),
        )
    return healed


__all__ = ["load_order", "parse_order", "reconcile", "reorder", "serialize_order"]
