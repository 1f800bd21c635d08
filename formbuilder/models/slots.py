"""Field slot identifiers and records.

A template has sixteen fixed slots: four per answer type. Slot identifiers
(``customString1`` .. ``customCheckbox4``) are the wire names used by the
question order and by response answers.

Provides a simple constants container instead of an Enum to keep imports
lightweight, mirroring ``SlotType.STRING`` etc. as plain strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


class SlotType:
    STRING = "String"
    TEXT = "Text"
    INT = "Int"
    CHECKBOX = "Checkbox"


SLOT_TYPES: Tuple[str, ...] = (SlotType.STRING, SlotType.TEXT, SlotType.INT, SlotType.CHECKBOX)
SLOTS_PER_TYPE = 4

SLOT_IDS: Tuple[str, ...] = tuple(
    f"custom{slot_type}{index}" for slot_type in SLOT_TYPES for index in range(1, SLOTS_PER_TYPE + 1)
)
# Ascending slot-number position used for stable ordering
SLOT_POSITION: Dict[str, int] = {sid: pos for pos, sid in enumerate(SLOT_IDS)}

_SLOT_ID_RE = re.compile(r"^custom(String|Text|Int|Checkbox)([1-4])$")


@dataclass(frozen=True)
class Slot:
    slot_id: str
    slot_type: str
    index: int
    enabled: bool = False
    label: str = ""

    def to_dict(self) -> dict:
        return {
            "slot_id": self.slot_id,
            "type": self.slot_type,
            "index": self.index,
            "enabled": self.enabled,
            "label": self.label,
        }


def parse_slot_id(slot_id: str) -> Optional[Tuple[str, int]]:
    """Return ``(slot_type, index)`` for a valid identifier, else None."""
    m = _SLOT_ID_RE.match(str(slot_id or ""))
    if not m:
        return None
    return m.group(1), int(m.group(2))


__all__ = [
    "SLOTS_PER_TYPE",
    "SLOT_IDS",
    "SLOT_POSITION",
    "SLOT_TYPES",
    "Slot",
    "SlotType",
    "parse_slot_id",
]
