"""Weak entity tags derived from row versions.

Tags look like ``W/"template-v3"``. ``version_from_if_match`` reverses them so
a client can send the expected version in ``If-Match`` instead of the body.
"""

from __future__ import annotations

import re
from typing import Optional

from formbuilder.logic.errors import ValidationError

_TAG_RE = re.compile(r'^(?:W/)?"(?P<kind>[a-z]+)-v(?P<version>\d+)"$', re.IGNORECASE)


def version_etag(kind: str, version: int) -> str:
    return f'W/"{kind}-v{int(version)}"'


def template_etag(version: int) -> str:
    return version_etag("template", version)


def _split_tags(value: str) -> list[str]:
    # quote-aware comma split
    in_quote = False
    buf: list[str] = []
    parts: list[str] = []
    for ch in value:
        if ch == '"':
            in_quote = not in_quote
            buf.append(ch)
        elif ch == "," and not in_quote:
            parts.append("".join(buf).strip())
            buf.clear()
        else:
            buf.append(ch)
    if in_quote:
        raise ValidationError("Malformed If-Match header", field="If-Match")
    parts.append("".join(buf).strip())
    return [p for p in parts if p]


def version_from_if_match(value: Optional[str], kind: str) -> Optional[int]:
    """Return the version named by the first ``kind`` tag in ``If-Match``.

    Absent header or ``*`` yields None. A header that names no tag of this
    kind is malformed for this resource and raises ValidationError.
    """
    if value is None:
        return None
    text = value.strip()
    if not text or text == "*":
        return None
    for token in _split_tags(text):
        m = _TAG_RE.match(token)
        if m and m.group("kind").lower() == kind:
            return int(m.group("version"))
    raise ValidationError("If-Match does not name a version of this resource", field="If-Match")


def resolve_expected_version(body_version: Optional[int], if_match: Optional[str], kind: str) -> Optional[int]:
    """Body ``version`` wins; otherwise fall back to ``If-Match``."""
    if body_version is not None:
        return int(body_version)
    return version_from_if_match(if_match, kind)


__all__ = [
    "resolve_expected_version",
    "template_etag",
    "version_etag",
    "version_from_if_match",
]
