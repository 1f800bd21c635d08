"""Centralised ETag header emitter.

Route handlers call ``emit_etag`` rather than assigning headers directly so
the generic ``ETag`` header and its CORS exposure stay consistent.
"""

from __future__ import annotations

import logging

from fastapi import Response

from formbuilder.logic.etag import version_etag

logger = logging.getLogger(__name__)


def emit_etag(response: Response, kind: str, version: int) -> str:
    token = version_etag(kind, version)
    response.headers["ETag"] = token
    exposed = [h.strip() for h in response.headers.get("Access-Control-Expose-Headers", "").split(",") if h.strip()]
    if "ETag" not in exposed:
        exposed.append("ETag")
    response.headers["Access-Control-Expose-Headers"] = ", ".join(exposed)
    return token


__all__ = ["emit_etag"]
