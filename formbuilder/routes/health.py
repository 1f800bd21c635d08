"""Liveness and store health."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from formbuilder.db.base import check_database

router = APIRouter()


@router.get("/health", summary="Service and database health", operation_id="health", tags=["Health"])
def health():
    result = check_database()
    return JSONResponse(result, status_code=200 if result.get("status") == "ok" else 503)


__all__ = ["router"]
