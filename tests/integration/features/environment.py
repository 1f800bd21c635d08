"""Behave environment hooks for formbuilder integration scenarios.

By default each run boots the application in-process with FastAPI's
TestClient against a fresh file-backed SQLite database. Setting
``TEST_BASE_URL`` points the scenarios at a running server instead; that
server owns its own database and migrations.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Any

import httpx

_ROOT = Path(__file__).resolve().parents[3]
_DB_FILE = _ROOT / "tmp" / "integration_tests.db"


def _prepare_local_environment() -> None:
    _DB_FILE.parent.mkdir(parents=True, exist_ok=True)
    if _DB_FILE.exists():
        _DB_FILE.unlink()
    os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
    os.environ["AUTO_APPLY_MIGRATIONS"] = "1"
    os.environ["ALLOW_ADMIN_CREATION"] = "1"
    os.environ.setdefault("BCRYPT_ROUNDS", "4")
    os.environ.setdefault("JWT_SECRET", "integration-test-secret")


def before_all(context: Any) -> None:
    base_url = os.getenv("TEST_BASE_URL", "").strip().rstrip("/")
    if base_url:
        context.http = httpx.Client(base_url=base_url, timeout=10.0)
        response = context.http.get("/health")
        assert response.status_code == 200, f"API at {base_url} is not healthy: {response.status_code}"
        print(f"[env] using live API at {base_url}")
        return

    _prepare_local_environment()
    from fastapi.testclient import TestClient

    from formbuilder.config import get_config
    from formbuilder.db.base import dispose_engine
    from formbuilder.main import create_app

    get_config.cache_clear()
    dispose_engine()
    context.http = TestClient(create_app())
    print(f"[env] using in-process app with {_DB_FILE}")


def before_scenario(context: Any, scenario: Any) -> None:
    # unique suffix keeps emails and topic names apart between scenarios
    context.run_id = uuid.uuid4().hex[:8]
    context.sessions = {}
    context.editors = {}


def after_scenario(context: Any, scenario: Any) -> None:
    for session in context.sessions.values():
        session.close()


def after_all(context: Any) -> None:
    http = getattr(context, "http", None)
    if http is not None:
        http.close()
    if not os.getenv("TEST_BASE_URL"):
        from formbuilder.db.base import dispose_engine

        dispose_engine()
