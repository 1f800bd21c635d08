"""Functional test bootstrap.

Points the service at a file-backed SQLite database, applies the migrations
once per session and hands each test a FastAPI TestClient. Environment is
set before any configuration is read so the cached config sees it.
"""

from __future__ import annotations

import os
import pathlib
import uuid
from typing import Dict, Tuple

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"
os.environ["ALLOW_ADMIN_CREATION"] = "1"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "functional-test-secret"


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap():
    """Session-level bootstrap: apply migrations once for the shared DB."""
    from formbuilder.config import get_config
    from formbuilder.db.base import dispose_engine, get_engine
    from formbuilder.db.migrations_runner import apply_migrations

    get_config.cache_clear()
    dispose_engine()
    apply_migrations(get_engine(), get_config().database.migrations_dir)
    yield
    dispose_engine()


@pytest.fixture(scope="session")
def app(functional_sqlite_bootstrap):
    from formbuilder.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c


def register_user(client, name: str = "user", *, admin: bool = False) -> Tuple[Dict, Dict[str, str]]:
    email = f"{name}-{uuid.uuid4().hex[:8]}@example.com"
    resp = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": "secret123", "is_admin": admin},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture
def owner(client):
    return register_user(client, "owner")


@pytest.fixture
def other(client):
    return register_user(client, "other")


@pytest.fixture
def admin(client):
    return register_user(client, "admin", admin=True)


@pytest.fixture
def topic(client, admin):
    _user, headers = admin
    resp = client.post("/api/topics", json={"name": f"Topic {uuid.uuid4().hex[:8]}"}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def template_payload(topic_id: str, **overrides) -> Dict:
    payload = {
        "title": "Customer survey",
        "description": "Tell us about you",
        "topic_id": topic_id,
        "fields": {
            "customString1": {"enabled": True, "label": "Name"},
            "customInt1": {"enabled": True, "label": "Age"},
            "customCheckbox1": {"enabled": True, "label": "Subscribe?"},
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_template(client, topic):
    def _make(headers: Dict[str, str], **overrides) -> Dict:
        topic_id = overrides.pop("topic_id", topic["id"])
        resp = client.post("/api/templates", json=template_payload(topic_id, **overrides), headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def user_factory(client):
    def _register(name: str = "user", admin: bool = False):
        return register_user(client, name, admin=admin)

    return _register


@pytest.fixture
def template_body(topic):
    def _body(**overrides) -> Dict:
        topic_id = overrides.pop("topic_id", topic["id"])
        return template_payload(topic_id, **overrides)

    return _body
