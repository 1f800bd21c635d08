"""Topics, comments, likes, dashboard and admin surfaces."""

from __future__ import annotations

import uuid


def test_topics_are_admin_managed_and_protected_while_in_use(client, admin, owner, make_template):
    _admin, admin_headers = admin
    _user, owner_headers = owner
    name = f"Science {uuid.uuid4().hex[:6]}"
    assert client.post("/api/topics", json={"name": name}, headers=owner_headers).status_code == 403
    topic = client.post("/api/topics", json={"name": name}, headers=admin_headers).json()
    assert client.post("/api/topics", json={"name": name.upper()}, headers=admin_headers).status_code == 400

    updated = client.put(f"/api/topics/{topic['id']}", json={"name": name + "!", "version": 1}, headers=admin_headers)
    assert updated.json()["version"] == 2
    assert client.put(f"/api/topics/{topic['id']}", json={"name": name, "version": 1}, headers=admin_headers).status_code == 409

    make_template(owner_headers, topic_id=topic["id"])
    assert client.delete(f"/api/topics/{topic['id']}", params={"version": 2}, headers=admin_headers).status_code == 400

    spare = client.post("/api/topics", json={"name": f"Spare {uuid.uuid4().hex[:6]}"}, headers=admin_headers).json()
    assert client.delete(f"/api/topics/{spare['id']}", params={"version": 1}, headers=admin_headers).status_code == 204
    assert client.get(f"/api/topics/{spare['id']}").status_code == 404


def test_comments_lifecycle(client, owner, other, user_factory, make_template):
    _user, owner_headers = owner
    _other, other_headers = other
    _stranger, stranger_headers = user_factory("stranger")
    template_id = make_template(owner_headers)["id"]

    assert client.post("/api/comments", json={"template_id": template_id, "content": "  "}, headers=other_headers).status_code == 400
    first = client.post("/api/comments", json={"template_id": template_id, "content": "first"}, headers=other_headers).json()
    second = client.post("/api/comments", json={"template_id": template_id, "content": "second"}, headers=stranger_headers).json()
    listed = client.get(f"/api/comments/template/{template_id}").json()
    assert [c["content"] for c in listed] == ["first", "second"]

    assert client.delete(f"/api/comments/{first['id']}", params={"version": 1}, headers=stranger_headers).status_code == 403
    assert client.delete(f"/api/comments/{first['id']}", params={"version": 1}, headers=other_headers).status_code == 204
    # template owner may moderate
    assert client.delete(f"/api/comments/{second['id']}", params={"version": 1}, headers=owner_headers).status_code == 204
    assert client.delete(f"/api/comments/{second['id']}", params={"version": 1}, headers=owner_headers).status_code == 404


def test_like_toggle_check_and_count(client, owner, other, make_template):
    _user, owner_headers = owner
    _other, headers = other
    template_id = make_template(owner_headers)["id"]

    liked = client.post(f"/api/likes/template/{template_id}", headers=headers)
    assert liked.status_code == 201
    assert liked.json() == {"template_id": template_id, "liked": True, "count": 1}
    assert client.get(f"/api/likes/check/{template_id}", headers=headers).json()["liked"] is True
    assert client.get(f"/api/likes/count/{template_id}").json()["count"] == 1
    assert len(client.get(f"/api/likes/template/{template_id}").json()) == 1

    unliked = client.post(f"/api/likes/template/{template_id}", headers=headers)
    assert unliked.status_code == 200
    assert unliked.json()["liked"] is False
    assert client.get(f"/api/likes/count/{template_id}").json()["count"] == 0
    assert client.post("/api/likes/template/missing", headers=headers).status_code == 404


def test_dashboard_reports_the_callers_activity(client, owner, other, make_template):
    _user, owner_headers = owner
    _other, other_headers = other
    template_id = make_template(owner_headers)["id"]
    client.post("/api/responses", json={"template_id": template_id, "answers": {"customInt1": 5}}, headers=other_headers)
    client.post(f"/api/likes/template/{template_id}", headers=other_headers)
    client.post("/api/comments", json={"template_id": template_id, "content": "hi"}, headers=other_headers)

    stats = client.get("/api/dashboard/stats", headers=owner_headers).json()
    assert stats == {
        "templates": 1,
        "responses_submitted": 0,
        "responses_received": 1,
        "likes_received": 1,
        "comments_received": 1,
    }
    recent = client.get("/api/dashboard/recent", headers=other_headers).json()
    assert [r["template_id"] for r in recent["responses_submitted"]] == [template_id]
    assert len(client.get("/api/dashboard/responses", headers=other_headers).json()) == 1
    assert client.get("/api/dashboard/stats").status_code == 401


def test_admin_surface_requires_admin(client, owner, admin, make_template):
    user, owner_headers = owner
    admin_user, admin_headers = admin
    template_id = make_template(owner_headers)["id"]

    assert client.get("/api/admin/users", headers=owner_headers).status_code == 403
    assert user["id"] in [u["id"] for u in client.get("/api/admin/users", headers=admin_headers).json()]
    assert client.get(f"/api/admin/users/{user['id']}", headers=admin_headers).json()["email"] == user["email"]

    stats = client.get("/api/admin/stats", headers=admin_headers).json()
    assert stats["users"] >= 2 and stats["admins"] >= 1 and stats["templates"] >= 1

    activity = client.get("/api/admin/activity", params={"limit": 5}, headers=admin_headers).json()
    assert len(activity) <= 5
    assert activity == sorted(activity, key=lambda e: e["at"], reverse=True)

    rows = {t["id"]: t for t in client.get("/api/admin/templates", headers=admin_headers).json()}
    assert rows[template_id]["responses_count"] == 0
    assert rows[template_id]["likes_count"] == 0
    assert isinstance(client.get("/api/admin/responses", headers=admin_headers).json(), list)


def test_admin_toggles_refuse_self_changes(client, admin, user_factory):
    admin_user, admin_headers = admin
    target, target_headers = user_factory("promoted")
    assert client.put(f"/api/admin/users/{admin_user['id']}/toggle-admin", headers=admin_headers).status_code == 400
    assert client.put(f"/api/admin/users/{admin_user['id']}/toggle-block", headers=admin_headers).status_code == 400

    promoted = client.put(f"/api/admin/users/{target['id']}/toggle-admin", headers=admin_headers).json()
    assert promoted["is_admin"] is True
    # role change applies to the existing token immediately
    assert client.get("/api/admin/stats", headers=target_headers).status_code == 200
    assert client.put("/api/admin/users/missing/toggle-block", headers=admin_headers).status_code == 404
