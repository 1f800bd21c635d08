"""Typed wrappers over the auth and template endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from formbuilder.client.session import ApiSession


class AuthClient:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def _store(self, result: Dict[str, Any]) -> Dict[str, Any]:
        self.session.token = result["token"]
        return result["user"]

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._store(self.session.post("/auth/register", json={"name": name, "email": email, "password": password}))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._store(self.session.post("/auth/login", json={"email": email, "password": password}))

    def me(self) -> Dict[str, Any]:
        return self.session.get("/auth/me")

    def logout(self) -> None:
        self.session.token = None


class TemplateClient:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def get(self, template_id: str) -> Dict[str, Any]:
        return self.session.get(f"/templates/{template_id}")

    def list_public(self) -> List[Dict[str, Any]]:
        return self.session.get("/templates")

    def search(self, query: str) -> List[Dict[str, Any]]:
        return self.session.get("/templates/search", params={"query": query})

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.session.post("/templates", json=payload)

    def update(self, template_id: str, payload: Dict[str, Any], version: Optional[int]) -> Dict[str, Any]:
        body = dict(payload)
        body["version"] = version
        return self.session.put(f"/templates/{template_id}", json=body)

    def delete(self, template_id: str, version: int) -> None:
        self.session.delete(f"/templates/{template_id}", params={"version": version})


__all__ = ["AuthClient", "TemplateClient"]
