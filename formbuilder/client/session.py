"""HTTP session for talking to the formbuilder API.

``ApiSession`` carries the base URL and bearer token explicitly, so several
sessions (different users, different servers) can coexist in one process.
Problem+json error responses are raised as the same domain errors the
server uses, keyed by status code.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from formbuilder.logic.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ApiError(DomainError):
    """Any error status without a dedicated domain error."""

    code = "api_error"
    title = "API Error"

    def __init__(self, message: str, status: int, problem: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.status = status
        self.problem = problem or {}


def _problem(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"detail": response.text}
    return body if isinstance(body, dict) else {"detail": body}


def error_from_response(response: httpx.Response) -> DomainError:
    problem = _problem(response)
    status = response.status_code
    message = str(problem.get("detail") or problem.get("title") or f"HTTP {status}")
    if status == 400:
        return ValidationError(message, errors=problem.get("errors") or None)
    if status == 401:
        return AuthenticationError(message)
    if status == 403:
        return AuthorizationError(message)
    if status == 404:
        return NotFoundError(message)
    if status == 409:
        return ConflictError(
            message,
            expected_version=problem.get("expected_version"),
            current_version=problem.get("current_version"),
        )
    return ApiError(message, status, problem)


class ApiSession:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        *,
        api_prefix: str = "/api",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.api_prefix = api_prefix.rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(base_url=self.base_url, timeout=timeout)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self.api_prefix}{path}"
        try:
            response = self._client.request(method, url, json=json, params=params, headers=self._headers(headers))
        except httpx.HTTPError as exc:
            logger.warning("client.request.transport_failed method=%s path=%s error=%s", method, url, type(exc).__name__)
            # status 0: no HTTP response was received
            raise ApiError(f"Could not reach the server: {exc}", 0) from exc
        if response.status_code >= 400:
            logger.info("client.request.failed method=%s path=%s status=%s", method, url, response.status_code)
            raise error_from_response(response)
        return response

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs).json()

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs).json()

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs).json()

    def delete(self, path: str, **kwargs: Any) -> None:
        self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ApiSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["ApiError", "ApiSession", "error_from_response"]
