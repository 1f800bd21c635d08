"""Domain error taxonomy.

Every error is scoped to the single operation that raised it. The HTTP layer
maps ``status`` and ``code`` onto problem+json responses; messages never carry
store internals.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class DomainError(Exception):
    status = 500
    code = "internal_error"
    title = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_problem(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "status": self.status,
            "detail": self.message,
            "code": self.code,
        }


class ValidationError(DomainError):
    """Malformed or invariant-violating payload; the user corrects the input."""

    status = 400
    code = "validation_failed"
    title = "Bad Request"

    def __init__(self, message: str, *, field: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None) -> None:
        super().__init__(message)
        self.field = field
        self.errors = list(errors or [])
        if field and not self.errors:
            self.errors.append({"path": field, "message": message})

    def to_problem(self) -> Dict[str, Any]:
        problem = super().to_problem()
        if self.errors:
            problem["errors"] = self.errors
        return problem


class AuthenticationError(DomainError):
    status = 401
    code = "not_authenticated"
    title = "Unauthorized"


class AuthorizationError(DomainError):
    """Caller lacks rights; not retryable without different credentials."""

    status = 403
    code = "forbidden"
    title = "Forbidden"


class NotFoundError(DomainError):
    status = 404
    code = "not_found"
    title = "Not Found"


class ConflictError(DomainError):
    """Version mismatch; retry after re-fetching and re-applying intent."""

    status = 409
    code = "version_conflict"
    title = "Conflict"

    def __init__(self, message: str, *, expected_version: Optional[int] = None, current_version: Optional[int] = None) -> None:
        super().__init__(message)
        self.expected_version = expected_version
        self.current_version = current_version

    def to_problem(self) -> Dict[str, Any]:
        problem = super().to_problem()
        if self.expected_version is not None:
            problem["expected_version"] = self.expected_version
        if self.current_version is not None:
            problem["current_version"] = self.current_version
        return problem


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "ValidationError",
]
