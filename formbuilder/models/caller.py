"""Authenticated caller identity passed from the HTTP layer into logic."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerContext:
    user_id: str
    is_admin: bool = False

    def owns(self, owner_id: str | None) -> bool:
        return owner_id is not None and str(owner_id) == self.user_id

    def may_manage(self, owner_id: str | None) -> bool:
        """Owner or admin."""
        return self.is_admin or self.owns(owner_id)


__all__ = ["CallerContext"]
