"""FastAPI application package for the formbuilder service.

Exposes the application factory. Business logic lives in
`formbuilder/logic/`, route handlers in `formbuilder/routes/` and the HTTP
client with the template editor in `formbuilder/client/`.
"""

from __future__ import annotations

from formbuilder.main import create_app

__all__ = ["create_app"]
