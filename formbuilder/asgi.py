"""ASGI entry point: ``uvicorn formbuilder.asgi:app``."""

from formbuilder.main import create_app

app = create_app()
