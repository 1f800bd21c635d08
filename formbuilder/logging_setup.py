"""Central logging configuration for the formbuilder service.

Applies a root stdout handler so every module logger emits INFO-level records
without per-module setup. Uvicorn loggers share the same handler, and repeated
calls (reloaders, test clients) never stack duplicate handlers.
"""
from __future__ import annotations

import logging
import os
from logging.config import dictConfig


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
            # SQL echo is far too chatty at INFO
            "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
        },
    }


def configure_logging(level: str | None = None) -> None:
    """Configure application-wide logging once.

    The level defaults to ``LOG_LEVEL`` from the environment (INFO when unset).
    If the root logger already has handlers, return to prevent duplicate
    output (pytest's capture handler counts as configured).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    resolved = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    dictConfig(_dict_config(resolved))


__all__ = ["configure_logging"]
