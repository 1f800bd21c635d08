"""Configuration utilities for the formbuilder service.

This module loads application configuration with the following rules:
- Primary source: `formbuilder_config.json` at the project root.
- Overrides: text files under `config/`, then environment variables.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("formbuilder_config.json")
DEV_JWT_SECRET = "dev-secret-change-me"
DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: an unreadable override falls through to the next source
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str
    auto_apply_migrations: bool = Field(default=True)
    migrations_dir: str = Field(default=str(DEFAULT_MIGRATIONS_DIR))

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class AuthConfig(BaseModel):
    jwt_secret: str
    jwt_algorithm: str = Field(default="HS256")
    token_ttl_minutes: int = Field(default=60 * 24, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    allow_admin_registration: bool = Field(default=False)

    @field_validator("jwt_algorithm")
    @classmethod
    def algorithm_must_be_hmac(cls, v: str) -> str:
        allowed = {"HS256", "HS384", "HS512"}
        if v not in allowed:
            raise ValueError(f"auth.jwt_algorithm must be one of {sorted(allowed)}")
        return v


class CorsConfig(BaseModel):
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])


class AppConfig(BaseModel):
    database: DatabaseConfig
    auth: AuthConfig
    cors: CorsConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def _truthy(text: Optional[str]) -> bool:
    return str(text or "").strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) formbuilder_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        if isinstance(cur, list):
            return ",".join(str(x) for x in cur)
        return str(cur) if cur is not None else default

    # Database
    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )
    auto_migrate = _env("AUTO_APPLY_MIGRATIONS") or _read_config_file("database.auto_apply_migrations") or _base("database.auto_apply_migrations", "true")
    migrations_dir = _env("MIGRATIONS_DIR") or _base("database.migrations_dir", str(DEFAULT_MIGRATIONS_DIR))

    # Auth
    jwt_secret = _env("JWT_SECRET") or _read_config_file("auth.jwt_secret") or _base("auth.jwt_secret") or DEV_JWT_SECRET
    jwt_algorithm = _env("JWT_ALGORITHM") or _base("auth.jwt_algorithm", "HS256")
    ttl_text = _env("JWT_TTL_MINUTES") or _base("auth.token_ttl_minutes", "1440")
    rounds_text = _env("BCRYPT_ROUNDS") or _base("auth.bcrypt_rounds", "12")
    allow_admin_text = _env("ALLOW_ADMIN_CREATION") or _read_config_file("auth.allow_admin_registration") or _base("auth.allow_admin_registration", "false")

    # CORS
    origins_text = _env("CORS_ALLOW_ORIGINS") or _read_config_file("cors.allow_origins") or _base("cors.allow_origins", "*")
    origins = [o.strip() for o in str(origins_text).split(",") if o.strip()]

    if jwt_secret == DEV_JWT_SECRET:
        logger.warning("config.auth.dev_secret_in_use; set JWT_SECRET outside development")

    try:
        return AppConfig(
            database=DatabaseConfig(
                dsn=dsn,
                auto_apply_migrations=_truthy(auto_migrate),
                migrations_dir=str(migrations_dir),
            ),
            auth=AuthConfig(
                jwt_secret=jwt_secret,
                jwt_algorithm=str(jwt_algorithm).strip(),
                token_ttl_minutes=int(str(ttl_text).strip()),
                bcrypt_rounds=int(str(rounds_text).strip()),
                allow_admin_registration=_truthy(allow_admin_text),
            ),
            cors=CorsConfig(allow_origins=origins or ["*"]),
        )
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Process-wide cached configuration; call ``get_config.cache_clear()`` to reload."""
    return load_config()


__all__ = [
    "AppConfig",
    "AuthConfig",
    "CorsConfig",
    "DatabaseConfig",
    "get_config",
    "load_config",
]
