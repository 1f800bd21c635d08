"""Architectural tests for package layering.

Tests use file-system and AST inspection only so that no application code is
executed. Each test asserts one boundary between packages.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, List, Set

PACKAGE = Path(__file__).resolve().parents[2] / "formbuilder"


def _modules(*parts: str) -> List[Path]:
    root = PACKAGE.joinpath(*parts)
    if root.is_file():
        return [root]
    return sorted(p for p in root.rglob("*.py"))


def _imported_roots(path: Path) -> Set[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    roots: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            roots.update(alias.name.split(".")[0] for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            roots.add(node.module.split(".")[0])
    return roots


def _offenders(paths: Iterable[Path], forbidden: Set[str]) -> List[str]:
    return [str(p.relative_to(PACKAGE)) for p in paths if _imported_roots(p) & forbidden]


def _calls_name(path: Path, name: str) -> bool:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    for node in ast.walk(tree):
        if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == name:
            return True
    return False


def test_routes_and_guards_do_not_touch_the_store():
    offenders = _offenders(_modules("routes") + _modules("guards") + _modules("http"), {"sqlalchemy"})
    assert offenders == [], f"HTTP layer imports sqlalchemy: {offenders}"


def test_logic_and_models_are_framework_free():
    offenders = _offenders(_modules("logic") + _modules("models"), {"fastapi", "starlette"})
    assert offenders == [], f"framework imports outside the HTTP layer: {offenders}"


def test_only_repositories_and_db_issue_sql():
    allowed = {p for p in _modules("logic") if p.name.startswith("repository_")} | set(_modules("db"))
    offenders = [
        str(p.relative_to(PACKAGE))
        for p in PACKAGE.rglob("*.py")
        if p not in allowed and _calls_name(p, "sql_text")
    ]
    assert offenders == [], f"raw SQL outside repositories: {offenders}"


def test_logic_outside_repositories_does_not_import_sqlalchemy():
    logic = [p for p in _modules("logic") if not p.name.startswith("repository_")]
    offenders = _offenders(logic, {"sqlalchemy"})
    assert offenders == [], f"logic imports sqlalchemy directly: {offenders}"


def test_client_speaks_http_only():
    offenders = _offenders(_modules("client"), {"fastapi", "starlette", "sqlalchemy"})
    assert offenders == [], f"client imports server-side stack: {offenders}"
    assert "httpx" in _imported_roots(PACKAGE / "client" / "session.py")


def test_every_migration_is_numbered_sql():
    migrations = sorted((PACKAGE.parent / "migrations").glob("*"))
    assert migrations, "no migrations found"
    for path in migrations:
        assert path.suffix == ".sql", path.name
        assert path.name[:3].isdigit(), path.name
