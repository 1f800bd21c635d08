from __future__ import annotations

from sqlalchemy import create_engine, inspect

from formbuilder.config import DEFAULT_MIGRATIONS_DIR
from formbuilder.db.migrations_runner import _split_statements, apply_migrations


def test_comment_lines_with_semicolons_are_not_statements():
    sql = "-- header; with a semicolon\nCREATE TABLE a (id INTEGER);\n-- trailing; note\nCREATE TABLE b (id INTEGER);\n"
    assert _split_statements(sql) == ["CREATE TABLE a (id INTEGER)", "CREATE TABLE b (id INTEGER)"]


def test_shipped_migrations_apply_to_a_fresh_database(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    try:
        applied = apply_migrations(engine, DEFAULT_MIGRATIONS_DIR)
        assert applied == sorted(p.name for p in DEFAULT_MIGRATIONS_DIR.glob("*.sql"))
        tables = set(inspect(engine).get_table_names())
        assert {"users", "topics", "templates", "form_responses", "comments", "likes"} <= tables
        # second run is a no-op
        assert apply_migrations(engine, DEFAULT_MIGRATIONS_DIR) == []
    finally:
        engine.dispose()
