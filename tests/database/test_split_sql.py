from __future__ import annotations

from pathlib import Path

from src.shift_booking.shift_booking.database.bootstrap import split_sql

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_semicolons_inside_literals_and_comments_do_not_split():
    script = """
    -- seed; comments are dropped
    INSERT INTO t(a) VALUES ('x;y');
    /* block; comment */
    UPDATE t SET a = "z;" WHERE a = 'it\\'s';
    """

    assert list(split_sql(script)) == [
        "INSERT INTO t(a) VALUES ('x;y')",
        "UPDATE t SET a = \"z;\" WHERE a = 'it\\'s'",
    ]


def test_database_switches_are_skipped_and_tail_is_kept():
    script = "CREATE DATABASE IF NOT EXISTS other;\nUSE other;\nSELECT 1;\nSELECT 2"

    assert list(split_sql(script)) == ["SELECT 1", "SELECT 2"]


def test_schema_file_splits_into_create_statements():
    statements = list(split_sql((REPO_ROOT / "database" / "schema.sql").read_text(encoding="utf-8")))

    assert statements
    assert all(s.upper().startswith("CREATE TABLE") for s in statements)
    assert any("bookings" in s and "active_marker" in s for s in statements)
