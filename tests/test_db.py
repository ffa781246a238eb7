"""Tests for database initialization and connection management."""
import sqlite3

import pytest

from neet_tracker.db import init_db, get_connection, transaction
from neet_tracker.errors import DependencyFailure


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {
        "subjects", "chapters", "daily_goals", "test_performances",
        "mood_entries", "study_streaks", "menstrual_cycles",
        "rank_predictions", "user_settings",
    }
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO user_settings (key, value) VALUES ('test', 'val')")
    row = conn.execute("SELECT key, value FROM user_settings WHERE key='test'").fetchone()
    assert row["key"] == "test"
    conn.close()


def test_transaction_commits(tmp_db):
    init_db(tmp_db)
    with transaction(tmp_db) as conn:
        conn.execute("INSERT INTO subjects (name) VALUES ('Physics')")
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0] == 1
    conn.close()


def test_transaction_rolls_back_on_error(tmp_db):
    init_db(tmp_db)
    with pytest.raises(RuntimeError):
        with transaction(tmp_db) as conn:
            conn.execute("INSERT INTO subjects (name) VALUES ('Physics')")
            raise RuntimeError("boom")
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0] == 0
    conn.close()


def test_subject_names_are_unique(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO subjects (name) VALUES ('Physics')")
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO subjects (name) VALUES ('Physics')")
    conn.close()


def test_transaction_wraps_store_errors(tmp_db):
    init_db(tmp_db)
    with pytest.raises(DependencyFailure):
        with transaction(tmp_db) as conn:
            conn.execute("INSERT INTO no_such_table (x) VALUES (1)")
