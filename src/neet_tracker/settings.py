"""Persistent key/value settings."""
from datetime import date
from neet_tracker.db import get_connection

DEFAULT_EXAM_DATE = "2026-05-03"
DEFAULT_USER_ID = "default"


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_exam_date(db_path: str) -> date:
    return date.fromisoformat(get_setting(db_path, "exam_date", DEFAULT_EXAM_DATE))


def get_user_id(db_path: str) -> str:
    return get_setting(db_path, "user_id", DEFAULT_USER_ID)
