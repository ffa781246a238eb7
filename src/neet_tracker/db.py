"""Database initialization and connection management."""
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from neet_tracker.errors import DependencyFailure

DEFAULT_DB_PATH = os.environ.get(
    "NEET_TRACKER_DB", str(Path.home() / ".neet_tracker" / "tracker.db")
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    completion_percentage REAL DEFAULT 0,
    total_questions INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS chapters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id INTEGER NOT NULL REFERENCES subjects(id),
    name TEXT NOT NULL,
    lecture_count INTEGER NOT NULL DEFAULT 0,
    lectures_completed TEXT NOT NULL DEFAULT '[]',
    dpp_completed TEXT NOT NULL DEFAULT '[]',
    assignment_questions INTEGER NOT NULL DEFAULT 0,
    assignment_completed TEXT NOT NULL DEFAULT '[]',
    kattar_questions INTEGER NOT NULL DEFAULT 0,
    kattar_completed TEXT NOT NULL DEFAULT '[]',
    revision_score INTEGER NOT NULL DEFAULT 1,
    UNIQUE(subject_id, name)
);

CREATE TABLE IF NOT EXISTS daily_goals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    physics_questions INTEGER DEFAULT 0,
    chemistry_questions INTEGER DEFAULT 0,
    botany_questions INTEGER DEFAULT 0,
    zoology_questions INTEGER DEFAULT 0,
    physics_dpp INTEGER DEFAULT 0,
    chemistry_dpp INTEGER DEFAULT 0,
    botany_dpp INTEGER DEFAULT 0,
    zoology_dpp INTEGER DEFAULT 0,
    physics_revision REAL DEFAULT 0,
    chemistry_revision REAL DEFAULT 0,
    botany_revision REAL DEFAULT 0,
    zoology_revision REAL DEFAULT 0,
    total_questions INTEGER DEFAULT 0,
    updated_at TEXT,
    UNIQUE(user_id, date)
);

CREATE TABLE IF NOT EXISTS test_performances (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    test_type TEXT NOT NULL,
    test_number TEXT NOT NULL,
    score INTEGER NOT NULL,
    test_date TEXT NOT NULL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS mood_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL UNIQUE,
    mood TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS study_streaks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    streak_type TEXT NOT NULL DEFAULT 'daily',
    current_streak INTEGER NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_study_date TEXT,
    total_days INTEGER NOT NULL DEFAULT 0,
    UNIQUE(user_id, streak_type)
);

CREATE TABLE IF NOT EXISTS menstrual_cycles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    cycle_start_date TEXT NOT NULL,
    cycle_length INTEGER NOT NULL DEFAULT 28,
    period_length INTEGER NOT NULL DEFAULT 5,
    energy_level REAL NOT NULL DEFAULT 5,
    study_capacity REAL NOT NULL DEFAULT 5
);

CREATE TABLE IF NOT EXISTS rank_predictions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    predicted_rank INTEGER NOT NULL,
    confidence REAL NOT NULL,
    factors TEXT NOT NULL,
    recommendations TEXT NOT NULL,
    risk_level TEXT NOT NULL,
    days_remaining INTEGER,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(db_path: str = DEFAULT_DB_PATH):
    """Yield a connection that commits on success and rolls back on error.

    The write lock is taken up front so concurrent writers queue on the busy
    timeout instead of failing on lock upgrade. SQLite errors surface as
    DependencyFailure.
    """
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise DependencyFailure(f"Database write failed: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
