"""Daily mood entries."""
from datetime import date, timedelta

from neet_tracker.db import get_connection
from neet_tracker.errors import ValidationError
from neet_tracker.models import MOODS, MoodEntry


def validate_mood(mood: str) -> None:
    if mood not in MOODS:
        raise ValidationError(f"Mood must be one of: {', '.join(MOODS)}")


def set_mood_entry(db_path: str, entry_date: date, mood: str) -> MoodEntry:
    validate_mood(mood)
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO mood_entries (date, mood) VALUES (?, ?) ON CONFLICT(date) DO UPDATE SET mood=?",
        (entry_date.isoformat(), mood, mood),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM mood_entries WHERE date = ?", (entry_date.isoformat(),)).fetchone()
    conn.close()
    return MoodEntry(**dict(row))


def get_mood_entries(db_path: str) -> list[MoodEntry]:
    """Entries newest first."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM mood_entries ORDER BY date DESC").fetchall()
    conn.close()
    return [MoodEntry(**dict(r)) for r in rows]


def get_mood_insights(db_path: str, today: date | None = None) -> dict:
    """Happy-day count and the run of consecutive happy days ending today."""
    today = today or date.today()
    entries = get_mood_entries(db_path)
    by_date = {e.date: e.mood for e in entries}
    streak = 0
    day = today
    while by_date.get(day.isoformat()) == "happy":
        streak += 1
        day -= timedelta(days=1)
    return {
        "happy_days": sum(1 for e in entries if e.mood == "happy"),
        "total_entries": len(entries),
        "current_streak": streak,
    }
