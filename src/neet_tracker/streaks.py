"""Consecutive-day study streak tracking."""
import logging
from dataclasses import dataclass
from datetime import date

from neet_tracker.db import get_connection, transaction
from neet_tracker.errors import ValidationError
from neet_tracker.models import StudyStreak

logger = logging.getLogger(__name__)


@dataclass
class StreakUpdate:
    streak: StudyStreak
    already_marked: bool = False


def get_streak(db_path: str, user_id: str, streak_type: str = "daily") -> StudyStreak | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM study_streaks WHERE user_id = ? AND streak_type = ?",
        (user_id, streak_type),
    ).fetchone()
    conn.close()
    return StudyStreak.from_row(row) if row else None


def next_streak(streak: StudyStreak, today: date) -> StudyStreak | None:
    """Return the streak after studying on `today`, or None if already marked.

    Raises ValidationError for dates before the last study date.
    """
    days_diff = (today - date.fromisoformat(streak.last_study_date)).days
    if days_diff < 0:
        raise ValidationError(
            f"Cannot mark {today.isoformat()}: last study date is {streak.last_study_date}"
        )
    if days_diff == 0:
        return None
    current = streak.current_streak + 1 if days_diff == 1 else 1
    return StudyStreak(
        id=streak.id,
        user_id=streak.user_id,
        streak_type=streak.streak_type,
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        last_study_date=today.isoformat(),
        total_days=streak.total_days + 1,
    )


def mark_studied_today(
    db_path: str, user_id: str, today: date | None = None, streak_type: str = "daily"
) -> StreakUpdate:
    today = today or date.today()
    with transaction(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM study_streaks WHERE user_id = ? AND streak_type = ?",
            (user_id, streak_type),
        ).fetchone()
        if row is None:
            cursor = conn.execute(
                """INSERT INTO study_streaks
                (user_id, streak_type, current_streak, longest_streak, last_study_date, total_days)
                VALUES (?, ?, 1, 1, ?, 1)""",
                (user_id, streak_type, today.isoformat()),
            )
            logger.info("Started %s streak for %s", streak_type, user_id)
            return StreakUpdate(StudyStreak(
                id=cursor.lastrowid, user_id=user_id, streak_type=streak_type,
                current_streak=1, longest_streak=1,
                last_study_date=today.isoformat(), total_days=1,
            ))
        existing = StudyStreak.from_row(row)
        updated = next_streak(existing, today)
        if updated is None:
            return StreakUpdate(existing, already_marked=True)
        conn.execute(
            """UPDATE study_streaks SET current_streak=?, longest_streak=?,
            last_study_date=?, total_days=? WHERE id=?""",
            (
                updated.current_streak, updated.longest_streak,
                updated.last_study_date, updated.total_days, updated.id,
            ),
        )
    logger.info("Streak for %s now %d (best %d)", user_id, updated.current_streak, updated.longest_streak)
    return StreakUpdate(updated)
