"""Daily question goals and question-volume statistics."""
import logging
from datetime import date, datetime, timedelta

from neet_tracker.db import get_connection, transaction
from neet_tracker.errors import ValidationError
from neet_tracker.models import Chapter, DailyGoal, SUBJECT_KEYS

logger = logging.getLogger(__name__)

GOAL_FIELDS = tuple(
    f"{subject}_{kind}" for kind in ("questions", "dpp", "revision") for subject in SUBJECT_KEYS
)
QUESTION_FIELDS = tuple(f"{subject}_questions" for subject in SUBJECT_KEYS)

DAILY_TARGET = 250
WEEKLY_TARGET = 2000
MONTHLY_TARGET = 7500
TREND_BUCKETS = 12

# (minimum questions, emoji, message), checked top down
SUMMARY_TIERS = [
    (500, "🔥", "INCREDIBLE! You're on fire today!"),
    (300, "😘", "Amazing work! You're crushing your goals!"),
    (250, "😊", "Great job! You're on track for success!"),
    (150, "😐", "Good start! Let's aim higher tomorrow!"),
    (1, "😟", "Every question counts! Keep going!"),
]


def validate_counts(counts: dict) -> None:
    unknown = set(counts) - set(GOAL_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown goal fields: {', '.join(sorted(unknown))}")
    for key, value in counts.items():
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
            raise ValidationError(f"{key} must be a non-negative number")


def upsert_daily_goal(db_path: str, user_id: str, goal_date: date, counts: dict) -> DailyGoal:
    """Create or update the goal row for (user, date).

    Fields not present in `counts` keep their stored values; total_questions
    is recomputed from the four subject question counts on every write.
    """
    validate_counts(counts)
    columns = [f for f in GOAL_FIELDS if f in counts]
    values = [counts[f] for f in columns]
    now = datetime.now().isoformat()
    insert_cols = ", ".join(["user_id", "date", *columns, "updated_at"])
    placeholders = ", ".join("?" * (len(columns) + 3))
    updates = ", ".join([*(f"{c}=excluded.{c}" for c in columns), "updated_at=excluded.updated_at"])
    with transaction(db_path) as conn:
        conn.execute(
            f"""INSERT INTO daily_goals ({insert_cols}) VALUES ({placeholders})
            ON CONFLICT(user_id, date) DO UPDATE SET {updates}""",
            (user_id, goal_date.isoformat(), *values, now),
        )
        conn.execute(
            f"UPDATE daily_goals SET total_questions = {' + '.join(QUESTION_FIELDS)} "
            "WHERE user_id = ? AND date = ?",
            (user_id, goal_date.isoformat()),
        )
        row = conn.execute(
            "SELECT * FROM daily_goals WHERE user_id = ? AND date = ?",
            (user_id, goal_date.isoformat()),
        ).fetchone()
    goal = DailyGoal.from_row(row)
    logger.info("Daily goal %s for %s: %d questions", goal.date, user_id, goal.total_questions)
    return goal


def get_daily_goal(db_path: str, user_id: str, goal_date: date) -> DailyGoal | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM daily_goals WHERE user_id = ? AND date = ?",
        (user_id, goal_date.isoformat()),
    ).fetchone()
    conn.close()
    return DailyGoal.from_row(row) if row else None


def get_goals(db_path: str, user_id: str, limit: int | None = None) -> list[DailyGoal]:
    """Goal history ordered oldest first. With `limit`, only the most recent rows."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM daily_goals WHERE user_id = ? ORDER BY date DESC LIMIT ?",
        (user_id, -1 if limit is None else limit),
    ).fetchall()
    conn.close()
    return [DailyGoal.from_row(r) for r in reversed(rows)]


def get_daily_summary(db_path: str, user_id: str, goal_date: date | None = None) -> dict:
    goal = get_daily_goal(db_path, user_id, goal_date or date.today())
    if goal is None:
        goal = DailyGoal(id=0, user_id=user_id, date=(goal_date or date.today()).isoformat())
    breakdown = {
        subject: {
            "questions": getattr(goal, f"{subject}_questions"),
            "dpp": getattr(goal, f"{subject}_dpp"),
            "revision": getattr(goal, f"{subject}_revision"),
        }
        for subject in SUBJECT_KEYS
    }
    emoji, message = "😴", "Time to start your NEET preparation journey!"
    for minimum, tier_emoji, tier_message in SUMMARY_TIERS:
        if goal.total_questions >= minimum:
            emoji, message = tier_emoji, tier_message
            break
    return {
        "date": goal.date,
        "total_questions": goal.total_questions,
        "total_dpp": sum(b["dpp"] for b in breakdown.values()),
        "total_revision": sum(b["revision"] for b in breakdown.values()),
        "subject_breakdown": breakdown,
        "emoji": emoji,
        "motivational_message": message,
    }


def chapter_questions(chapters: list[Chapter]) -> int:
    """Completed DPP + assignment + kattar items across chapters."""
    return sum(
        ch.completed_count("dpp") + ch.completed_count("assignment") + ch.completed_count("kattar")
        for ch in chapters
    )


def question_stats(goals: list[DailyGoal], chapters: list[Chapter], today: date) -> dict:
    week_start = today - timedelta(days=6)
    month_start = today.replace(day=1)
    daily = weekly = monthly = logged = 0
    for goal in goals:
        goal_date = date.fromisoformat(goal.date)
        logged += goal.total_questions
        if goal_date == today:
            daily = goal.total_questions
        if week_start <= goal_date <= today:
            weekly += goal.total_questions
        if month_start <= goal_date <= today:
            monthly += goal.total_questions
    chapterwise = chapter_questions(chapters)
    return {
        "daily": daily,
        "weekly": weekly,
        "monthly": monthly,
        "lifetime": logged + chapterwise,
        "chapterwise": chapterwise,
        "daily_goal_achieved": daily >= DAILY_TARGET,
        "weekly_progress": min(weekly / WEEKLY_TARGET * 100, 100.0),
        "monthly_progress": min(monthly / MONTHLY_TARGET * 100, 100.0),
    }


def get_question_stats(db_path: str, user_id: str, today: date | None = None) -> dict:
    goals = get_goals(db_path, user_id)
    conn = get_connection(db_path)
    chapters = [Chapter.from_row(r) for r in conn.execute("SELECT * FROM chapters").fetchall()]
    conn.close()
    return question_stats(goals, chapters, today or date.today())


def week_start(day: date) -> date:
    """Sunday on or before `day`."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def bucket_goals(goals: list[DailyGoal], period: str, limit: int = TREND_BUCKETS) -> list[dict]:
    buckets = {}
    for goal in goals:
        goal_date = date.fromisoformat(goal.date)
        if period == "weekly":
            start = week_start(goal_date)
            key = start.isoformat()
            bucket = buckets.setdefault(key, {
                "week_start": key,
                "week_end": (start + timedelta(days=6)).isoformat(),
                "total_questions": 0,
            })
        elif period == "monthly":
            key = goal_date.strftime("%Y-%m")
            bucket = buckets.setdefault(key, {
                "month": key,
                "month_name": goal_date.strftime("%b %Y"),
                "total_questions": 0,
            })
        else:
            raise ValidationError(f"Unknown trend period '{period}'")
        bucket["total_questions"] += goal.total_questions
    return [buckets[k] for k in sorted(buckets)][-limit:]


def get_trend(db_path: str, user_id: str, period: str = "daily") -> list[dict]:
    if period == "daily":
        return [
            {
                "date": g.date,
                "total_questions": g.total_questions,
                **{f: getattr(g, f) for f in QUESTION_FIELDS},
            }
            for g in get_goals(db_path, user_id, limit=30)
        ]
    return bucket_goals(get_goals(db_path, user_id), period)


def get_weekly_comparison(db_path: str, user_id: str, today: date | None = None) -> dict:
    today = today or date.today()
    this_start = week_start(today)
    last_start = this_start - timedelta(days=7)
    this_week = last_week = 0
    for goal in get_goals(db_path, user_id):
        goal_date = date.fromisoformat(goal.date)
        if this_start <= goal_date <= today:
            this_week += goal.total_questions
        elif last_start <= goal_date < this_start:
            last_week += goal.total_questions
    improvement = (this_week - last_week) / last_week * 100 if last_week else 0.0
    return {"this_week": this_week, "last_week": last_week, "improvement": round(improvement, 2)}
