"""Plain-text daily progress report for the notification channel."""
from datetime import date

from neet_tracker.goals import get_daily_summary, get_question_stats
from neet_tracker.progress import get_subject_dashboard
from neet_tracker.scores import get_test_scores
from neet_tracker.streaks import get_streak

NEXT_GOAL_SCORE = 600


def next_goal(last_score: int | None) -> str:
    if last_score is not None and last_score < NEXT_GOAL_SCORE:
        return f"Improve test score from {last_score} to {NEXT_GOAL_SCORE}+"
    return "Complete 300+ questions tomorrow"


def format_daily_report(
    report_date: date,
    summary: dict,
    stats: dict,
    dashboard: dict,
    current_streak: int = 0,
    last_score: int | None = None,
) -> str:
    lines = [
        f"NEET progress for {report_date.strftime('%A, %d %B %Y')} {summary['emoji']}",
        f"Questions today: {summary['total_questions']} (week {stats['weekly']}, lifetime {stats['lifetime']})",
        f"DPP: {summary['total_dpp']}  Revision: {summary['total_revision']:g}h",
    ]
    for subject in dashboard["subjects"]:
        lines.append(f"{subject['name']}: {subject['completion_percentage']:.1f}% complete")
    lines.append(f"Study streak: {current_streak} day{'s' if current_streak != 1 else ''}")
    if last_score is not None:
        lines.append(f"Last test: {last_score}/720")
    lines.append(f"Next goal: {next_goal(last_score)}")
    lines.append(summary["motivational_message"])
    return "\n".join(lines)


def build_daily_report(db_path: str, user_id: str, report_date: date | None = None) -> str:
    report_date = report_date or date.today()
    streak = get_streak(db_path, user_id)
    tests = get_test_scores(db_path, user_id, limit=1)
    return format_daily_report(
        report_date,
        get_daily_summary(db_path, user_id, report_date),
        get_question_stats(db_path, user_id, report_date),
        get_subject_dashboard(db_path),
        current_streak=streak.current_streak if streak else 0,
        last_score=tests[0].score if tests else None,
    )
