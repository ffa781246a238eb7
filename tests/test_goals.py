from datetime import date, timedelta

import pytest

from neet_tracker.db import init_db
from neet_tracker.errors import ValidationError
from neet_tracker.chapters import create_chapter, create_subject, update_chapter
from neet_tracker.goals import (
    bucket_goals, get_daily_goal, get_daily_summary, get_goals, get_question_stats,
    get_trend, get_weekly_comparison, upsert_daily_goal, week_start,
)

TODAY = date(2025, 3, 12)  # a Wednesday


def test_upsert_creates_and_totals(tmp_db):
    init_db(tmp_db)
    goal = upsert_daily_goal(tmp_db, "u1", TODAY, {
        "physics_questions": 40, "chemistry_questions": 60, "physics_dpp": 2,
    })
    assert goal.total_questions == 100
    assert goal.physics_dpp == 2


def test_upsert_keeps_unsupplied_fields(tmp_db):
    init_db(tmp_db)
    upsert_daily_goal(tmp_db, "u1", TODAY, {"physics_questions": 40, "botany_questions": 10})
    goal = upsert_daily_goal(tmp_db, "u1", TODAY, {"physics_questions": 70})
    assert goal.botany_questions == 10
    assert goal.total_questions == 80
    assert len(get_goals(tmp_db, "u1")) == 1


def test_upsert_rejects_bad_fields(tmp_db):
    init_db(tmp_db)
    with pytest.raises(ValidationError):
        upsert_daily_goal(tmp_db, "u1", TODAY, {"maths_questions": 5})
    with pytest.raises(ValidationError):
        upsert_daily_goal(tmp_db, "u1", TODAY, {"physics_questions": -1})
    assert get_daily_goal(tmp_db, "u1", TODAY) is None


def test_upsert_rejects_non_numeric_counts(tmp_db):
    init_db(tmp_db)
    with pytest.raises(ValidationError):
        upsert_daily_goal(tmp_db, "u1", TODAY, {"physics_questions": "50"})
    with pytest.raises(ValidationError):
        upsert_daily_goal(tmp_db, "u1", TODAY, {"physics_questions": True})
    assert get_daily_goal(tmp_db, "u1", TODAY) is None


def test_lifetime_includes_chapter_work(tmp_db):
    init_db(tmp_db)
    upsert_daily_goal(tmp_db, "u1", TODAY, {"zoology_questions": 50})
    subject = create_subject(tmp_db, "Zoology")
    chapter = create_chapter(tmp_db, subject.id, "Animal Kingdom",
                             lecture_count=2, assignment_questions=5, kattar_questions=4)
    update_chapter(tmp_db, chapter.id, {
        "lectures_completed": [True, True],
        "assignment_completed": [True, True, True, False, False],
        "kattar_completed": [True, True, False, False],
    })
    stats = get_question_stats(tmp_db, "u1", TODAY)
    assert stats["chapterwise"] == 5
    assert stats["lifetime"] == 55


def test_question_stats_windows(tmp_db):
    init_db(tmp_db)
    upsert_daily_goal(tmp_db, "u1", TODAY, {"physics_questions": 300})
    upsert_daily_goal(tmp_db, "u1", TODAY - timedelta(days=6), {"physics_questions": 100})
    upsert_daily_goal(tmp_db, "u1", TODAY - timedelta(days=7), {"physics_questions": 50})
    upsert_daily_goal(tmp_db, "u1", date(2025, 2, 28), {"physics_questions": 25})
    stats = get_question_stats(tmp_db, "u1", TODAY)
    assert stats["daily"] == 300
    assert stats["daily_goal_achieved"] is True
    assert stats["weekly"] == 400
    assert stats["monthly"] == 450
    assert stats["lifetime"] == 475
    assert stats["weekly_progress"] == pytest.approx(20)
    assert stats["monthly_progress"] == pytest.approx(6)


def test_daily_summary_tiers(tmp_db):
    init_db(tmp_db)
    empty = get_daily_summary(tmp_db, "u1", TODAY)
    assert empty["total_questions"] == 0
    assert empty["emoji"] == "😴"

    upsert_daily_goal(tmp_db, "u1", TODAY, {
        "physics_questions": 200, "chemistry_questions": 60,
        "physics_dpp": 1, "botany_dpp": 2, "zoology_revision": 1.5,
    })
    summary = get_daily_summary(tmp_db, "u1", TODAY)
    assert summary["total_questions"] == 260
    assert summary["emoji"] == "😊"
    assert summary["total_dpp"] == 3
    assert summary["total_revision"] == 1.5
    assert summary["subject_breakdown"]["physics"]["questions"] == 200


def test_week_start_is_sunday():
    assert week_start(TODAY) == date(2025, 3, 9)
    assert week_start(date(2025, 3, 9)) == date(2025, 3, 9)
    assert week_start(date(2025, 3, 15)) == date(2025, 3, 9)


def test_trends(tmp_db):
    init_db(tmp_db)
    for offset, count in ((0, 10), (1, 20), (4, 30), (20, 40)):
        upsert_daily_goal(tmp_db, "u1", TODAY - timedelta(days=offset), {"chemistry_questions": count})

    daily = get_trend(tmp_db, "u1", "daily")
    assert [d["total_questions"] for d in daily] == [40, 30, 20, 10]
    assert daily[-1]["chemistry_questions"] == 10

    weekly = get_trend(tmp_db, "u1", "weekly")
    assert weekly[-1] == {"week_start": "2025-03-09", "week_end": "2025-03-15", "total_questions": 30}
    assert weekly[-2]["total_questions"] == 30

    monthly = get_trend(tmp_db, "u1", "monthly")
    assert [m["month"] for m in monthly] == ["2025-02", "2025-03"]
    assert monthly[0]["month_name"] == "Feb 2025"

    with pytest.raises(ValidationError):
        get_trend(tmp_db, "u1", "yearly")


def test_bucket_goals_keeps_last_buckets(tmp_db):
    init_db(tmp_db)
    for week in range(15):
        upsert_daily_goal(tmp_db, "u1", TODAY - timedelta(weeks=week), {"botany_questions": week + 1})
    weekly = bucket_goals(get_goals(tmp_db, "u1"), "weekly")
    assert len(weekly) == 12
    assert weekly[-1]["total_questions"] == 1


def test_weekly_comparison(tmp_db):
    init_db(tmp_db)
    upsert_daily_goal(tmp_db, "u1", TODAY, {"physics_questions": 150})
    upsert_daily_goal(tmp_db, "u1", TODAY - timedelta(days=7), {"physics_questions": 100})
    comparison = get_weekly_comparison(tmp_db, "u1", TODAY)
    assert comparison == {"this_week": 150, "last_week": 100, "improvement": 50.0}
