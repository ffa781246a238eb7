from datetime import date
from unittest.mock import patch

from neet_tracker.db import init_db
from neet_tracker.seed import seed_all
from neet_tracker.app import (
    cmd_chapter, cmd_goals, cmd_import, cmd_mood, cmd_predict, cmd_report, cmd_test,
    cmd_trend, main, progress_color,
)
from neet_tracker.chapters import get_chapter
from neet_tracker.goals import get_daily_goal
from neet_tracker.mood import get_mood_entries
from neet_tracker.prediction import get_prediction_history
from neet_tracker.scores import get_test_scores
from neet_tracker.streaks import get_streak


def setup_db(db_path):
    init_db(db_path)
    seed_all(db_path)


def test_progress_color():
    assert progress_color(85) == "green"
    assert progress_color(50) == "yellow"
    assert progress_color(10) == "red"


def test_cmd_chapter_saves_staged_toggles(tmp_db):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", side_effect=["lecture", "dpp", "lecture", "save"]), \
         patch("neet_tracker.app.IntPrompt.ask", side_effect=[1, 1, 2, 1, 3]):
        cmd_chapter(tmp_db)
    chapter = get_chapter(tmp_db, 1)
    assert chapter.lectures_completed == [False, True, True, False]
    assert chapter.dpp_completed == [True, False, False, False]


def test_cmd_chapter_toggle_twice_reverts(tmp_db):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", side_effect=["kattar", "kattar", "save"]), \
         patch("neet_tracker.app.IntPrompt.ask", side_effect=[2, 1, 5, 5]):
        cmd_chapter(tmp_db)
    chapter = get_chapter(tmp_db, 7)
    assert chapter.name == "Some Basic Concepts of Chemistry"
    assert not any(chapter.kattar_completed)


def test_cmd_chapter_cancel_discards(tmp_db):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", side_effect=["revision", "cancel"]), \
         patch("neet_tracker.app.IntPrompt.ask", side_effect=[1, 1, 9]):
        cmd_chapter(tmp_db)
    assert get_chapter(tmp_db, 1).revision_score == 1


def test_cmd_chapter_rejects_out_of_range_revision(tmp_db):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", side_effect=["revision", "revision", "save"]), \
         patch("neet_tracker.app.IntPrompt.ask", side_effect=[1, 1, 11, 8]):
        cmd_chapter(tmp_db)
    assert get_chapter(tmp_db, 1).revision_score == 8


def test_cmd_goals_skips_blank_fields(tmp_db):
    setup_db(tmp_db)
    answers = ["120", "80", "", ""] + [""] * 4 + ["1.5", "", "", ""]
    with patch("neet_tracker.app.Prompt.ask", side_effect=answers):
        cmd_goals(tmp_db)
    goal = get_daily_goal(tmp_db, "default", date.today())
    assert goal.total_questions == 200
    assert goal.physics_revision == 1.5


def test_cmd_test_records_score(tmp_db):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", return_value="12"), \
         patch("neet_tracker.app.IntPrompt.ask", side_effect=[4, 588]):
        cmd_test(tmp_db)
    test = get_test_scores(tmp_db, "default")[0]
    assert test.test_type == "AITS"
    assert test.score == 588


def test_cmd_mood(tmp_db):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", return_value="happy"):
        cmd_mood(tmp_db)
    assert get_mood_entries(tmp_db)[0].mood == "happy"


def test_cmd_predict_saves_prediction(tmp_db):
    setup_db(tmp_db)
    cmd_predict(tmp_db)
    assert len(get_prediction_history(tmp_db, "default")) == 1


def test_read_only_commands_run_on_empty_data(tmp_db):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", return_value="monthly"):
        cmd_trend(tmp_db)
    cmd_report(tmp_db)


def test_cmd_import_missing_file(tmp_db, tmp_path):
    setup_db(tmp_db)
    with patch("neet_tracker.app.Prompt.ask", return_value=str(tmp_path / "nope.json")):
        cmd_import(tmp_db)


def test_main_loop_runs_commands_and_survives_errors(tmp_db):
    with patch("neet_tracker.app.DEFAULT_DB_PATH", tmp_db), \
         patch("neet_tracker.app.Prompt.ask", side_effect=["bogus", "mood", "ecstatic", "streak", "quit"]):
        main()
    assert get_mood_entries(tmp_db) == []
    assert get_streak(tmp_db, "default").current_streak == 1
