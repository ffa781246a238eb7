from datetime import date

from neet_tracker.db import init_db
from neet_tracker.settings import get_exam_date, get_setting, get_user_id, set_setting


def test_settings_defaults(tmp_db):
    init_db(tmp_db)
    assert get_setting(tmp_db, "missing") is None
    assert get_setting(tmp_db, "missing", "x") == "x"
    assert get_exam_date(tmp_db) == date(2026, 5, 3)
    assert get_user_id(tmp_db) == "default"


def test_set_setting_upserts(tmp_db):
    init_db(tmp_db)
    set_setting(tmp_db, "exam_date", "2027-05-02")
    set_setting(tmp_db, "exam_date", "2027-05-09")
    assert get_exam_date(tmp_db) == date(2027, 5, 9)
