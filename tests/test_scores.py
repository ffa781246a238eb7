from datetime import date

import pytest

from neet_tracker.db import init_db
from neet_tracker.errors import ValidationError
from neet_tracker.scores import get_score_trend, get_test_analytics, get_test_scores, record_test_score


def test_record_and_list_newest_first(tmp_db):
    init_db(tmp_db)
    record_test_score(tmp_db, "u1", "Weekly Test", "1", 480, date(2025, 1, 5))
    record_test_score(tmp_db, "u1", "AITS", "2", 520, date(2025, 1, 12))
    record_test_score(tmp_db, "u2", "AITS", "2", 600, date(2025, 1, 12))
    tests = get_test_scores(tmp_db, "u1")
    assert [t.score for t in tests] == [520, 480]
    assert [t.test_number for t in get_test_scores(tmp_db, "u1", test_type="Weekly Test")] == ["1"]
    assert len(get_test_scores(tmp_db, "u1", limit=1)) == 1


@pytest.mark.parametrize("test_type,number,score", [
    ("Olympiad", "1", 400),
    ("AITS", "", 400),
    ("AITS", "1", -1),
    ("AITS", "1", 721),
    ("AITS", "1", "600"),
    ("AITS", "1", True),
])
def test_record_validation(tmp_db, test_type, number, score):
    init_db(tmp_db)
    with pytest.raises(ValidationError):
        record_test_score(tmp_db, "u1", test_type, number, score)
    assert get_test_scores(tmp_db, "u1") == []


def test_analytics(tmp_db):
    init_db(tmp_db)
    assert get_test_analytics(tmp_db, "u1")["total_tests"] == 0
    for day, score in ((1, 500), (8, 450), (15, 560)):
        record_test_score(tmp_db, "u1", "Full Length Test", str(day), score, date(2025, 2, day))
    analytics = get_test_analytics(tmp_db, "u1")
    assert analytics == {
        "total_tests": 3,
        "average_score": 503,
        "last_score": 560,
        "best_score": 560,
        "improvement": 110,
    }


def test_score_trend_oldest_first(tmp_db):
    init_db(tmp_db)
    for day, score in ((1, 500), (8, 450), (15, 560)):
        record_test_score(tmp_db, "u1", "Rank Booster", str(day), score, date(2025, 2, day))
    trend = get_score_trend(tmp_db, "u1", limit=2)
    assert [t["score"] for t in trend] == [450, 560]
