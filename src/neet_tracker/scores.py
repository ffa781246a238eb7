"""Mock test score recording and analytics."""
import logging
from datetime import date, datetime

from neet_tracker.db import get_connection
from neet_tracker.errors import ValidationError
from neet_tracker.models import MAX_TEST_SCORE, TEST_TYPES, TestPerformance

logger = logging.getLogger(__name__)


def validate_test_score(test_type: str, test_number: str, score: int) -> None:
    if test_type not in TEST_TYPES:
        raise ValidationError(f"Unknown test type '{test_type}'")
    if not str(test_number).strip():
        raise ValidationError("Test number is required")
    if not isinstance(score, int) or isinstance(score, bool) or not 0 <= score <= MAX_TEST_SCORE:
        raise ValidationError(f"Score must be a whole number between 0 and {MAX_TEST_SCORE}")


def record_test_score(
    db_path: str,
    user_id: str,
    test_type: str,
    test_number: str,
    score: int,
    test_date: date | None = None,
) -> TestPerformance:
    validate_test_score(test_type, test_number, score)
    test_date = (test_date or date.today()).isoformat()
    created_at = datetime.now().isoformat()
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO test_performances (user_id, test_type, test_number, score, test_date, created_at)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (user_id, test_type, str(test_number), score, test_date, created_at),
    )
    conn.commit()
    test_id = cursor.lastrowid
    conn.close()
    logger.info("Recorded %s #%s: %d/%d", test_type, test_number, score, MAX_TEST_SCORE)
    return TestPerformance(
        id=test_id, user_id=user_id, test_type=test_type, test_number=str(test_number),
        score=score, test_date=test_date, created_at=created_at,
    )


def get_test_scores(
    db_path: str, user_id: str, test_type: str | None = None, limit: int | None = None
) -> list[TestPerformance]:
    """Tests newest first, optionally filtered by type."""
    query = "SELECT * FROM test_performances WHERE user_id = ?"
    params = [user_id]
    if test_type:
        query += " AND test_type = ?"
        params.append(test_type)
    query += " ORDER BY test_date DESC, id DESC LIMIT ?"
    params.append(-1 if limit is None else limit)
    conn = get_connection(db_path)
    rows = conn.execute(query, params).fetchall()
    conn.close()
    return [TestPerformance.from_row(r) for r in rows]


def get_test_analytics(db_path: str, user_id: str) -> dict:
    tests = get_test_scores(db_path, user_id)
    if not tests:
        return {"total_tests": 0, "average_score": 0, "last_score": 0, "best_score": 0, "improvement": 0}
    return {
        "total_tests": len(tests),
        "average_score": round(sum(t.score for t in tests) / len(tests)),
        "last_score": tests[0].score,
        "best_score": max(t.score for t in tests),
        "improvement": tests[0].score - tests[1].score if len(tests) >= 2 else 0,
    }


def get_score_trend(db_path: str, user_id: str, limit: int = 10) -> list[dict]:
    """The most recent scores, oldest first, for charting."""
    tests = get_test_scores(db_path, user_id, limit=limit)
    return [
        {"test_date": t.test_date, "test_type": t.test_type, "test_number": t.test_number, "score": t.score}
        for t in reversed(tests)
    ]
