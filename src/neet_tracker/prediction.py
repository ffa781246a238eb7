"""Weighted AIR rank prediction.

The prediction combines five factors, each normalised to 0-100:

- progress: syllabus completion, stepped and penalised below 80%
- test trend: recent mock average plus its movement against older mocks
- consistency: share of logged days with questions and average volume
- biological: cycle energy/capacity and the current cycle phase
- external: how close the exam is

The rank mapping and thresholds are heuristic constants, not a fitted model.
"""
import json
import logging
import sqlite3
from datetime import date, datetime

from neet_tracker import countdown, cycles, goals, scores
from neet_tracker.db import get_connection
from neet_tracker.models import (
    MAX_TEST_SCORE, DailyGoal, MenstrualCycle, PredictionFactors, RankPrediction,
    Subject, TestPerformance,
)
from neet_tracker.progress import get_subjects
from neet_tracker.settings import get_exam_date

logger = logging.getLogger(__name__)

WEIGHTS = {
    "progress_score": 0.4,
    "test_trend": 0.25,
    "consistency": 0.15,
    "biological_factor": 0.1,
    "external_factor": 0.1,
}

# (minimum average completion, score)
PROGRESS_STEPS = [(97, 100), (95, 95), (90, 85), (85, 75), (80, 65)]
INCOMPLETE_SYLLABUS_RATE = 0.6

MAX_RECOMMENDATIONS = 4
GOAL_WINDOW = 30
TEST_WINDOW = 10
CYCLE_WINDOW = 7


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def progress_score(subjects: list[Subject]) -> float:
    if not subjects:
        return 0.0
    average = sum(s.completion_percentage for s in subjects) / len(subjects)
    for minimum, score in PROGRESS_STEPS:
        if average >= minimum:
            return float(score)
    return average * INCOMPLETE_SYLLABUS_RATE


def mock_trend(tests: list[TestPerformance]) -> float:
    """Tests must be ordered newest first."""
    if len(tests) < 2:
        return 50.0
    recent = [t.score for t in tests[:3]]
    older = [t.score for t in tests[3:6]]
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older) if older else recent_avg
    return _clamp(recent_avg / MAX_TEST_SCORE * 100 + (recent_avg - older_avg) / 7.2)


def consistency(goal_history: list[DailyGoal]) -> float:
    if not goal_history:
        return 0.0
    active_days = sum(1 for g in goal_history if g.total_questions > 0)
    average = sum(g.total_questions for g in goal_history) / len(goal_history)
    return _clamp(50 * active_days / len(goal_history) + min(50.0, average / 5))


def biological_factor(cycle_history: list[MenstrualCycle], today: date) -> float:
    if not cycle_history:
        return 75.0
    count = len(cycle_history)
    energy = sum(c.energy_level for c in cycle_history) / count / 10 * 100
    capacity = sum(c.study_capacity for c in cycle_history) / count / 10 * 100
    cyclic = 100.0
    for cycle in cycle_history:
        cyclic += cycles.phase_adjustment(cycle, today)
    cyclic = _clamp(cyclic)
    return _clamp(0.4 * energy + 0.4 * capacity + 0.2 * cyclic)


def external_factor(days_left: int) -> float:
    if days_left > 500:
        return 85.0
    if days_left > 300:
        return 75.0
    if days_left > 100:
        return 65.0
    return 50.0


def composite_score(factors: PredictionFactors) -> float:
    return sum(getattr(factors, name) * weight for name, weight in WEIGHTS.items())


def rank_from_score(score: float) -> int:
    return max(1, round(2000 - score * 19))


def assess_risk(rank: int, confidence: float) -> str:
    if rank <= 50 and confidence > 0.8:
        return "low"
    if rank <= 100 and confidence > 0.6:
        return "medium"
    return "high"


def recommendations_for(factors: PredictionFactors, rank: int) -> list[str]:
    rules = [
        (factors.progress_score < 60,
         "Finish the syllabus first: clear pending lectures, DPPs and assignments chapter by chapter."),
        (factors.test_trend < 50,
         "Take more full-length mock tests and review every mistake afterwards."),
        (factors.consistency < 70,
         "Build a fixed daily routine and log questions every single day."),
        (factors.biological_factor < 60,
         "Plan heavy topics for high-energy days and keep low-energy days for revision."),
        (rank > 50,
         "Raise daily question volume and focus on high-weightage topics."),
    ]
    return [text for applies, text in rules if applies][:MAX_RECOMMENDATIONS]


def compute_prediction(factors: PredictionFactors) -> RankPrediction:
    score = composite_score(factors)
    rank = rank_from_score(score)
    confidence = _clamp(score / 100, 0.3, 0.95)
    return RankPrediction(
        predicted_rank=rank,
        confidence=confidence,
        factors=factors,
        recommendations=recommendations_for(factors, rank),
        risk_level=assess_risk(rank, confidence),
        composite_score=round(score, 2),
    )


def fallback_prediction() -> RankPrediction:
    return RankPrediction(
        predicted_rank=1500,
        confidence=0.5,
        factors=PredictionFactors(50.0, 50.0, 50.0, 50.0, 50.0),
        recommendations=[
            "Keep logging your daily questions and chapter progress.",
            "Take regular mock tests so the prediction has data to work with.",
        ],
        risk_level="high",
        composite_score=50.0,
        is_fallback=True,
    )


def predict(db_path: str, user_id: str, today: date | None = None) -> RankPrediction:
    """Predict a rank from current data. Store failures give the neutral fallback."""
    today = today or date.today()
    try:
        subjects = get_subjects(db_path)
        goal_history = goals.get_goals(db_path, user_id, limit=GOAL_WINDOW)
        tests = scores.get_test_scores(db_path, user_id, limit=TEST_WINDOW)
        cycle_history = cycles.get_cycles(db_path, user_id, limit=CYCLE_WINDOW)
        days_left = countdown.days_remaining(get_exam_date(db_path), today)
    except (sqlite3.Error, ValueError):
        logger.exception("Rank prediction data fetch failed, using fallback")
        return fallback_prediction()
    factors = PredictionFactors(
        progress_score=progress_score(subjects),
        test_trend=mock_trend(tests),
        consistency=consistency(goal_history),
        biological_factor=biological_factor(cycle_history, today),
        external_factor=external_factor(days_left),
    )
    prediction = compute_prediction(factors)
    logger.info(
        "Predicted rank %d (score %.1f, confidence %.2f)",
        prediction.predicted_rank, prediction.composite_score, prediction.confidence,
    )
    return prediction


def save_prediction(
    db_path: str, user_id: str, prediction: RankPrediction, days_left: int | None = None
) -> int:
    data = prediction.to_dict()
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO rank_predictions
        (user_id, predicted_rank, confidence, factors, recommendations, risk_level, days_remaining, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            user_id, prediction.predicted_rank, prediction.confidence,
            json.dumps(data["factors"]), json.dumps(data["recommendations"]),
            prediction.risk_level, days_left, datetime.now().isoformat(),
        ),
    )
    conn.commit()
    prediction_id = cursor.lastrowid
    conn.close()
    return prediction_id


def get_prediction_history(db_path: str, user_id: str, limit: int = 10) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM rank_predictions WHERE user_id = ? ORDER BY id DESC LIMIT ?",
        (user_id, limit),
    ).fetchall()
    conn.close()
    history = []
    for r in rows:
        item = dict(r)
        item["factors"] = json.loads(item["factors"])
        item["recommendations"] = json.loads(item["recommendations"])
        history.append(item)
    return history


def get_rank_prediction(db_path: str, user_id: str, today: date | None = None) -> RankPrediction:
    """Predict and persist. Fallback predictions are not stored."""
    today = today or date.today()
    prediction = predict(db_path, user_id, today)
    if not prediction.is_fallback:
        days_left = countdown.days_remaining(get_exam_date(db_path), today)
        save_prediction(db_path, user_id, prediction, days_left)
    return prediction
