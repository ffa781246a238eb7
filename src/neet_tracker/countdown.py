"""Exam countdown and preparation phase."""
from datetime import date

PHASES = [
    (180, {
        "name": "Foundation Building",
        "focus": "Complete syllabus coverage + basic problem solving",
        "daily_target": "800-1000 questions",
        "score_target": "550-600",
    }),
    (90, {
        "name": "Skill Enhancement",
        "focus": "Advanced problem solving + speed optimization",
        "daily_target": "1000-1200 questions",
        "score_target": "600-650",
    }),
    (30, {
        "name": "Peak Performance",
        "focus": "Consistency + full-length mocks",
        "daily_target": "1200+ questions",
        "score_target": "650-700",
    }),
    (0, {
        "name": "Final Sprint",
        "focus": "Revision and exam temperament",
        "daily_target": "Mock tests + revision",
        "score_target": "700+",
    }),
]


def days_remaining(exam_date: date, today: date | None = None) -> int:
    return (exam_date - (today or date.today())).days


def get_phase(days_left: int) -> dict:
    for threshold, phase in PHASES:
        if days_left > threshold:
            return phase
    return PHASES[-1][1]


def get_urgency_level(days_left: int) -> str:
    if days_left < 30:
        return "critical"
    if days_left < 90:
        return "high"
    if days_left < 180:
        return "medium"
    return "low"


def get_countdown(exam_date: date, today: date | None = None) -> dict:
    days_left = days_remaining(exam_date, today)
    return {
        "exam_date": exam_date.isoformat(),
        "days": days_left,
        "weeks": days_left // 7,
        "months": days_left // 30,
        "phase": get_phase(days_left),
        "urgency": get_urgency_level(days_left),
    }
