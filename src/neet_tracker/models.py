"""Data classes for the tracker domain model."""
import json
from dataclasses import dataclass, field, fields, asdict
from typing import Optional

from neet_tracker.errors import ValidationError

SUBJECT_KEYS = ("physics", "chemistry", "botany", "zoology")
MOODS = ("sad", "neutral", "happy")
TEST_TYPES = ("Weekly Test", "Rank Booster", "Test Series", "AITS", "Full Length Test")
MAX_TEST_SCORE = 720

# count field -> completion arrays sized by it
RESIZABLE = {
    "lecture": ("lecture_count", ("lectures_completed", "dpp_completed")),
    "assignment": ("assignment_questions", ("assignment_completed",)),
    "kattar": ("kattar_questions", ("kattar_completed",)),
}

# toggle kind -> (count field, completion array)
TOGGLES = {
    "lecture": ("lecture_count", "lectures_completed"),
    "dpp": ("lecture_count", "dpp_completed"),
    "assignment": ("assignment_questions", "assignment_completed"),
    "kattar": ("kattar_questions", "kattar_completed"),
}


def _from_row(cls, row):
    data = dict(row)
    return cls(**{f.name: data[f.name] for f in fields(cls) if f.name in data})


@dataclass
class Subject:
    id: int
    name: str
    completion_percentage: float = 0.0
    total_questions: int = 0


@dataclass
class Chapter:
    id: int
    subject_id: int
    name: str
    lecture_count: int = 0
    lectures_completed: list = field(default_factory=list)
    dpp_completed: list = field(default_factory=list)
    assignment_questions: int = 0
    assignment_completed: list = field(default_factory=list)
    kattar_questions: int = 0
    kattar_completed: list = field(default_factory=list)
    revision_score: int = 1

    def __post_init__(self):
        for count_field, arrays in RESIZABLE.values():
            count = getattr(self, count_field)
            for name in arrays:
                values = getattr(self, name)
                if not values and count:
                    setattr(self, name, [False] * count)
                elif len(values) != count:
                    raise ValidationError(
                        f"{name} has {len(values)} entries but {count_field} is {count}"
                    )

    @classmethod
    def from_row(cls, row) -> "Chapter":
        data = dict(row)
        for _, arrays in RESIZABLE.values():
            for name in arrays:
                data[name] = [bool(v) for v in json.loads(data[name] or "[]")]
        return _from_row(cls, data)

    def to_row(self) -> dict:
        row = asdict(self)
        for _, arrays in RESIZABLE.values():
            for name in arrays:
                row[name] = json.dumps(row[name])
        return row

    def resize(self, kind: str, count: int) -> None:
        """Change an item count, resetting its completion array(s) to all-false."""
        if kind not in RESIZABLE:
            raise ValidationError(f"Cannot resize '{kind}'")
        if count < 0:
            raise ValidationError("Count must not be negative")
        count_field, arrays = RESIZABLE[kind]
        setattr(self, count_field, count)
        for name in arrays:
            setattr(self, name, [False] * count)

    def set_completed(self, kind: str, index: int, completed: bool) -> None:
        if kind not in TOGGLES:
            raise ValidationError(f"Unknown completion kind '{kind}'")
        count_field, name = TOGGLES[kind]
        count = getattr(self, count_field)
        if not 0 <= index < count:
            raise ValidationError(f"{kind} index {index} out of range (0-{count - 1})")
        getattr(self, name)[index] = bool(completed)

    def completed_count(self, kind: str) -> int:
        return sum(1 for done in getattr(self, TOGGLES[kind][1]) if done)


@dataclass
class DailyGoal:
    id: int
    user_id: str
    date: str
    physics_questions: int = 0
    chemistry_questions: int = 0
    botany_questions: int = 0
    zoology_questions: int = 0
    physics_dpp: int = 0
    chemistry_dpp: int = 0
    botany_dpp: int = 0
    zoology_dpp: int = 0
    physics_revision: float = 0.0
    chemistry_revision: float = 0.0
    botany_revision: float = 0.0
    zoology_revision: float = 0.0
    total_questions: int = 0
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "DailyGoal":
        return _from_row(cls, row)


@dataclass
class TestPerformance:
    id: int
    user_id: str
    test_type: str
    test_number: str
    score: int
    test_date: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "TestPerformance":
        return _from_row(cls, row)


@dataclass
class MoodEntry:
    id: int
    date: str
    mood: str


@dataclass
class StudyStreak:
    id: int
    user_id: str
    streak_type: str = "daily"
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: Optional[str] = None
    total_days: int = 0

    @classmethod
    def from_row(cls, row) -> "StudyStreak":
        return _from_row(cls, row)


@dataclass
class MenstrualCycle:
    id: int
    user_id: str
    cycle_start_date: str
    cycle_length: int = 28
    period_length: int = 5
    energy_level: float = 5.0
    study_capacity: float = 5.0

    @classmethod
    def from_row(cls, row) -> "MenstrualCycle":
        return _from_row(cls, row)


@dataclass
class ChapterProgress:
    lecture_progress: float
    dpp_progress: float
    assignment_progress: float
    kattar_progress: float
    overall_progress: float
    needs_improvement: bool


@dataclass
class PredictionFactors:
    progress_score: float
    test_trend: float
    consistency: float
    biological_factor: float
    external_factor: float


@dataclass
class RankPrediction:
    predicted_rank: int
    confidence: float
    factors: PredictionFactors
    recommendations: list
    risk_level: str
    composite_score: float = 0.0
    is_fallback: bool = False

    def to_dict(self) -> dict:
        return asdict(self)
