"""Menstrual cycle records and phase helpers."""
from datetime import date

from neet_tracker.db import get_connection
from neet_tracker.errors import ValidationError
from neet_tracker.models import MenstrualCycle

FOLLICULAR_END = 13
OVULATION_END = 16
MENSTRUAL_PENALTY_PER_DAY = 5
LUTEAL_PENALTY_PER_DAY = 2


def record_cycle(
    db_path: str,
    user_id: str,
    cycle_start_date: date,
    cycle_length: int = 28,
    period_length: int = 5,
    energy_level: float = 5,
    study_capacity: float = 5,
) -> MenstrualCycle:
    if not 0 < period_length <= cycle_length:
        raise ValidationError("Period length must be between 1 and the cycle length")
    for name, value in (("energy_level", energy_level), ("study_capacity", study_capacity)):
        if not 0 <= value <= 10:
            raise ValidationError(f"{name} must be between 0 and 10")
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO menstrual_cycles
        (user_id, cycle_start_date, cycle_length, period_length, energy_level, study_capacity)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (user_id, cycle_start_date.isoformat(), cycle_length, period_length, energy_level, study_capacity),
    )
    conn.commit()
    cycle_id = cursor.lastrowid
    conn.close()
    return MenstrualCycle(
        id=cycle_id, user_id=user_id, cycle_start_date=cycle_start_date.isoformat(),
        cycle_length=cycle_length, period_length=period_length,
        energy_level=energy_level, study_capacity=study_capacity,
    )


def get_cycles(db_path: str, user_id: str, limit: int = 7) -> list[MenstrualCycle]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM menstrual_cycles WHERE user_id = ? ORDER BY cycle_start_date DESC LIMIT ?",
        (user_id, limit),
    ).fetchall()
    conn.close()
    return [MenstrualCycle.from_row(r) for r in rows]


def cycle_day(cycle: MenstrualCycle, today: date) -> int:
    elapsed = (today - date.fromisoformat(cycle.cycle_start_date)).days
    return elapsed % cycle.cycle_length + 1


def cycle_phase(cycle: MenstrualCycle, today: date) -> str:
    day = cycle_day(cycle, today)
    if day <= cycle.period_length:
        return "menstrual"
    if day <= FOLLICULAR_END:
        return "follicular"
    if day <= OVULATION_END:
        return "ovulation"
    return "luteal"


def phase_adjustment(cycle: MenstrualCycle, today: date) -> float:
    """Change to the cyclic impact score for where `today` falls in this cycle."""
    day = cycle_day(cycle, today)
    phase = cycle_phase(cycle, today)
    if phase == "menstrual":
        return -MENSTRUAL_PENALTY_PER_DAY * (cycle.period_length - day + 1)
    if phase == "follicular":
        return 5
    if phase == "ovulation":
        return 10
    return -LUTEAL_PENALTY_PER_DAY * (day - OVULATION_END)
