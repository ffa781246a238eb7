"""Import study history (daily goals, test scores, moods) from JSON or YAML files."""
import json
import logging
from datetime import date
from pathlib import Path

import yaml

from neet_tracker.errors import ValidationError
from neet_tracker.goals import GOAL_FIELDS, upsert_daily_goal, validate_counts
from neet_tracker.mood import set_mood_entry, validate_mood
from neet_tracker.scores import record_test_score, validate_test_score

logger = logging.getLogger(__name__)


def read_file_content(file_path: str) -> dict:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text())
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text())
    else:
        raise ValidationError(f"Unsupported file type '{suffix}' (use .json, .yaml or .yml)")
    if not isinstance(data, dict):
        raise ValidationError("Import file must contain a mapping at the top level")
    return data


def _as_date(value) -> date:
    # YAML already turns unquoted ISO dates into date objects
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _parse(data: dict) -> dict:
    """Check every record before anything is written. Raises ValidationError naming the bad record."""
    parsed = {"daily_goals": [], "tests": [], "moods": []}
    for section in parsed:
        for index, record in enumerate(data.get(section) or []):
            try:
                if section == "daily_goals":
                    fields = {k: v for k, v in record.items() if k in GOAL_FIELDS}
                    validate_counts(fields)
                    parsed[section].append((_as_date(record["date"]), fields))
                elif section == "tests":
                    args = (record["test_type"], record["test_number"], int(record["score"]))
                    validate_test_score(*args)
                    parsed[section].append(args + (_as_date(record["test_date"]),))
                else:
                    validate_mood(record["mood"])
                    parsed[section].append((_as_date(record["date"]), record["mood"]))
            except ValidationError as e:
                raise ValidationError(f"{section}[{index}]: {e}") from e
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"{section}[{index}]: bad record ({e!r})") from e
    return parsed


def import_file(db_path: str, file_path: str, user_id: str) -> dict:
    """Import every record in the file. Returns the number imported per kind.

    The whole file is validated first, so a bad record imports nothing. A
    store failure part way through the writes is not rolled back.
    """
    parsed = _parse(read_file_content(file_path))
    for goal_date, fields in parsed["daily_goals"]:
        upsert_daily_goal(db_path, user_id, goal_date, fields)
    for test_type, test_number, score, test_date in parsed["tests"]:
        record_test_score(db_path, user_id, test_type, test_number, score, test_date)
    for mood_date, mood in parsed["moods"]:
        set_mood_entry(db_path, mood_date, mood)
    counts = {section: len(records) for section, records in parsed.items()}
    logger.info("Imported %s from %s", counts, Path(file_path).name)
    return counts
