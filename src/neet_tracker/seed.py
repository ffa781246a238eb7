"""Seed the database with the NEET subjects and their chapters."""
import json
from pathlib import Path

from neet_tracker.db import get_connection
from neet_tracker.chapters import create_chapter, create_subject

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database has already been seeded with subjects."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]
    conn.close()
    return count > 0


def load_syllabus() -> list[dict]:
    return json.loads((CONTENT_DIR / "syllabus.json").read_text())["subjects"]


def seed_syllabus(db_path: str) -> None:
    """Insert every subject and chapter from syllabus.json."""
    for subject in load_syllabus():
        created = create_subject(db_path, subject["name"])
        for chapter in subject["chapters"]:
            create_chapter(
                db_path,
                created.id,
                chapter["name"],
                lecture_count=chapter["lectures"],
                assignment_questions=chapter.get("assignment", 0),
                kattar_questions=chapter.get("kattar", 0),
            )


def seed_all(db_path: str) -> None:
    if is_seeded(db_path):
        return
    seed_syllabus(db_path)
