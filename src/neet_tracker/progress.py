"""Chapter and subject completion rollups."""
import logging
import sqlite3

from neet_tracker.db import get_connection
from neet_tracker.errors import NotFoundError
from neet_tracker.models import Chapter, ChapterProgress, Subject

logger = logging.getLogger(__name__)

REVISION_THRESHOLD = 6


def _percent(done: int, total: int) -> float:
    if total == 0:
        return 0.0
    return (done / total) * 100


def chapter_items(chapter: Chapter) -> tuple[int, int]:
    """Return (completed, total) items across lectures, DPP, assignments and kattar."""
    total = (
        chapter.lecture_count * 2
        + chapter.assignment_questions
        + chapter.kattar_questions
    )
    completed = sum(
        chapter.completed_count(kind) for kind in ("lecture", "dpp", "assignment", "kattar")
    )
    return completed, total


def calculate_chapter_progress(chapter: Chapter) -> ChapterProgress:
    completed, total = chapter_items(chapter)
    return ChapterProgress(
        lecture_progress=_percent(chapter.completed_count("lecture"), chapter.lecture_count),
        dpp_progress=_percent(chapter.completed_count("dpp"), chapter.lecture_count),
        assignment_progress=_percent(
            chapter.completed_count("assignment"), chapter.assignment_questions
        ),
        kattar_progress=_percent(chapter.completed_count("kattar"), chapter.kattar_questions),
        overall_progress=_percent(completed, total),
        needs_improvement=chapter.revision_score < REVISION_THRESHOLD,
    )


def recompute_with_connection(conn: sqlite3.Connection, subject_id: int) -> Subject:
    """Recompute a subject's aggregates using an open connection (no commit)."""
    subject = conn.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,)).fetchone()
    if subject is None:
        raise NotFoundError(f"Subject {subject_id} not found")
    rows = conn.execute("SELECT * FROM chapters WHERE subject_id = ?", (subject_id,)).fetchall()
    completed = total = questions = 0
    for row in rows:
        chapter = Chapter.from_row(row)
        done, items = chapter_items(chapter)
        completed += done
        total += items
        questions += chapter.assignment_questions + chapter.kattar_questions
    percentage = _percent(completed, total)
    conn.execute(
        "UPDATE subjects SET completion_percentage = ?, total_questions = ? WHERE id = ?",
        (percentage, questions, subject_id),
    )
    logger.debug("Subject %s recomputed: %.1f%% of %d items", subject_id, percentage, total)
    return Subject(
        id=subject["id"],
        name=subject["name"],
        completion_percentage=percentage,
        total_questions=questions,
    )


def recompute_subject_progress(db_path: str, subject_id: int) -> Subject:
    conn = get_connection(db_path)
    try:
        subject = recompute_with_connection(conn, subject_id)
        conn.commit()
    finally:
        conn.close()
    return subject


def get_subjects(db_path: str) -> list[Subject]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM subjects ORDER BY id").fetchall()
    conn.close()
    return [Subject(**dict(r)) for r in rows]


def get_subject_dashboard(db_path: str) -> dict:
    """Per-subject completion with chapter counts, plus the overall average."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT s.*, COUNT(c.id) as chapter_count,
            SUM(CASE WHEN c.revision_score < ? THEN 1 ELSE 0 END) as weak_chapters
        FROM subjects s LEFT JOIN chapters c ON c.subject_id = s.id
        GROUP BY s.id ORDER BY s.id""",
        (REVISION_THRESHOLD,),
    ).fetchall()
    conn.close()
    subjects = [
        {
            "id": r["id"],
            "name": r["name"],
            "completion_percentage": round(r["completion_percentage"], 1),
            "total_questions": r["total_questions"],
            "chapter_count": r["chapter_count"],
            "weak_chapters": r["weak_chapters"] or 0,
        }
        for r in rows
    ]
    overall = (
        sum(s["completion_percentage"] for s in subjects) / len(subjects) if subjects else 0.0
    )
    return {"subjects": subjects, "overall": round(overall, 1)}
