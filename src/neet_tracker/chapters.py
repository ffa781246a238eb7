"""Chapter mutations. Every write recomputes the owning subject in the same transaction."""
import logging

from neet_tracker.db import get_connection, transaction
from neet_tracker.errors import NotFoundError, ValidationError
from neet_tracker.models import Chapter, ChapterProgress, Subject, RESIZABLE, TOGGLES
from neet_tracker.progress import (
    REVISION_THRESHOLD, calculate_chapter_progress, recompute_with_connection,
)

logger = logging.getLogger(__name__)

COUNT_FIELDS = {count_field: kind for kind, (count_field, _) in RESIZABLE.items()}
ARRAY_FIELDS = {array: count_field for count_field, array in TOGGLES.values()}


def _load(conn, chapter_id: int) -> Chapter:
    row = conn.execute("SELECT * FROM chapters WHERE id = ?", (chapter_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"Chapter {chapter_id} not found")
    return Chapter.from_row(row)


def _save(conn, chapter: Chapter) -> None:
    row = chapter.to_row()
    conn.execute(
        """UPDATE chapters SET lecture_count=?, lectures_completed=?, dpp_completed=?,
        assignment_questions=?, assignment_completed=?, kattar_questions=?,
        kattar_completed=?, revision_score=? WHERE id=?""",
        (
            row["lecture_count"], row["lectures_completed"], row["dpp_completed"],
            row["assignment_questions"], row["assignment_completed"],
            row["kattar_questions"], row["kattar_completed"],
            row["revision_score"], chapter.id,
        ),
    )


def _validate_revision_score(score: int) -> None:
    if not isinstance(score, int) or isinstance(score, bool) or not 1 <= score <= 10:
        raise ValidationError("Revision score must be between 1 and 10")


def apply_fields(chapter: Chapter, fields: dict) -> None:
    """Apply a dict of field edits to a chapter, validating each one.

    Count changes are applied first since they reset their completion arrays.
    """
    unknown = set(fields) - set(COUNT_FIELDS) - set(ARRAY_FIELDS) - {"revision_score"}
    if unknown:
        raise ValidationError(f"Unknown chapter fields: {', '.join(sorted(unknown))}")
    for name, kind in COUNT_FIELDS.items():
        if name in fields:
            chapter.resize(kind, int(fields[name]))
    for name, count_field in ARRAY_FIELDS.items():
        if name not in fields:
            continue
        values = list(fields[name])
        expected = getattr(chapter, count_field)
        if len(values) != expected:
            raise ValidationError(f"{name} must have {expected} entries, got {len(values)}")
        setattr(chapter, name, [bool(v) for v in values])
    if "revision_score" in fields:
        _validate_revision_score(fields["revision_score"])
        chapter.revision_score = fields["revision_score"]


def check_chapter_fields(db_path: str, chapter_id: int, fields: dict) -> None:
    """Raise the error `update_chapter` would raise for these fields, without writing."""
    apply_fields(get_chapter(db_path, chapter_id), fields)


def _mutate(db_path: str, chapter_id: int, change) -> Chapter:
    with transaction(db_path) as conn:
        chapter = _load(conn, chapter_id)
        change(chapter)
        _save(conn, chapter)
        recompute_with_connection(conn, chapter.subject_id)
    return chapter


def create_subject(db_path: str, name: str) -> Subject:
    with transaction(db_path) as conn:
        existing = conn.execute("SELECT id FROM subjects WHERE name = ?", (name,)).fetchone()
        if existing:
            raise ValidationError(f"Subject '{name}' already exists")
        cursor = conn.execute("INSERT INTO subjects (name) VALUES (?)", (name,))
        subject_id = cursor.lastrowid
    return Subject(id=subject_id, name=name)


def create_chapter(
    db_path: str,
    subject_id: int,
    name: str,
    lecture_count: int,
    assignment_questions: int = 0,
    kattar_questions: int = 0,
    revision_score: int = 1,
) -> Chapter:
    _validate_revision_score(revision_score)
    if min(lecture_count, assignment_questions, kattar_questions) < 0:
        raise ValidationError("Counts must not be negative")
    chapter = Chapter(
        id=0,
        subject_id=subject_id,
        name=name,
        lecture_count=lecture_count,
        assignment_questions=assignment_questions,
        kattar_questions=kattar_questions,
        revision_score=revision_score,
    )
    with transaction(db_path) as conn:
        if conn.execute("SELECT 1 FROM subjects WHERE id = ?", (subject_id,)).fetchone() is None:
            raise NotFoundError(f"Subject {subject_id} not found")
        row = chapter.to_row()
        cursor = conn.execute(
            """INSERT INTO chapters
            (subject_id, name, lecture_count, lectures_completed, dpp_completed,
            assignment_questions, assignment_completed, kattar_questions,
            kattar_completed, revision_score)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                subject_id, name, row["lecture_count"], row["lectures_completed"],
                row["dpp_completed"], row["assignment_questions"],
                row["assignment_completed"], row["kattar_questions"],
                row["kattar_completed"], row["revision_score"],
            ),
        )
        chapter.id = cursor.lastrowid
        recompute_with_connection(conn, subject_id)
    return chapter


def get_chapter(db_path: str, chapter_id: int) -> Chapter:
    conn = get_connection(db_path)
    try:
        return _load(conn, chapter_id)
    finally:
        conn.close()


def get_chapters_for_subject(db_path: str, subject_id: int) -> list[Chapter]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM chapters WHERE subject_id = ? ORDER BY id", (subject_id,)
    ).fetchall()
    conn.close()
    return [Chapter.from_row(r) for r in rows]


def get_chapter_progress(db_path: str, chapter_id: int) -> ChapterProgress:
    return calculate_chapter_progress(get_chapter(db_path, chapter_id))


def _toggle(db_path: str, chapter_id: int, kind: str, index: int, completed: bool) -> Chapter:
    chapter = _mutate(
        db_path, chapter_id, lambda ch: ch.set_completed(kind, index, completed)
    )
    logger.info("Chapter %s %s[%d] -> %s", chapter_id, kind, index, completed)
    return chapter


def toggle_lecture(db_path: str, chapter_id: int, index: int, completed: bool) -> Chapter:
    return _toggle(db_path, chapter_id, "lecture", index, completed)


def toggle_dpp(db_path: str, chapter_id: int, index: int, completed: bool) -> Chapter:
    return _toggle(db_path, chapter_id, "dpp", index, completed)


def toggle_assignment(db_path: str, chapter_id: int, index: int, completed: bool) -> Chapter:
    return _toggle(db_path, chapter_id, "assignment", index, completed)


def toggle_kattar(db_path: str, chapter_id: int, index: int, completed: bool) -> Chapter:
    return _toggle(db_path, chapter_id, "kattar", index, completed)


def set_lecture_count(db_path: str, chapter_id: int, count: int) -> Chapter:
    return _mutate(db_path, chapter_id, lambda ch: ch.resize("lecture", count))


def set_assignment_questions(db_path: str, chapter_id: int, count: int) -> Chapter:
    return _mutate(db_path, chapter_id, lambda ch: ch.resize("assignment", count))


def set_kattar_questions(db_path: str, chapter_id: int, count: int) -> Chapter:
    return _mutate(db_path, chapter_id, lambda ch: ch.resize("kattar", count))


def set_revision_score(db_path: str, chapter_id: int, score: int) -> Chapter:
    _validate_revision_score(score)
    return _mutate(db_path, chapter_id, lambda ch: setattr(ch, "revision_score", score))


def update_chapter(db_path: str, chapter_id: int, fields: dict) -> Chapter:
    return _mutate(db_path, chapter_id, lambda ch: apply_fields(ch, fields))


def bulk_update_chapters(db_path: str, updates: dict) -> list[Subject]:
    """Apply {chapter_id: fields} in one transaction, then recompute each affected subject once."""
    subject_ids = []
    with transaction(db_path) as conn:
        for chapter_id, fields in updates.items():
            chapter = _load(conn, chapter_id)
            apply_fields(chapter, fields)
            _save(conn, chapter)
            if chapter.subject_id not in subject_ids:
                subject_ids.append(chapter.subject_id)
        subjects = [recompute_with_connection(conn, sid) for sid in subject_ids]
    logger.info("Bulk updated %d chapters across %d subjects", len(updates), len(subjects))
    return subjects


def delete_chapter(db_path: str, chapter_id: int) -> None:
    with transaction(db_path) as conn:
        chapter = _load(conn, chapter_id)
        conn.execute("DELETE FROM chapters WHERE id = ?", (chapter_id,))
        recompute_with_connection(conn, chapter.subject_id)


def get_chapters_needing_improvement(db_path: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT c.id, c.name, c.revision_score, s.name as subject_name
        FROM chapters c JOIN subjects s ON c.subject_id = s.id
        WHERE c.revision_score < ?
        ORDER BY c.revision_score ASC, c.id""",
        (REVISION_THRESHOLD,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]
