from neet_tracker.db import init_db, get_connection
from neet_tracker.seed import is_seeded, load_syllabus, seed_all
from neet_tracker.progress import get_subjects


def test_syllabus_has_four_subjects():
    names = [s["name"] for s in load_syllabus()]
    assert names == ["Physics", "Chemistry", "Botany", "Zoology"]


def test_seed_all(tmp_db):
    init_db(tmp_db)
    assert not is_seeded(tmp_db)
    seed_all(tmp_db)
    assert is_seeded(tmp_db)
    subjects = get_subjects(tmp_db)
    assert [s.name for s in subjects] == ["Physics", "Chemistry", "Botany", "Zoology"]
    assert all(s.completion_percentage == 0 for s in subjects)
    assert all(s.total_questions > 0 for s in subjects)
    conn = get_connection(tmp_db)
    count = conn.execute("SELECT COUNT(*) FROM chapters").fetchone()[0]
    conn.close()
    assert count == sum(len(s["chapters"]) for s in load_syllabus())


def test_seed_all_is_idempotent(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    seed_all(tmp_db)
    assert len(get_subjects(tmp_db)) == 4
