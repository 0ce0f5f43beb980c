import json
from pathlib import Path

from src.maquiz.adapters.seeder import DataSeeder

BUNDLED_SEED = Path(__file__).resolve().parents[3] / "data" / "seed_questions.json"


def write_seed(path, rows):
    path.write_text(json.dumps(rows), encoding="utf-8")
    return str(path)


def test_seeds_empty_repository(in_memory_repo, tmp_path):
    seed_file = write_seed(
        tmp_path / "seed.json",
        [
            {"id": 1, "text": "A?", "options": ["x", "y"], "correct_idx": 0},
            {"id": 2, "text": "B?", "options": ["x", "y"], "correct_idx": 9},
        ],
    )

    loaded = DataSeeder(in_memory_repo).seed_if_empty(seed_file)

    assert loaded == 1
    assert [q.id for q in in_memory_repo.list_active()] == ["1"]


def test_does_not_touch_populated_repository(populated_repo, tmp_path):
    seed_file = write_seed(
        tmp_path / "seed.json",
        [{"id": "new", "text": "A?", "options": ["x", "y"], "correct_idx": 0}],
    )

    assert DataSeeder(populated_repo).seed_if_empty(seed_file) == 0
    assert populated_repo.get_questions_by_ids(["new"]) == []


def test_missing_seed_file_loads_nothing(in_memory_repo, tmp_path):
    loaded = DataSeeder(in_memory_repo).seed_if_empty(str(tmp_path / "nope.json"))

    assert loaded == 0
    assert in_memory_repo.is_empty()


def test_bundled_seed_file_is_valid(in_memory_repo):
    loaded = DataSeeder(in_memory_repo).seed_if_empty(str(BUNDLED_SEED))

    assert loaded == 6
    assert len(in_memory_repo.list_active()) == 5
