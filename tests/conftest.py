import pytest

from src.maquiz.adapters.db_manager import DatabaseManager
from src.maquiz.adapters.sqlite_repository import SQLiteQuizRepository
from src.maquiz.domain.models import UserIdentity
from tests.drivers.factories import make_pool, make_question


@pytest.fixture
def sample_question():
    return make_question("Q1", correct_index=2, category="Web")


@pytest.fixture
def sample_pool():
    return make_pool(5)


@pytest.fixture
def identity():
    return UserIdentity(user_id="user-1", user_label="ann@example.com")


@pytest.fixture
def in_memory_repo():
    """Returns a clean, empty in-memory repository."""
    db_manager = DatabaseManager(db_path=":memory:")
    repo = SQLiteQuizRepository(db_manager=db_manager)
    yield repo
    db_manager.close()


@pytest.fixture
def populated_repo(in_memory_repo, sample_pool):
    """Returns a repo pre-filled with five active questions."""
    in_memory_repo.seed_questions(sample_pool)
    return in_memory_repo
