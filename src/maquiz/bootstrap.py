import random

from src.config import Backend, Settings
from src.maquiz.adapters.db_manager import DatabaseManager
from src.maquiz.adapters.sqlite_repository import SQLiteQuizRepository
from src.maquiz.adapters.supabase_repository import SupabaseQuizRepository
from src.maquiz.application.service import QuizService
from src.shared.observability import configure_observability
from src.shared.telemetry import Telemetry


def build_repository(
    settings: Settings,
) -> SQLiteQuizRepository | SupabaseQuizRepository:
    if settings.backend is Backend.SUPABASE:
        url, key = settings.supabase_credentials()
        return SupabaseQuizRepository(url, key)
    return SQLiteQuizRepository(DatabaseManager(settings.db_path))


def build_quiz_service(
    settings: Settings | None = None,
    rng: random.Random | None = None,
    observability: bool = False,
) -> QuizService:
    """Composition root: settings -> repository -> QuizService."""
    settings = settings or Settings.from_env()
    if observability:
        configure_observability()

    repo = build_repository(settings)
    Telemetry("Bootstrap").log_info(
        "Quiz service ready", backend=settings.backend.value
    )
    return QuizService(questions=repo, attempts=repo, rng=rng)
