import os
from enum import Enum
from typing import Final

from pydantic import BaseModel

from src.maquiz.domain.errors import ConfigurationError


class Level(Enum):
    # Enum Member = ("Label", "Icon", lower bound of the average percent)
    EXPERT = ("Expert", "🏆", 95)
    ADVANCED = ("Advanced", "🥇", 80)
    PROFICIENT = ("Proficient", "🥈", 60)
    APPRENTICE = ("Apprentice", "🥉", 50)
    BEGINNER = ("Beginner", "🌱", 0)

    def __init__(self, label: str, icon: str, min_percent: int):
        self.label = label
        self.icon = icon
        self.min_percent = min_percent

    @classmethod
    def for_percent(cls, average_percent: int) -> "Level":
        """First band (top-down) whose lower bound is reached."""
        for level in cls:
            if average_percent >= level.min_percent:
                return level
        return cls.BEGINNER


class EngineConfig:
    # --- Rounds ---
    ROUND_SIZE: Final[int] = 20
    QUESTION_TYPE: Final[str] = "mc"
    RANDOM_QUESTIONS_RPC: Final[str] = "get_random_questions_mc"

    # --- Categories ---
    DEFAULT_CATEGORY: Final[str] = "General"
    ALL_CATEGORIES: Final[str] = "all"

    # --- Analytics ---
    # Bounded read windows; tune freely, they are not correctness rules.
    USER_HISTORY_LIMIT: Final[int] = 500
    TEAM_HISTORY_LIMIT: Final[int] = 2000
    MIN_TIMES_SEEN: Final[int] = 3
    HARDEST_QUESTIONS_LIMIT: Final[int] = 5
    UNKNOWN_USER_LABEL: Final[str] = "unknown"

    # --- Observability ---
    METRICS_PORT: Final[int] = 8000


class Backend(str, Enum):
    SQLITE = "sqlite"
    SUPABASE = "supabase"


class Settings(BaseModel):
    """
    Runtime settings resolved from environment variables.
    """

    backend: Backend = Backend.SQLITE
    db_path: str = "data/quiz.db"
    supabase_url: str | None = None
    supabase_key: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        raw_backend = os.getenv("MAQUIZ_BACKEND", Backend.SQLITE.value).lower()
        try:
            backend = Backend(raw_backend)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown MAQUIZ_BACKEND '{raw_backend}'"
            ) from e

        return cls(
            backend=backend,
            db_path=os.getenv("MAQUIZ_DB_PATH", "data/quiz.db"),
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_key=os.getenv("SUPABASE_KEY") or None,
        )

    def supabase_credentials(self) -> tuple[str, str]:
        if not self.supabase_url or not self.supabase_key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_KEY must both be set "
                f"(has_url={bool(self.supabase_url)}, "
                f"key_len={len(self.supabase_key or '')})"
            )
        return self.supabase_url, self.supabase_key
