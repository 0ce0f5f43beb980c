from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    field_validator,
    model_validator,
)

from src.config import EngineConfig, Level
from src.maquiz.domain.errors import InvalidChoiceError


def _coerce_category(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return EngineConfig.DEFAULT_CATEGORY
    return value.strip() if isinstance(value, str) else value


# --- Entities ---
class Question(BaseModel):
    id: str
    text: str
    options: list[str] = Field(min_length=2)
    correct_index: StrictInt
    active: bool = True
    category: str = EngineConfig.DEFAULT_CATEGORY

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # Backends hand out bigint or uuid keys; details store them as text.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        return _coerce_category(value)

    @model_validator(mode="after")
    def _check_correct_index(self) -> "Question":
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"correct_index {self.correct_index} out of range "
                f"for {len(self.options)} options"
            )
        return self


class AttemptDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    chosen_index: int | None = None
    correct_index: int | None = None
    is_correct: bool = False
    category: str = EngineConfig.DEFAULT_CATEGORY

    @field_validator("question_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        return _coerce_category(value)


class Attempt(BaseModel):
    """
    Immutable outcome of one completed round. Rows read back from history may
    predate ``user_id`` or ``details``, so those stay optional here.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    user_id: str | None = None
    user_label: str = EngineConfig.UNKNOWN_USER_LABEL
    score: int = Field(ge=0)
    total: int = Field(ge=0)
    created_at: datetime
    details: list[AttemptDetail] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("user_label", mode="before")
    @classmethod
    def _default_label(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return EngineConfig.UNKNOWN_USER_LABEL
        return value

    @field_validator("details", mode="before")
    @classmethod
    def _null_details(cls, value: Any) -> Any:
        return value or []

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive timestamps; history must sort as one kind.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class QuizRound(BaseModel):
    """
    One play-through: the sampled questions plus the user's choices.
    Owned by the caller; ``is_recorded`` makes recording idempotent and
    freezes the answers.
    """

    round_id: str = Field(default_factory=lambda: uuid4().hex)
    questions: list[Question] = Field(min_length=1)
    answers: dict[str, int | None] = Field(default_factory=dict)
    recorded_attempt: Attempt | None = None
    is_recorded: bool = False

    @model_validator(mode="after")
    def _check_unique_questions(self) -> "QuizRound":
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("a round cannot contain the same question twice")
        return self

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def recorded_attempt_id(self) -> str | None:
        return self.recorded_attempt.id if self.recorded_attempt else None

    def choose(self, question_id: str, option_index: int | None) -> None:
        if self.is_recorded:
            raise InvalidChoiceError(
                f"Round {self.round_id} is already recorded; answers are final"
            )
        question = next((q for q in self.questions if q.id == question_id), None)
        if question is None:
            raise InvalidChoiceError(f"Question {question_id} is not in this round")
        if option_index is not None and not 0 <= option_index < len(
            question.options
        ):
            raise InvalidChoiceError(
                f"Option {option_index} does not exist for question {question_id}"
            )
        self.answers[question_id] = option_index

    def unanswered_ids(self) -> list[str]:
        return [q.id for q in self.questions if self.answers.get(q.id) is None]

    def is_complete(self) -> bool:
        return not self.unanswered_ids()

    def mark_recorded(self, attempt: Attempt) -> None:
        self.recorded_attempt = attempt
        self.is_recorded = True


class UserIdentity(BaseModel):
    user_id: str | None = None
    user_label: str = Field(min_length=1)


# --- Derived views (never persisted) ---
class UserSummary(BaseModel):
    attempt_count: int = 0
    average_percent: int = 0
    best_percent: int = 0
    last_percent: int = 0
    last_attempt_at: datetime | None = None


class LeaderboardEntry(BaseModel):
    user_label: str
    attempt_count: int
    average_percent: int
    best_percent: int
    last_attempt_at: datetime | None = None
    level: Level


class QuestionDifficultyEntry(BaseModel):
    question_id: str
    text: str
    category: str
    times_seen: int
    times_correct: int
    accuracy_percent: int


class CategoryEntry(BaseModel):
    category: str
    question_count: int
    answers_count: int
    average_accuracy_percent: int


class ProgressPoint(BaseModel):
    created_at: datetime
    percent: int
