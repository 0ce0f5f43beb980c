import random
from dataclasses import dataclass, field
from enum import Enum

from src.config import EngineConfig
from src.maquiz.domain.errors import (
    EmptyPoolError,
    PersistenceError,
    SourceUnavailableError,
)
from src.maquiz.domain.models import Question
from src.maquiz.domain.ports import IQuestionSource
from src.maquiz.domain.question_selector import QuestionSelector
from src.shared.telemetry import Telemetry, measure_time


class PrimaryOutcome(str, Enum):
    USED = "used"
    UNSUPPORTED = "unsupported"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class PrimaryResult:
    outcome: PrimaryOutcome
    questions: list[Question] = field(default_factory=list)
    error_message: str = ""


class RandomSetSampler:
    """
    Draws a shuffled, duplicate-free set of active questions.

    The backend's random-sample primitive is tried first; when it is missing,
    fails or yields nothing usable, the whole active pool is read and
    shuffled locally.
    """

    def __init__(self, source: IQuestionSource, rng: random.Random | None = None):
        self.source = source
        self.rng = rng
        self.telemetry = Telemetry("RandomSetSampler")

    @measure_time("sample_round")
    def sample(
        self,
        count: int = EngineConfig.ROUND_SIZE,
        category: str = EngineConfig.ALL_CATEGORIES,
    ) -> list[Question]:
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"count must be a positive integer, got {count!r}")

        primary = self._sample_primary(count, category)
        if primary.outcome is PrimaryOutcome.USED:
            self.telemetry.count("primary_used")
            return primary.questions

        self.telemetry.log_info(
            "Random sample primitive not used, falling back",
            outcome=primary.outcome.value,
            category=category,
        )
        self.telemetry.count("fallback_used")
        return self._sample_fallback(count, category, primary)

    def _sample_primary(self, count: int, category: str) -> PrimaryResult:
        wanted = QuestionSelector.category_filter(category)
        try:
            returned = self.source.sample_random(count, wanted)
        except PersistenceError as e:
            self.telemetry.log_warning("Random sample primitive failed", error=str(e))
            return PrimaryResult(PrimaryOutcome.FAILED, error_message=str(e))

        if returned is None:
            return PrimaryResult(PrimaryOutcome.UNSUPPORTED)

        usable = QuestionSelector.eligible(returned, wanted)
        if not usable:
            return PrimaryResult(PrimaryOutcome.EMPTY)

        # Already randomized by the backend: keep its order.
        return PrimaryResult(
            PrimaryOutcome.USED, questions=QuestionSelector.take(usable, count)
        )

    def _sample_fallback(
        self, count: int, category: str, primary: PrimaryResult
    ) -> list[Question]:
        wanted = QuestionSelector.category_filter(category)
        try:
            pool = self.source.list_active(wanted)
        except PersistenceError as e:
            self.telemetry.log_error("Question pool read failed", e)
            raise SourceUnavailableError(primary.error_message, str(e)) from e

        usable = QuestionSelector.eligible(pool, wanted)
        if not usable:
            raise EmptyPoolError(wanted)

        picked = QuestionSelector.take(
            QuestionSelector.shuffled(usable, self.rng), count
        )
        self.telemetry.log_info(
            "Sampled from local shuffle", pool=len(usable), picked=len(picked)
        )
        return picked
