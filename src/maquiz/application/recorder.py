from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from src.maquiz.domain.errors import IncompleteRoundError, PersistenceError
from src.maquiz.domain.models import Attempt, QuizRound, UserIdentity
from src.maquiz.domain.ports import IAttemptStore
from src.maquiz.domain.scoring import RoundScore, score_round
from src.shared.telemetry import Telemetry, measure_time


@dataclass
class RoundOutcome:
    """
    What the caller shows after evaluating a round. The score is always
    present; ``persistence_error`` is set when the attempt could not be saved.
    """

    result: RoundScore
    attempt: Attempt | None = None
    persistence_error: PersistenceError | None = None
    already_recorded: bool = False

    @property
    def saved(self) -> bool:
        return self.attempt is not None and self.persistence_error is None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptRecorder:
    def __init__(
        self, store: IAttemptStore, clock: Callable[[], datetime] = _utcnow
    ) -> None:
        self.store = store
        self.clock = clock
        self.telemetry = Telemetry("AttemptRecorder")

    def score(self, quiz_round: QuizRound) -> RoundScore:
        missing = quiz_round.unanswered_ids()
        if missing:
            raise IncompleteRoundError(missing)
        return score_round(quiz_round.questions, quiz_round.answers)

    @measure_time("record_attempt")
    def record(self, result: RoundScore, identity: UserIdentity) -> Attempt:
        attempt = Attempt(
            user_id=identity.user_id,
            user_label=identity.user_label,
            score=result.score,
            total=result.total,
            created_at=self.clock(),
            details=result.details,
        )
        attempt_id = self.store.insert(attempt)
        self.telemetry.count("attempt_recorded")
        return attempt.model_copy(update={"id": attempt_id})

    def evaluate(self, quiz_round: QuizRound, identity: UserIdentity) -> RoundOutcome:
        """
        Scores the round and saves it at most once. A failed save is
        reported in the outcome, and the round stays open for a retry. Once
        saved, the stored attempt is what every later call reports.
        """
        if quiz_round.is_recorded:
            recorded = quiz_round.recorded_attempt
            self.telemetry.log_info(
                "Round already recorded",
                round_id=quiz_round.round_id,
                attempt_id=quiz_round.recorded_attempt_id,
            )
            # Show what was stored, never a fresh score.
            result = (
                RoundScore(
                    score=recorded.score,
                    total=recorded.total,
                    details=list(recorded.details),
                )
                if recorded is not None
                else self.score(quiz_round)
            )
            return RoundOutcome(
                result=result, attempt=recorded, already_recorded=True
            )

        result = self.score(quiz_round)
        try:
            attempt = self.record(result, identity)
        except PersistenceError as e:
            self.telemetry.count("attempt_save_failed")
            self.telemetry.log_warning(
                "Attempt not saved, showing score anyway",
                round_id=quiz_round.round_id,
                error=str(e),
            )
            return RoundOutcome(result=result, persistence_error=e)

        quiz_round.mark_recorded(attempt)
        self.telemetry.log_info(
            "Attempt recorded",
            round_id=quiz_round.round_id,
            attempt_id=attempt.id,
            score=result.score,
            total=result.total,
        )
        return RoundOutcome(result=result, attempt=attempt)
