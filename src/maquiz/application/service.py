import random

from src.config import EngineConfig
from src.maquiz.application.recorder import AttemptRecorder, RoundOutcome
from src.maquiz.application.sampler import RandomSetSampler
from src.maquiz.application.stats_service import StatsService, TeamReport, UserReport
from src.maquiz.domain.models import QuizRound, UserIdentity, UserSummary
from src.maquiz.domain.ports import IAttemptStore, IQuestionSource
from src.shared.telemetry import Telemetry, measure_time


class QuizService:
    """
    Entry point for a UI layer: start a round, evaluate it, read stats.
    Holds no per-user state; the caller keeps the QuizRound.
    """

    def __init__(
        self,
        questions: IQuestionSource,
        attempts: IAttemptStore,
        rng: random.Random | None = None,
    ):
        self.sampler = RandomSetSampler(questions, rng=rng)
        self.recorder = AttemptRecorder(attempts)
        self.stats = StatsService(attempts, questions)
        self.telemetry = Telemetry("QuizService")

    @measure_time("start_round")
    def start_round(
        self,
        count: int = EngineConfig.ROUND_SIZE,
        category: str = EngineConfig.ALL_CATEGORIES,
    ) -> QuizRound:
        Telemetry.start_trace()
        questions = self.sampler.sample(count, category)
        quiz_round = QuizRound(questions=questions)
        self.telemetry.log_info(
            "Round started", round_id=quiz_round.round_id, size=quiz_round.total
        )
        return quiz_round

    @measure_time("submit_round")
    def submit_round(
        self, quiz_round: QuizRound, identity: UserIdentity
    ) -> RoundOutcome:
        return self.recorder.evaluate(quiz_round, identity)

    def my_summary(self, user_id: str) -> UserSummary:
        return self.stats.user_summary(user_id)

    def my_report(self, user_id: str) -> UserReport:
        return self.stats.user_report(user_id)

    def team_report(self) -> TeamReport:
        return self.stats.team_report()
