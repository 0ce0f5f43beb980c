from pydantic import BaseModel

from src.config import EngineConfig
from src.maquiz.domain.models import (
    Attempt,
    CategoryEntry,
    LeaderboardEntry,
    ProgressPoint,
    QuestionDifficultyEntry,
    UserSummary,
)
from src.maquiz.domain.ports import IAttemptStore, IQuestionSource
from src.maquiz.domain.stats import StatsAggregator
from src.shared.telemetry import Telemetry, measure_time


# --- Report DTOs ---
class UserReport(BaseModel):
    summary: UserSummary
    timeline: list[ProgressPoint]
    categories: list[CategoryEntry]


class TeamReport(BaseModel):
    attempt_count: int
    leaderboard: list[LeaderboardEntry]
    best_runs: list[LeaderboardEntry]
    hardest_questions: list[QuestionDifficultyEntry]
    categories: list[CategoryEntry]
    timeline: list[ProgressPoint]


class StatsService:
    """
    Loads a bounded window of attempt history and hands it to the
    aggregator. Store read failures propagate as PersistenceError; a view
    is either complete or not returned at all.
    """

    def __init__(
        self,
        store: IAttemptStore,
        questions: IQuestionSource | None = None,
        user_limit: int = EngineConfig.USER_HISTORY_LIMIT,
        team_limit: int = EngineConfig.TEAM_HISTORY_LIMIT,
    ) -> None:
        self.store = store
        self.questions = questions
        self.user_limit = user_limit
        self.team_limit = team_limit
        self.telemetry = Telemetry("StatsService")

    # --- History windows ---
    def user_history(self, user_id: str) -> list[Attempt]:
        return self.store.list_by_user(user_id, self.user_limit)

    def team_history(self) -> list[Attempt]:
        return self.store.list_all(self.team_limit)

    # --- Per-user ---
    @measure_time("stats_user_summary")
    def user_summary(self, user_id: str) -> UserSummary:
        return StatsAggregator.summarize(self.user_history(user_id))

    @measure_time("stats_user_report")
    def user_report(self, user_id: str) -> UserReport:
        history = self.user_history(user_id)
        return UserReport(
            summary=StatsAggregator.summarize(history),
            timeline=StatsAggregator.timeline(history),
            categories=StatsAggregator.category_accuracy(history),
        )

    # --- Team ---
    @measure_time("stats_leaderboard")
    def leaderboard(self) -> list[LeaderboardEntry]:
        return StatsAggregator.leaderboard(self.team_history())

    @measure_time("stats_best_runs")
    def best_runs(self) -> list[LeaderboardEntry]:
        return StatsAggregator.best_run_leaderboard(self.team_history())

    @measure_time("stats_hardest_questions")
    def hardest_questions(
        self, limit: int | None = EngineConfig.HARDEST_QUESTIONS_LIMIT
    ) -> list[QuestionDifficultyEntry]:
        history = self.team_history()
        return StatsAggregator.question_difficulty(
            history, self._question_texts(history), limit=limit
        )

    def export_question_difficulty(self) -> list[QuestionDifficultyEntry]:
        """Every question past the sample gate, no top-N cut."""
        return self.hardest_questions(limit=None)

    @measure_time("stats_category_accuracy")
    def category_accuracy(self) -> list[CategoryEntry]:
        return StatsAggregator.category_accuracy(self.team_history())

    @measure_time("stats_team_report")
    def team_report(self) -> TeamReport:
        history = self.team_history()
        return TeamReport(
            attempt_count=len(history),
            leaderboard=StatsAggregator.leaderboard(history),
            best_runs=StatsAggregator.best_run_leaderboard(history),
            hardest_questions=StatsAggregator.question_difficulty(
                history, self._question_texts(history)
            ),
            categories=StatsAggregator.category_accuracy(history),
            timeline=StatsAggregator.timeline(history),
        )

    # --- Resets ---
    @measure_time("reset_user_history")
    def reset_user_history(self, user_id: str) -> None:
        self.store.delete_by_user(user_id)
        self.telemetry.log_info("User history reset", user_id=user_id)

    @measure_time("reset_user_label")
    def reset_user_label(self, user_label: str) -> None:
        self.store.delete_by_label(user_label)
        self.telemetry.log_info("User history reset", user_label=user_label)

    @measure_time("reset_all")
    def reset_all(self) -> None:
        self.store.delete_all()
        self.telemetry.log_info("All attempts deleted")

    def _question_texts(self, history: list[Attempt]) -> dict[str, str]:
        if self.questions is None:
            return {}
        ids = sorted({d.question_id for a in history for d in a.details})
        if not ids:
            return {}
        return {q.id: q.text for q in self.questions.get_questions_by_ids(ids)}
