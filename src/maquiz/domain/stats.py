import math
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from fractions import Fraction

from src.config import EngineConfig, Level
from src.maquiz.domain.models import (
    Attempt,
    CategoryEntry,
    LeaderboardEntry,
    ProgressPoint,
    QuestionDifficultyEntry,
    UserSummary,
)


def round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


def percent(num: int, den: int) -> int:
    """
    100 * num / den rounded half up, computed exactly. den == 0 gives 0.
    """
    if not den:
        return 0
    return round_half_up(Fraction(100 * num, den))


def attempt_percent(attempt: Attempt) -> int:
    return percent(attempt.score, attempt.total)


@dataclass
class _QuestionTally:
    category: str
    seen: int = 0
    correct: int = 0


@dataclass
class _CategoryTally:
    answers: int = 0
    correct: int = 0
    question_ids: set[str] = field(default_factory=set)


class StatsAggregator:
    """
    Pure Domain Logic.
    Read-only views over an attempt history. Every view groups into a
    mapping keyed by its natural identity, then applies one deterministic
    sort.
    """

    @staticmethod
    def summarize(attempts: list[Attempt]) -> UserSummary:
        if not attempts:
            return UserSummary()

        # Mean of the per-attempt ratios, rounded once at the end.
        ratios = [
            Fraction(a.score, a.total) if a.total else Fraction(0) for a in attempts
        ]
        average = sum(ratios, Fraction(0)) / len(ratios)
        latest = max(attempts, key=lambda a: a.created_at)

        return UserSummary(
            attempt_count=len(attempts),
            average_percent=round_half_up(average * 100),
            best_percent=max(attempt_percent(a) for a in attempts),
            last_percent=attempt_percent(latest),
            last_attempt_at=latest.created_at,
        )

    @staticmethod
    def _group_by_user(attempts: list[Attempt]) -> dict[str, list[Attempt]]:
        groups: dict[str, list[Attempt]] = defaultdict(list)
        for a in attempts:
            groups[a.user_label or EngineConfig.UNKNOWN_USER_LABEL].append(a)
        return groups

    @staticmethod
    def _entries(attempts: list[Attempt]) -> list[LeaderboardEntry]:
        entries = []
        for label, group in StatsAggregator._group_by_user(attempts).items():
            summary = StatsAggregator.summarize(group)
            entries.append(
                LeaderboardEntry(
                    user_label=label,
                    attempt_count=summary.attempt_count,
                    average_percent=summary.average_percent,
                    best_percent=summary.best_percent,
                    last_attempt_at=summary.last_attempt_at,
                    level=Level.for_percent(summary.average_percent),
                )
            )
        return entries

    @staticmethod
    def leaderboard(attempts: list[Attempt]) -> list[LeaderboardEntry]:
        """Average first, best single run breaks ties, then the label."""
        entries = StatsAggregator._entries(attempts)
        entries.sort(key=lambda e: (-e.average_percent, -e.best_percent, e.user_label))
        return entries

    @staticmethod
    def best_run_leaderboard(attempts: list[Attempt]) -> list[LeaderboardEntry]:
        entries = StatsAggregator._entries(attempts)
        entries.sort(key=lambda e: (-e.best_percent, e.user_label))
        return entries

    @staticmethod
    def question_difficulty(
        attempts: list[Attempt],
        texts: Mapping[str, str] | None = None,
        min_seen: int = EngineConfig.MIN_TIMES_SEEN,
        limit: int | None = EngineConfig.HARDEST_QUESTIONS_LIMIT,
    ) -> list[QuestionDifficultyEntry]:
        """
        Hardest questions first. Questions seen fewer than ``min_seen`` times
        are left out; ``limit=None`` returns every remaining question.
        """
        tallies: dict[str, _QuestionTally] = {}
        for a in attempts:
            for d in a.details:
                tally = tallies.setdefault(d.question_id, _QuestionTally(d.category))
                tally.seen += 1
                if d.is_correct:
                    tally.correct += 1

        texts = texts or {}
        entries = [
            QuestionDifficultyEntry(
                question_id=qid,
                text=texts.get(qid) or f"Question {qid}",
                category=t.category,
                times_seen=t.seen,
                times_correct=t.correct,
                accuracy_percent=percent(t.correct, t.seen),
            )
            for qid, t in tallies.items()
            if t.seen >= min_seen
        ]
        entries.sort(key=lambda e: (e.accuracy_percent, -e.times_seen, e.question_id))
        return entries if limit is None else entries[:limit]

    @staticmethod
    def category_accuracy(attempts: list[Attempt]) -> list[CategoryEntry]:
        tallies: dict[str, _CategoryTally] = defaultdict(_CategoryTally)
        for a in attempts:
            for d in a.details:
                tally = tallies[d.category or EngineConfig.DEFAULT_CATEGORY]
                tally.answers += 1
                tally.correct += 1 if d.is_correct else 0
                tally.question_ids.add(d.question_id)

        return [
            CategoryEntry(
                category=cat,
                question_count=len(t.question_ids),
                answers_count=t.answers,
                average_accuracy_percent=percent(t.correct, t.answers),
            )
            for cat, t in sorted(tallies.items())
        ]

    @staticmethod
    def timeline(attempts: list[Attempt]) -> list[ProgressPoint]:
        """Percent per attempt, oldest first."""
        ordered = sorted(attempts, key=lambda a: a.created_at)
        return [
            ProgressPoint(created_at=a.created_at, percent=attempt_percent(a))
            for a in ordered
        ]
