import random

from src.config import EngineConfig
from src.maquiz.domain.models import Question


class QuestionSelector:
    """
    Pure domain logic for building a round from a pool of questions.
    Shared by both sourcing paths so they apply identical eligibility rules.
    """

    @staticmethod
    def category_filter(category: str | None) -> str | None:
        """Maps the 'all categories' sentinel (or nothing) to no filter."""
        if not category or category == EngineConfig.ALL_CATEGORIES:
            return None
        return category

    @staticmethod
    def eligible(questions: list[Question], category: str | None) -> list[Question]:
        """
        Keeps active questions of the requested category, first occurrence
        of each id only, in input order.
        """
        wanted = QuestionSelector.category_filter(category)
        seen: set[str] = set()
        result = []
        for q in questions:
            if not q.active or q.id in seen:
                continue
            if wanted is not None and q.category != wanted:
                continue
            seen.add(q.id)
            result.append(q)
        return result

    @staticmethod
    def take(questions: list[Question], count: int) -> list[Question]:
        return questions[: max(0, count)]

    @staticmethod
    def shuffled(
        questions: list[Question], rng: random.Random | None = None
    ) -> list[Question]:
        """
        Uniform Fisher-Yates shuffle of a copy; the input list is untouched.
        """
        pool = list(questions)
        (rng or random).shuffle(pool)
        return pool
