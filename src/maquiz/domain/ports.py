from abc import ABC, abstractmethod

from src.maquiz.domain.models import Attempt, Question


class IQuestionSource(ABC):
    @abstractmethod
    def list_active(self, category: str | None = None) -> list[Question]:
        """Every active multiple-choice question, optionally one category."""
        pass

    def sample_random(
        self, count: int, category: str | None = None
    ) -> list[Question] | None:
        """
        Server-side random sample of active questions.
        Returns None when the backend has no such primitive.
        """
        return None

    @abstractmethod
    def get_questions_by_ids(self, question_ids: list[str]) -> list[Question]:
        pass


class IAttemptStore(ABC):
    @abstractmethod
    def insert(self, attempt: Attempt) -> str:
        """Persists the attempt and returns its id."""
        pass

    @abstractmethod
    def list_by_user(self, user_id: str, limit: int) -> list[Attempt]:
        """Oldest first."""
        pass

    @abstractmethod
    def list_all(self, limit: int) -> list[Attempt]:
        """Newest first."""
        pass

    @abstractmethod
    def delete_by_user(self, user_id: str) -> None:
        pass

    @abstractmethod
    def delete_by_label(self, user_label: str) -> None:
        pass

    @abstractmethod
    def delete_all(self) -> None:
        pass
