class QuizError(Exception):
    """Base class for every error the quiz engine hands to its caller."""


class SourceUnavailableError(QuizError):
    """
    Both question-fetch paths failed (random-sample primitive and the direct
    pool read). Carries both underlying messages.
    """

    def __init__(self, primary_message: str, fallback_message: str) -> None:
        self.primary_message = primary_message
        self.fallback_message = fallback_message
        super().__init__(
            "Could not load questions:\n"
            f"primary: {primary_message or '-'}\n"
            f"fallback: {fallback_message or '-'}"
        )


class EmptyPoolError(QuizError):
    def __init__(self, category: str | None = None) -> None:
        self.category = category
        scope = f" in category '{category}'" if category else ""
        super().__init__(f"No active questions configured{scope}")


class PersistenceError(QuizError):
    """A read or write against the backing store failed."""

    def __init__(self, operation: str, cause: Exception) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class RoundValidationError(QuizError):
    pass


class IncompleteRoundError(RoundValidationError):
    def __init__(self, missing_ids: list[str]) -> None:
        self.missing_ids = missing_ids
        super().__init__(
            f"Round is incomplete: {len(missing_ids)} unanswered question(s)"
        )


class InvalidChoiceError(RoundValidationError):
    pass


class ConfigurationError(QuizError):
    pass
