import json
from typing import Any

from pydantic import ValidationError

from src.maquiz.domain.models import Attempt, AttemptDetail, Question
from src.shared.telemetry import Telemetry

# Column and detail-key names of the hosted `questions` / `attempts` tables.
# Existing rows use them, so both adapters read and write this shape.


ROW_ERRORS = (ValidationError, ValueError, KeyError, TypeError)


def question_from_row(row: dict[str, Any]) -> Question:
    options = row.get("options")
    if isinstance(options, str):
        options = json.loads(options)
    return Question(
        id=row["id"],
        text=row.get("text") or "",
        options=options if options is not None else [],
        correct_index=row.get("correct_idx"),
        active=bool(row.get("active", True)),
        category=row.get("category"),
    )


def questions_from_rows(
    rows: list[dict[str, Any]], telemetry: Telemetry
) -> list[Question]:
    """
    Parses question rows, dropping the malformed ones (too few options,
    correct index missing or out of range) instead of repairing them.
    """
    questions = []
    for row in rows:
        try:
            questions.append(question_from_row(row))
        except ROW_ERRORS as e:
            telemetry.log_warning(
                "Skipping malformed question row", id=row.get("id"), error=str(e)
            )
    return questions


def detail_to_row(detail: AttemptDetail) -> dict[str, Any]:
    return {
        "qid": detail.question_id,
        "chosen": detail.chosen_index,
        "correct": detail.correct_index,
        "ok": detail.is_correct,
        "category": detail.category,
    }


def detail_from_row(row: dict[str, Any]) -> AttemptDetail:
    if not isinstance(row, dict):
        raise TypeError(f"detail must be an object, got {type(row).__name__}")
    return AttemptDetail(
        question_id=row["qid"],
        chosen_index=row.get("chosen"),
        correct_index=row.get("correct"),
        is_correct=bool(row.get("ok")),
        category=row.get("category"),
    )


def details_from_rows(
    rows: list[Any], telemetry: Telemetry, attempt_id: Any = None
) -> list[AttemptDetail]:
    """
    Parses the per-question details of one attempt. Entries without a
    question id (older rows) are dropped; the attempt keeps its stored score.
    """
    details = []
    for row in rows:
        try:
            details.append(detail_from_row(row))
        except ROW_ERRORS as e:
            telemetry.log_warning(
                "Skipping malformed attempt detail", attempt_id=attempt_id, error=str(e)
            )
    return details


def attempt_to_row(attempt: Attempt) -> dict[str, Any]:
    return {
        "user_id": attempt.user_id,
        "email": attempt.user_label,
        "score": attempt.score,
        "total": attempt.total,
        "created_at": attempt.created_at.isoformat(),
        "details": [detail_to_row(d) for d in attempt.details],
    }


def attempt_from_row(row: dict[str, Any], telemetry: Telemetry) -> Attempt:
    details = row.get("details")
    if isinstance(details, str):
        details = json.loads(details)
    if details is not None and not isinstance(details, list):
        raise TypeError(f"details must be a list, got {type(details).__name__}")
    return Attempt(
        id=row.get("id"),
        user_id=row.get("user_id"),
        user_label=row.get("email"),
        score=row.get("score") or 0,
        total=row.get("total") or 0,
        created_at=row["created_at"],
        details=details_from_rows(details or [], telemetry, row.get("id")),
    )


def attempts_from_rows(
    rows: list[dict[str, Any]], telemetry: Telemetry
) -> list[Attempt]:
    """
    Raises one of ROW_ERRORS when a row cannot be read at all; adapters turn
    that into PersistenceError so views never silently lose an attempt.
    """
    return [attempt_from_row(r, telemetry) for r in rows]
