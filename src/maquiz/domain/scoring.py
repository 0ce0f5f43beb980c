from dataclasses import dataclass, field

from src.maquiz.domain.models import AttemptDetail, Question


@dataclass(frozen=True)
class RoundScore:
    score: int
    total: int
    details: list[AttemptDetail] = field(default_factory=list)


def score_round(
    questions: list[Question], answers: dict[str, int | None]
) -> RoundScore:
    """
    Scores a round in question order. An unanswered question (None) never
    matches a valid index, so it counts as wrong here; callers that must
    reject incomplete rounds do so before scoring.
    """
    details = []
    for q in questions:
        chosen = answers.get(q.id)
        details.append(
            AttemptDetail(
                question_id=q.id,
                chosen_index=chosen,
                correct_index=q.correct_index,
                is_correct=chosen is not None and chosen == q.correct_index,
                category=q.category,
            )
        )
    score = sum(1 for d in details if d.is_correct)
    return RoundScore(score=score, total=len(details), details=details)
