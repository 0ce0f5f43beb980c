# ==============================================================================
# ARCHITECTURE: UNIT TEST (CORE LOGIC)
# ------------------------------------------------------------------------------
# GOAL: Verify pure business logic, state transitions, and algorithms.
# CONSTRAINTS:
#   1. EXECUTION: FAST (< 50ms per test).
#   2. I/O: FORBIDDEN. No Database, No Network, No File System.
#   3. MOCKS: Mandatory for Repositories and External Services.
# ==============================================================================
from datetime import datetime

import pytest
from pydantic import ValidationError

from src.maquiz.domain.errors import InvalidChoiceError
from src.maquiz.domain.models import Attempt, Question, QuizRound
from tests.drivers.factories import make_attempt, make_pool, make_question


class TestQuestion:
    def test_numeric_id_is_stored_as_text(self):
        q = Question(id=17, text="T", options=["a", "b"], correct_index=1)
        assert q.id == "17"

    def test_missing_category_falls_back_to_default(self):
        q = Question(
            id="Q1", text="T", options=["a", "b"], correct_index=0, category=None
        )
        assert q.category == "General"

    def test_blank_category_falls_back_to_default(self):
        q = Question(
            id="Q1", text="T", options=["a", "b"], correct_index=0, category="  "
        )
        assert q.category == "General"

    @pytest.mark.parametrize("bad_index", [-1, 2, 10])
    def test_out_of_range_correct_index_is_rejected(self, bad_index):
        with pytest.raises(ValidationError):
            Question(id="Q1", text="T", options=["a", "b"], correct_index=bad_index)

    def test_single_option_is_rejected(self):
        with pytest.raises(ValidationError):
            Question(id="Q1", text="T", options=["only"], correct_index=0)

    def test_non_integer_correct_index_is_rejected(self):
        with pytest.raises(ValidationError):
            Question(id="Q1", text="T", options=["a", "b"], correct_index="1")


class TestQuizRound:
    def test_duplicate_questions_are_rejected(self):
        q = make_question("Q1")
        with pytest.raises(ValidationError):
            QuizRound(questions=[q, q])

    def test_empty_round_is_rejected(self):
        with pytest.raises(ValidationError):
            QuizRound(questions=[])

    def test_round_is_complete_only_when_every_question_answered(self):
        quiz_round = QuizRound(questions=make_pool(3))
        quiz_round.choose("Q1", 0)
        quiz_round.choose("Q2", 3)

        assert quiz_round.is_complete() is False
        assert quiz_round.unanswered_ids() == ["Q3"]

        quiz_round.choose("Q3", 1)
        assert quiz_round.is_complete() is True

    def test_clearing_a_choice_makes_round_incomplete_again(self):
        quiz_round = QuizRound(questions=make_pool(1))
        quiz_round.choose("Q1", 0)
        quiz_round.choose("Q1", None)
        assert quiz_round.is_complete() is False

    def test_choose_rejects_unknown_question(self):
        quiz_round = QuizRound(questions=make_pool(2))
        with pytest.raises(InvalidChoiceError):
            quiz_round.choose("Q99", 0)

    def test_choose_rejects_option_out_of_range(self):
        quiz_round = QuizRound(questions=make_pool(2))
        with pytest.raises(InvalidChoiceError):
            quiz_round.choose("Q1", 4)

    def test_mark_recorded_keeps_the_stored_attempt(self):
        quiz_round = QuizRound(questions=make_pool(1))
        attempt = make_attempt("ann", 1, 1)
        quiz_round.mark_recorded(attempt)
        assert quiz_round.is_recorded is True
        assert quiz_round.recorded_attempt == attempt
        assert quiz_round.recorded_attempt_id == "ann-0"

    def test_answers_are_final_once_recorded(self):
        quiz_round = QuizRound(questions=make_pool(1))
        quiz_round.choose("Q1", 0)
        quiz_round.mark_recorded(make_attempt("ann", 1, 1))

        with pytest.raises(InvalidChoiceError):
            quiz_round.choose("Q1", 1)
        with pytest.raises(InvalidChoiceError):
            quiz_round.choose("Q1", None)
        assert quiz_round.answers == {"Q1": 0}

    def test_each_round_gets_its_own_id(self):
        assert QuizRound(questions=make_pool(1)).round_id != QuizRound(
            questions=make_pool(1)
        ).round_id


class TestAttempt:
    def test_attempt_is_immutable(self):
        attempt = Attempt(
            user_label="ann", score=1, total=2, created_at=datetime(2025, 1, 1)
        )
        with pytest.raises(ValidationError):
            attempt.score = 2

    def test_naive_timestamp_is_read_as_utc(self):
        attempt = Attempt(
            user_label="ann", score=1, total=2, created_at="2025-01-01T10:00:00"
        )
        assert attempt.created_at.utcoffset().total_seconds() == 0

    def test_legacy_row_without_label_or_details(self):
        attempt = Attempt(
            user_label=None, score=3, total=5, created_at="2025-01-01T10:00:00Z",
            details=None,
        )
        assert attempt.user_label == "unknown"
        assert attempt.details == []

    def test_negative_score_is_rejected(self):
        with pytest.raises(ValidationError):
            Attempt(
                user_label="ann", score=-1, total=2, created_at=datetime(2025, 1, 1)
            )
