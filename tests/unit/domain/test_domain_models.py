"""
Unit Tests for quizstreak Domain Models
=======================================

Test Coverage
-------------
- Question validation and immutability
- SessionState / SessionResult construction rules and accuracy
- StreakState invariant (longest >= current)
- DailyProgress and StreakRecord validation

Testing Strategy
----------------
- Pure value objects, no database
- AAA pattern (Arrange, Act, Assert)
"""

from dataclasses import FrozenInstanceError
from datetime import date

import pytest

from quizstreak.domain.models import (
    Answer,
    DailyProgress,
    Difficulty,
    Question,
    SessionPhase,
    SessionResult,
    SessionState,
    StreakRecord,
    StreakState,
    Subject,
)
from quizstreak.domain.models.base import DomainValidationError


# ============================================================================
# QUESTION TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestQuestion:
    """Test Question value object."""

    def test_create_valid_question(self, make_question):
        # Arrange & Act
        question = make_question("q-42", subject="english", difficulty="hard")

        # Assert
        assert question.id == "q-42"
        assert question.subject is Subject.ENGLISH
        assert question.difficulty is Difficulty.HARD
        assert list(question.options) == ["A", "B", "C", "D"]

    def test_correct_answer_must_be_an_option(self, make_question):
        with pytest.raises(DomainValidationError) as exc_info:
            make_question(correct_answer="E")

        assert exc_info.value.field == "correct_answer"

    def test_requires_at_least_one_option(self):
        with pytest.raises(DomainValidationError):
            Question(
                id="q-1",
                subject=Subject.MATH,
                text="Empty?",
                options={},
                correct_answer="A",
            )

    @pytest.mark.parametrize("field_name", ["id", "text"])
    def test_blank_identity_fields_rejected(self, make_question, field_name):
        kwargs = {"question_id": "q-1", "text": "Valid?"}
        kwargs["question_id" if field_name == "id" else "text"] = "   "

        with pytest.raises(DomainValidationError) as exc_info:
            make_question(kwargs.pop("question_id"), **kwargs)

        assert exc_info.value.field == field_name

    def test_unknown_subject_rejected(self, make_question):
        with pytest.raises(ValueError):
            make_question(subject="history")

    def test_is_immutable(self, make_question):
        question = make_question()

        with pytest.raises(FrozenInstanceError):
            question.text = "changed"

        with pytest.raises(TypeError):
            question.options["A"] = "changed"

    def test_options_are_copied_from_input(self, make_question):
        options = {"A": "yes", "B": "no"}
        question = make_question(options=options)

        options["A"] = "mutated"

        assert question.options["A"] == "yes"

    def test_is_correct(self, make_question):
        question = make_question(correct_answer="C")

        assert question.is_correct("C") is True
        assert question.is_correct("A") is False

    def test_to_dict_round_trips_plain_values(self, make_question):
        question = make_question("q-7")

        data = question.to_dict()

        assert data["id"] == "q-7"
        assert data["subject"] == "math"
        assert data["difficulty"] == "easy"
        assert data["options"] == {"A": "4", "B": "3", "C": "5", "D": "22"}


# ============================================================================
# SESSION TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestSessionState:
    """Test SessionState value object."""

    def test_defaults(self, question_pool):
        state = SessionState(questions=question_pool[:5])

        assert state.current_index == 0
        assert state.answers == ()
        assert state.phase is SessionPhase.AWAITING_ANSWER
        assert isinstance(state.questions, tuple)
        assert state.current_question is question_pool[0]

    def test_index_out_of_range_rejected(self, question_pool):
        with pytest.raises(DomainValidationError):
            SessionState(questions=question_pool[:2], current_index=2)

    def test_more_answers_than_questions_rejected(self, question_pool):
        answers = tuple(Answer(f"q-{i}", "A", True) for i in range(3))

        with pytest.raises(DomainValidationError):
            SessionState(questions=question_pool[:2], answers=answers)

    def test_answer_for(self, question_pool):
        answer = Answer("q-0", "B", False)
        state = SessionState(questions=question_pool[:2], answers=(answer,))

        assert state.answer_for("q-0") == answer
        assert state.answer_for("q-1") is None


@pytest.mark.unit
@pytest.mark.domain
class TestSessionResult:
    """Test SessionResult scoring."""

    def test_from_answers_counts_correct(self):
        answers = (
            Answer("q-0", "A", True),
            Answer("q-1", "B", False),
            Answer("q-2", "A", True),
        )

        result = SessionResult.from_answers(answers)

        assert result.correct_count == 2
        assert result.total_count == 3
        assert result.accuracy == 67

    def test_accuracy_of_empty_session_is_zero(self):
        assert SessionResult((), 0, 0).accuracy == 0

    def test_correct_cannot_exceed_total(self):
        with pytest.raises(DomainValidationError):
            SessionResult((), 3, 2)


# ============================================================================
# STREAK TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestStreakState:
    """Test StreakState invariants."""

    def test_default_is_empty(self):
        streak = StreakState()

        assert streak.current_streak == 0
        assert streak.longest_streak == 0
        assert streak.last_completed_date is None

    def test_longest_below_current_rejected(self):
        with pytest.raises(DomainValidationError) as exc_info:
            StreakState(current_streak=5, longest_streak=4)

        assert exc_info.value.field == "longest_streak"

    def test_negative_values_rejected(self):
        with pytest.raises(DomainValidationError):
            StreakState(current_streak=-1, longest_streak=0)

    def test_with_current_returns_new_instance(self):
        streak = StreakState(3, 5, date(2024, 1, 10))

        updated = streak.with_current(0)

        assert updated.current_streak == 0
        assert updated.longest_streak == 5
        assert updated.last_completed_date == date(2024, 1, 10)
        assert streak.current_streak == 3

    def test_to_db_updates(self):
        streak = StreakState(2, 4, date(2024, 3, 1))

        assert streak.to_db_updates() == {
            "current_streak": 2,
            "longest_streak": 4,
            "last_completed_date": date(2024, 3, 1),
        }


@pytest.mark.unit
@pytest.mark.domain
class TestProgressAndRecords:
    def test_progress_requires_user_id(self):
        with pytest.raises(DomainValidationError):
            DailyProgress("", date(2024, 1, 1), 5, 3, True)

    def test_progress_correct_cannot_exceed_solved(self):
        with pytest.raises(DomainValidationError):
            DailyProgress("u-1", date(2024, 1, 1), 2, 3, False)

    def test_record_value_must_be_positive(self):
        with pytest.raises(DomainValidationError):
            StreakRecord(0, date(2024, 1, 1))
