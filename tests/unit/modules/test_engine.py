"""
Unit Tests for the Daily Challenge Engine
=========================================

Test Coverage
-------------
- Batch sampling: size, distinctness, uniform coverage
- start_session edge cases (empty pool, small pool, bad batch size)
- submit_answer grading and error ordering
- advance / finalize / progress_fraction phase handling
- A full five-question session end to end

Testing Strategy
----------------
- Pure functions, seeded random.Random for reproducibility
- AAA pattern (Arrange, Act, Assert)
"""

import random
from collections import Counter

import pytest

from quizstreak.domain.models.session import SessionPhase, SessionState
from quizstreak.modules.challenge import engine
from quizstreak.modules.shared.exceptions import (
    DuplicateAnswerError,
    EmptyPoolError,
    InvalidOperationError,
    SessionNotCompleteError,
    ValidationError,
)


def _answer_current(state, key="A"):
    """Answer the current question and return the new state."""
    new_state, _ = engine.submit_answer(state, state.current_question.id, key)
    return new_state


# ============================================================================
# SAMPLING
# ============================================================================


@pytest.mark.unit
class TestSampling:
    """Test sample_questions and start_session draws."""

    @pytest.mark.parametrize("pool_size", [5, 6, 10, 50])
    def test_draws_five_distinct_questions(self, make_question, pool_size):
        # Arrange
        pool = [make_question(f"q-{i}") for i in range(pool_size)]

        # Act
        for seed in range(25):
            state = engine.start_session(pool, rng=random.Random(seed))

            # Assert
            ids = [q.id for q in state.questions]
            assert len(ids) == 5
            assert len(set(ids)) == 5
            assert set(ids) <= {q.id for q in pool}

    def test_small_pool_returns_every_question(self, question_pool, rng):
        state = engine.start_session(question_pool[:3], rng=rng)

        assert sorted(q.id for q in state.questions) == ["q-0", "q-1", "q-2"]

    def test_same_seed_same_draw(self, question_pool):
        first = engine.start_session(question_pool, rng=random.Random(7))
        second = engine.start_session(question_pool, rng=random.Random(7))

        assert [q.id for q in first.questions] == [q.id for q in second.questions]

    def test_sampling_does_not_mutate_pool(self, question_pool, rng):
        before = list(question_pool)

        engine.sample_questions(question_pool, 5, rng)

        assert question_pool == before

    def test_every_question_can_be_drawn(self, question_pool):
        rng = random.Random(99)
        counts = Counter()

        for _ in range(2000):
            for question in engine.sample_questions(question_pool, 5, rng):
                counts[question.id] += 1

        # Expected 1000 draws each; uniform sampling stays well inside this band.
        assert set(counts) == {q.id for q in question_pool}
        assert all(800 < n < 1200 for n in counts.values())

    def test_empty_pool_raises(self, rng):
        with pytest.raises(EmptyPoolError) as exc_info:
            engine.start_session([], rng=rng)

        assert exc_info.value.is_retryable is True
        assert exc_info.value.requested == 5

    @pytest.mark.parametrize("batch_size", [0, -1, 2.5, True])
    def test_invalid_batch_size_raises(self, question_pool, batch_size):
        with pytest.raises(ValidationError):
            engine.start_session(question_pool, batch_size=batch_size)

    def test_new_session_is_awaiting_first_answer(self, question_pool, rng):
        state = engine.start_session(question_pool, rng=rng)

        assert state.phase is SessionPhase.AWAITING_ANSWER
        assert state.current_index == 0
        assert state.answers == ()


# ============================================================================
# ANSWERING
# ============================================================================


@pytest.mark.unit
class TestSubmitAnswer:
    """Test submit_answer grading and validation."""

    def test_correct_answer(self, make_question):
        question = make_question("q-1", correct_answer="B", explanation="Because.")
        state = SessionState(questions=(question,))

        new_state, result = engine.submit_answer(state, "q-1", "B")

        assert result.is_correct is True
        assert result.correct_answer == "B"
        assert result.explanation == "Because."
        assert new_state.phase is SessionPhase.SHOWING_RESULT
        assert new_state.answers[0].selected_key == "B"

    def test_wrong_answer_reveals_correct_key(self, make_question):
        state = SessionState(questions=(make_question("q-1", correct_answer="C"),))

        _, result = engine.submit_answer(state, "q-1", "A")

        assert result.is_correct is False
        assert result.correct_answer == "C"

    def test_does_not_mutate_input_state(self, question_pool):
        state = SessionState(questions=question_pool[:5])

        engine.submit_answer(state, "q-0", "A")

        assert state.answers == ()
        assert state.phase is SessionPhase.AWAITING_ANSWER

    def test_second_answer_to_same_question_rejected(self, question_pool):
        state = SessionState(questions=question_pool[:5])
        answered = _answer_current(state)

        with pytest.raises(DuplicateAnswerError) as exc_info:
            engine.submit_answer(answered, "q-0", "B")

        assert exc_info.value.question_id == "q-0"
        assert len(answered.answers) == 1

    def test_answer_for_other_question_rejected(self, question_pool):
        state = SessionState(questions=question_pool[:5])

        with pytest.raises(InvalidOperationError):
            engine.submit_answer(state, "q-3", "A")

    def test_unknown_option_rejected(self, question_pool):
        state = SessionState(questions=question_pool[:5])

        with pytest.raises(ValidationError) as exc_info:
            engine.submit_answer(state, "q-0", "Z")

        assert exc_info.value.field == "selected_key"

    def test_empty_session_rejects_answers(self):
        with pytest.raises(InvalidOperationError):
            engine.submit_answer(SessionState(questions=()), "q-0", "A")


# ============================================================================
# PHASES AND SCORING
# ============================================================================


@pytest.mark.unit
class TestPhases:
    """Test advance, finalize and progress reporting."""

    def test_advance_moves_to_next_question(self, question_pool):
        state = _answer_current(SessionState(questions=question_pool[:5]))

        advanced = engine.advance(state)

        assert advanced.current_index == 1
        assert advanced.phase is SessionPhase.AWAITING_ANSWER

    def test_advance_while_awaiting_is_noop(self, question_pool):
        state = SessionState(questions=question_pool[:5])

        assert engine.advance(state) is state

    def test_advance_after_last_question_completes(self, question_pool):
        state = SessionState(questions=question_pool[:1])
        state = engine.advance(_answer_current(state))

        assert state.phase is SessionPhase.COMPLETE
        assert engine.current_question(state) is None
        assert engine.advance(state) is state

    def test_finalize_incomplete_session_raises(self, question_pool):
        state = _answer_current(SessionState(questions=question_pool[:5]))

        with pytest.raises(SessionNotCompleteError) as exc_info:
            engine.finalize(state)

        assert exc_info.value.answered == 1
        assert exc_info.value.total == 5

    def test_progress_fraction(self, question_pool):
        state = SessionState(questions=question_pool[:5])
        assert engine.progress_fraction(state) == 0.0

        state = _answer_current(state)
        assert engine.progress_fraction(state) == pytest.approx(0.2)

        state = engine.advance(state)
        assert engine.progress_fraction(state) == pytest.approx(0.2)

    def test_progress_fraction_of_empty_session(self):
        assert engine.progress_fraction(SessionState(questions=())) == 0.0

    def test_full_session(self, question_pool, rng):
        # Arrange
        state = engine.start_session(question_pool, rng=rng)
        picks = ["A", "B", "A", "A", "C"]

        # Act
        for key in picks:
            assert engine.current_question(state) is not None
            state = engine.advance(_answer_current(state, key))
        result = engine.finalize(state)

        # Assert
        assert state.phase is SessionPhase.COMPLETE
        assert engine.is_complete(state)
        assert engine.progress_fraction(state) == 1.0
        assert result.correct_count == 3
        assert result.total_count == 5
        assert result.accuracy == 60
