"""
Daily challenge session engine.

Purpose
-------
Run one challenge attempt as a sequence of pure state transitions:
draw a batch, take one answer per question, reveal, advance, score.

Responsibilities
----------------
- Uniform sampling of the batch without replacement (partial Fisher-Yates)
- Answer grading and one-answer-per-question enforcement
- Phase transitions AWAITING_ANSWER -> SHOWING_RESULT -> next / COMPLETE
- Final scoring once every question is answered

Design Notes
------------
- No I/O, no clock, no timers. The reveal delay between `submit_answer` and
  `advance` belongs to the caller (see DailyChallengeService).
- Randomness is injected (`rng`) so draws are reproducible in tests.
- Every function takes a SessionState and returns a new one.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from quizstreak.domain.models.question import Answer, AnswerResult, Question
from quizstreak.domain.models.session import SessionPhase, SessionResult, SessionState
from quizstreak.modules.shared.exceptions import (
    DuplicateAnswerError,
    EmptyPoolError,
    InvalidOperationError,
    SessionNotCompleteError,
    ValidationError,
)

DEFAULT_BATCH_SIZE = 5


def sample_questions(
    pool: Sequence[Question], k: int, rng: random.Random
) -> List[Question]:
    """
    Draw min(k, len(pool)) distinct questions uniformly at random.

    Only the first k positions of a copy are shuffled, so the cost is O(k)
    swaps on top of the copy.
    """
    items = list(pool)
    n = len(items)
    k = min(k, n)
    for i in range(k):
        j = rng.randrange(i, n)
        items[i], items[j] = items[j], items[i]
    return items[:k]


def start_session(
    question_pool: Sequence[Question],
    batch_size: int = DEFAULT_BATCH_SIZE,
    rng: Optional[random.Random] = None,
) -> SessionState:
    """
    Start a new session with a freshly drawn batch.

    A pool smaller than `batch_size` yields every question in random order;
    such a batch can be played but never counts as a completed day.

    Raises
    ------
    EmptyPoolError
        If the pool has no questions.
    ValidationError
        If batch_size is not a positive integer.
    """
    if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size <= 0:
        raise ValidationError("batch_size", f"must be a positive integer, got {batch_size!r}")
    if not question_pool:
        raise EmptyPoolError(requested=batch_size)

    drawn = sample_questions(question_pool, batch_size, rng or random.Random())
    return SessionState(questions=tuple(drawn))


def submit_answer(
    state: SessionState, question_id: str, selected_key: str
) -> Tuple[SessionState, AnswerResult]:
    """
    Record the answer to the current question and reveal the result.

    Raises
    ------
    InvalidOperationError
        If `question_id` is not the question at `current_index`.
    DuplicateAnswerError
        If that question already has an answer.
    ValidationError
        If `selected_key` is not one of the question's option keys.
    """
    question = state.current_question
    if question is None:
        raise InvalidOperationError("submit_answer", "session has no questions")
    if question.id != question_id:
        raise InvalidOperationError(
            "submit_answer",
            f"question {question_id} is not the current question ({question.id})",
        )
    if state.answer_for(question_id) is not None:
        raise DuplicateAnswerError(question_id)
    if not question.has_option(selected_key):
        raise ValidationError(
            "selected_key",
            f"{selected_key!r} is not an option of question {question_id}",
        )

    is_correct = question.is_correct(selected_key)
    answer = Answer(question_id=question_id, selected_key=selected_key, is_correct=is_correct)

    new_state = replace(
        state,
        answers=state.answers + (answer,),
        phase=SessionPhase.SHOWING_RESULT,
    )
    return new_state, AnswerResult(
        is_correct=is_correct,
        correct_answer=question.correct_answer,
        explanation=question.explanation,
    )


def advance(state: SessionState) -> SessionState:
    """
    Move past a revealed result.

    Only SHOWING_RESULT advances; any other phase returns `state` unchanged so
    duplicate triggers (a timer firing twice, a double click) are harmless.
    """
    if state.phase is not SessionPhase.SHOWING_RESULT:
        return state

    next_index = state.current_index + 1
    if next_index < len(state.questions):
        return replace(state, current_index=next_index, phase=SessionPhase.AWAITING_ANSWER)
    return replace(state, phase=SessionPhase.COMPLETE)


def is_complete(state: SessionState) -> bool:
    return len(state.answers) == len(state.questions)


def finalize(state: SessionState) -> SessionResult:
    """
    Raises
    ------
    SessionNotCompleteError
        Unless every question in the batch has an answer.
    """
    if not is_complete(state):
        raise SessionNotCompleteError(answered=len(state.answers), total=len(state.questions))
    return SessionResult.from_answers(state.answers)


def current_question(state: SessionState) -> Optional[Question]:
    """The question to display, or None once the session is complete."""
    if state.phase is SessionPhase.COMPLETE:
        return None
    return state.current_question


def progress_fraction(state: SessionState) -> float:
    """Share of the batch answered-or-revealed, in [0.0, 1.0]."""
    if not state.questions:
        return 0.0
    revealed = 0 if state.phase is SessionPhase.AWAITING_ANSWER else 1
    return (state.current_index + revealed) / len(state.questions)
