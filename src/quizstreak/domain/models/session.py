"""
Daily challenge session state.

A SessionState is a snapshot of one attempt: the drawn questions, where the
user is, what they answered, and which phase the UI is in. It never mutates;
the engine returns a fresh instance for every transition.

Phases
------
AWAITING_ANSWER -> SHOWING_RESULT -> AWAITING_ANSWER (next question)
                                  -> COMPLETE (after the last question)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from quizstreak.domain.models.base import DomainValidationError, validate_non_negative
from quizstreak.domain.models.question import Answer, Question


class SessionPhase(str, Enum):
    AWAITING_ANSWER = "awaiting_answer"
    SHOWING_RESULT = "showing_result"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionState:
    """
    Attributes
    ----------
    questions : Tuple[Question, ...]
        Drawn batch in presentation order
    current_index : int
        Index of the question being answered or revealed
    answers : Tuple[Answer, ...]
        One entry per answered question, in presentation order
    phase : SessionPhase
        Current UI phase
    """

    questions: Tuple[Question, ...]
    current_index: int = 0
    answers: Tuple[Answer, ...] = ()
    phase: SessionPhase = SessionPhase.AWAITING_ANSWER

    def __post_init__(self) -> None:
        object.__setattr__(self, "questions", tuple(self.questions))
        object.__setattr__(self, "answers", tuple(self.answers))

        validate_non_negative(self.current_index, "current_index")
        if self.questions and self.current_index >= len(self.questions):
            raise DomainValidationError(
                f"current_index {self.current_index} out of range for "
                f"{len(self.questions)} questions",
                field="current_index",
            )
        if len(self.answers) > len(self.questions):
            raise DomainValidationError(
                "More answers than questions in session", field="answers"
            )

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def answer_for(self, question_id: str) -> Optional[Answer]:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None


@dataclass(frozen=True)
class SessionResult:
    """Final score of a completed session."""

    answers: Tuple[Answer, ...]
    correct_count: int
    total_count: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "answers", tuple(self.answers))
        validate_non_negative(self.correct_count, "correct_count")
        validate_non_negative(self.total_count, "total_count")
        if self.correct_count > self.total_count:
            raise DomainValidationError(
                f"correct_count {self.correct_count} exceeds total_count {self.total_count}",
                field="correct_count",
            )

    @property
    def accuracy(self) -> int:
        """Rounded percentage of correct answers; 0 for an empty session."""
        if self.total_count == 0:
            return 0
        return round(self.correct_count / self.total_count * 100)

    @classmethod
    def from_answers(cls, answers: Tuple[Answer, ...]) -> "SessionResult":
        return cls(
            answers=tuple(answers),
            correct_count=sum(1 for a in answers if a.is_correct),
            total_count=len(answers),
        )
