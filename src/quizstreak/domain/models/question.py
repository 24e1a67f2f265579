"""
Question and answer value objects.

A Question is read from the pool and never changes during a session. An
Answer is the user's choice for one question, graded at submission time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from quizstreak.domain.models.base import DomainValidationError, validate_not_empty

if TYPE_CHECKING:
    from quizstreak.database.models.question import Question as QuestionDB


class Subject(str, Enum):
    MATH = "math"
    ENGLISH = "english"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class Question:
    """
    Immutable question drawn from the pool.

    Attributes
    ----------
    id : str
        Stable question identifier
    subject : Subject
        math or english
    text : str
        Prompt shown to the user
    options : Mapping[str, str]
        Option key (e.g. "A") to option text, in display order
    correct_answer : str
        Key of the correct option
    explanation : str
        Shown after the answer is revealed
    difficulty : Difficulty
        easy, medium or hard
    """

    id: str
    subject: Subject
    text: str
    options: Mapping[str, str] = field(hash=False)
    correct_answer: str
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_not_empty(self.text, "text")

        if not self.options:
            raise DomainValidationError("Question must have at least one option", field="options")
        if self.correct_answer not in self.options:
            raise DomainValidationError(
                f"correct_answer {self.correct_answer!r} is not one of the option keys "
                f"{sorted(self.options)}",
                field="correct_answer",
            )

        # Frozen dataclass: coerce through object.__setattr__.
        object.__setattr__(self, "subject", Subject(self.subject))
        object.__setattr__(self, "difficulty", Difficulty(self.difficulty))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def is_correct(self, selected_key: str) -> bool:
        return selected_key == self.correct_answer

    def has_option(self, key: str) -> bool:
        return key in self.options

    @classmethod
    def from_db(cls, row: "QuestionDB") -> "Question":
        return cls(
            id=str(row.id),
            subject=Subject(row.subject),
            text=row.text,
            options=dict(row.options or {}),
            correct_answer=row.correct_answer,
            explanation=row.explanation or "",
            difficulty=Difficulty(row.difficulty),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject.value,
            "text": self.text,
            "options": dict(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
            "difficulty": self.difficulty.value,
        }


@dataclass(frozen=True)
class Answer:
    """One graded answer. Sessions keep these in presentation order."""

    question_id: str
    selected_key: str
    is_correct: bool


@dataclass(frozen=True)
class AnswerResult:
    """Immediate feedback returned when an answer is submitted."""

    is_correct: bool
    correct_answer: str
    explanation: str
