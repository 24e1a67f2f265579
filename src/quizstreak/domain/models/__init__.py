"""
Domain models: immutable value objects for questions, sessions and streaks.

These are separate from the ORM models in `quizstreak.database.models`;
services convert between the two with `from_db` / `to_db_updates`.
"""

from quizstreak.domain.models.base import (
    DomainEvent,
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
)
from quizstreak.domain.models.question import (
    Answer,
    AnswerResult,
    Difficulty,
    Question,
    Subject,
)
from quizstreak.domain.models.session import SessionPhase, SessionResult, SessionState
from quizstreak.domain.models.streak import (
    CompletionOutcome,
    DailyProgress,
    StreakRecord,
    StreakState,
)

__all__ = [
    "DomainEvent",
    "DomainValidationError",
    "validate_non_negative",
    "validate_not_empty",
    "Answer",
    "AnswerResult",
    "Difficulty",
    "Question",
    "Subject",
    "SessionPhase",
    "SessionResult",
    "SessionState",
    "CompletionOutcome",
    "DailyProgress",
    "StreakRecord",
    "StreakState",
]
