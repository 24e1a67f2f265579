"""
Streak and daily progress value objects.

Purpose
-------
Represent a user's consecutive-day streak, their personal-best history and
the per-day progress row. These are the inputs and outputs of the pure
streak ledger; services convert them to and from ORM rows.

Invariants
----------
- current_streak >= 0, longest_streak >= 0
- longest_streak >= current_streak
- DailyProgress.completed implies questions_solved >= batch size (checked by
  the ledger, which knows the batch size)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import TYPE_CHECKING, NamedTuple, Optional

from quizstreak.domain.models.base import (
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
)

if TYPE_CHECKING:
    from quizstreak.database.models.progress import DailyProgress as DailyProgressDB
    from quizstreak.database.models.streak import Streak as StreakDB
    from quizstreak.database.models.streak import StreakRecord as StreakRecordDB


@dataclass(frozen=True)
class StreakState:
    """
    Attributes
    ----------
    current_streak : int
        Consecutive completed days ending at last_completed_date
    longest_streak : int
        Personal best, never below current_streak
    last_completed_date : Optional[date]
        Last day a full batch was completed, None if never
    """

    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[date] = None

    def __post_init__(self) -> None:
        validate_non_negative(self.current_streak, "current_streak")
        validate_non_negative(self.longest_streak, "longest_streak")
        if self.longest_streak < self.current_streak:
            raise DomainValidationError(
                f"longest_streak ({self.longest_streak}) cannot be below "
                f"current_streak ({self.current_streak})",
                field="longest_streak",
            )

    def with_current(self, current_streak: int) -> "StreakState":
        return replace(self, current_streak=current_streak)

    @classmethod
    def from_db(cls, row: "StreakDB") -> "StreakState":
        return cls(
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
            last_completed_date=row.last_completed_date,
        )

    def to_db_updates(self) -> dict:
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_completed_date": self.last_completed_date,
        }


@dataclass(frozen=True)
class StreakRecord:
    """A new personal best, appended once and never rewritten."""

    streak_value: int
    date_achieved: date

    def __post_init__(self) -> None:
        if self.streak_value < 1:
            raise DomainValidationError(
                f"streak_value must be at least 1, got {self.streak_value}",
                field="streak_value",
            )

    @classmethod
    def from_db(cls, row: "StreakRecordDB") -> "StreakRecord":
        return cls(streak_value=row.streak_value, date_achieved=row.date_achieved)


@dataclass(frozen=True)
class DailyProgress:
    """What the user did on one calendar day. One per (user_id, date)."""

    user_id: str
    date: date
    questions_solved: int
    questions_correct: int
    completed: bool

    def __post_init__(self) -> None:
        validate_not_empty(self.user_id, "user_id")
        validate_non_negative(self.questions_solved, "questions_solved")
        validate_non_negative(self.questions_correct, "questions_correct")
        if self.questions_correct > self.questions_solved:
            raise DomainValidationError(
                "questions_correct cannot exceed questions_solved",
                field="questions_correct",
            )

    @classmethod
    def from_db(cls, row: "DailyProgressDB") -> "DailyProgress":
        return cls(
            user_id=row.user_id,
            date=row.progress_date,
            questions_solved=row.questions_solved,
            questions_correct=row.questions_correct,
            completed=row.completed,
        )


class CompletionOutcome(NamedTuple):
    """Result of applying one completion to a streak."""

    streak: StreakState
    progress: DailyProgress
    record: Optional[StreakRecord]
    streak_changed: bool
