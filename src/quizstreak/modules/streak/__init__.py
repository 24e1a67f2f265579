"""Streaks: the pure ledger and the persistence service around it."""

from quizstreak.modules.streak.ledger import (
    apply_missed_day_reset,
    days_between,
    record_completion,
)
from quizstreak.modules.streak.service import (
    CompletionSummary,
    DashboardSummary,
    FriendRecord,
    FriendStreak,
    StreakService,
)

__all__ = [
    "CompletionSummary",
    "DashboardSummary",
    "FriendRecord",
    "FriendStreak",
    "StreakService",
    "apply_missed_day_reset",
    "days_between",
    "record_completion",
]
