"""ORM models. Importing this package registers every table on Base.metadata."""

from quizstreak.database.models.progress import DailyProgress
from quizstreak.database.models.question import Question
from quizstreak.database.models.streak import Streak, StreakRecord

__all__ = [
    "DailyProgress",
    "Question",
    "Streak",
    "StreakRecord",
]
