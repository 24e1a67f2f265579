"""
Streak and StreakRecord tables.

- streaks: one row per user, mutated under SELECT ... FOR UPDATE
- streaks_records: append-only personal bests
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import CheckConstraint, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quizstreak.core.database.base import Base, IdMixin, TimestampMixin


class Streak(Base, IdMixin, TimestampMixin):
    __tablename__ = "streaks"
    __table_args__ = (
        CheckConstraint("current_streak >= 0", name="current_non_negative"),
        CheckConstraint("longest_streak >= current_streak", name="longest_at_least_current"),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Streak user={self.user_id} current={self.current_streak} "
            f"longest={self.longest_streak} last={self.last_completed_date}>"
        )


class StreakRecord(Base, IdMixin, TimestampMixin):
    __tablename__ = "streaks_records"
    __table_args__ = (Index("ix_streaks_records_user_date", "user_id", "date_achieved"),)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    streak_value: Mapped[int] = mapped_column(Integer, nullable=False)
    date_achieved: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<StreakRecord user={self.user_id} value={self.streak_value} on={self.date_achieved}>"
