"""
DailyProgress: what a user did on one calendar day.
One row per (user_id, date); written with upsert semantics.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from quizstreak.core.database.base import Base, IdMixin, TimestampMixin


class DailyProgress(Base, IdMixin, TimestampMixin):
    __tablename__ = "daily_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    progress_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    questions_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    questions_correct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<DailyProgress user={self.user_id} date={self.progress_date} "
            f"solved={self.questions_solved} completed={self.completed}>"
        )
