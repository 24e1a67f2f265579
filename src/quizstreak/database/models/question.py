"""
Question: the read-only question pool.
Schema only; authoring happens outside this service.
"""

from __future__ import annotations

from typing import Dict

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from quizstreak.core.database.base import Base, TimestampMixin


class Question(Base, TimestampMixin):
    __tablename__ = "questions"
    __table_args__ = (Index("ix_questions_subject_difficulty", "subject", "difficulty"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    subject: Mapped[str] = mapped_column(String(16), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    # {"A": "...", "B": "..."} in display order.
    options: Mapped[Dict[str, str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
    correct_answer: Mapped[str] = mapped_column(String(16), nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")

    def __repr__(self) -> str:
        return f"<Question id={self.id} subject={self.subject} difficulty={self.difficulty}>"
