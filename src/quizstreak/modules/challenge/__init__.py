"""Daily challenge: the pure session engine and its orchestrating service."""

from quizstreak.modules.challenge.engine import (
    DEFAULT_BATCH_SIZE,
    advance,
    current_question,
    finalize,
    is_complete,
    progress_fraction,
    sample_questions,
    start_session,
    submit_answer,
)
from quizstreak.modules.challenge.service import DailyChallengeService

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DailyChallengeService",
    "advance",
    "current_question",
    "finalize",
    "is_complete",
    "progress_fraction",
    "sample_questions",
    "start_session",
    "submit_answer",
]
