"""
Shared service-layer foundations: base service, base repository and the
domain exception hierarchy.
"""

from quizstreak.modules.shared.base_repository import BaseRepository
from quizstreak.modules.shared.base_service import BaseService
from quizstreak.modules.shared.exceptions import (
    DuplicateAnswerError,
    EmptyPoolError,
    ErrorSeverity,
    InvalidOperationError,
    QuizStreakDomainException,
    SessionNotCompleteError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

__all__ = [
    "BaseRepository",
    "BaseService",
    "DuplicateAnswerError",
    "EmptyPoolError",
    "ErrorSeverity",
    "InvalidOperationError",
    "QuizStreakDomainException",
    "SessionNotCompleteError",
    "ValidationError",
    "get_error_severity",
    "is_transient_error",
    "should_alert",
]
