"""
Domain exceptions for quizstreak.

Purpose
-------
Define the structured exception hierarchy raised by the challenge engine,
the streak ledger and the services. Callers (a web handler, a CLI, a test)
translate these into user-facing messages; the services never format UI.

Design Notes
------------
- All domain exceptions inherit from `QuizStreakDomainException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict-like)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- Helper functions (`is_transient_error`, `get_error_severity`, `should_alert`)
  centralize common exception handling patterns.
- Invariant violations inside domain value objects raise
  `DomainValidationError` (see `quizstreak.domain.models.base`) instead;
  those indicate a programming fault rather than bad user input.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class QuizStreakDomainException(Exception):
    """
    Base exception for all quizstreak domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error (dict-like)
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class EmptyPoolError(QuizStreakDomainException):
    """
    Raised when a session is requested but the question pool is empty.

    Expected and user-facing: the caller offers "try again later".
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = True

    def __init__(self, requested: int = 0) -> None:
        self.requested = requested
        super().__init__(
            "No questions available for the daily challenge",
            details={"requested": requested, "available": 0},
            error_code="EMPTY_QUESTION_POOL",
        )


class DuplicateAnswerError(QuizStreakDomainException):
    """
    Raised when a question in the session already has an answer.

    The UI should make this impossible; seeing it means a logic fault.
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = False

    def __init__(self, question_id: str) -> None:
        self.question_id = question_id
        super().__init__(
            f"Question {question_id} has already been answered in this session",
            details={"question_id": question_id},
            error_code="DUPLICATE_ANSWER",
        )


class SessionNotCompleteError(QuizStreakDomainException):
    """Raised when a session is finalized before every question is answered."""

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = False

    def __init__(self, answered: int, total: int) -> None:
        self.answered = answered
        self.total = total
        super().__init__(
            f"Session not complete: {answered} of {total} questions answered",
            details={"answered": answered, "total": total, "remaining": total - answered},
            error_code="SESSION_NOT_COMPLETE",
        )


class ValidationError(QuizStreakDomainException):
    """
    Raised when caller input fails validation (unknown option key, blank
    user id, and so on).

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


class InvalidOperationError(QuizStreakDomainException):
    """
    Raised when an action is not allowed in the current state.

    Example:
        >>> raise InvalidOperationError(
        ...     "submit_answer",
        ...     "question q-7 is not the current question"
        ... )
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            details={"action": action, "reason": reason},
            error_code=f"INVALID_{action.upper()}",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: Exception) -> bool:
    """True if the exception says the operation can be retried."""
    if isinstance(exc, QuizStreakDomainException):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    if isinstance(exc, QuizStreakDomainException):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """True if severity is ERROR or CRITICAL."""
    severity = get_error_severity(exc)
    return severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
