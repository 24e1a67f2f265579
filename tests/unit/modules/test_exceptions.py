"""
Unit tests for the quizstreak domain exception hierarchy.
"""

import pytest

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


@pytest.mark.unit
class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "exc",
        [
            EmptyPoolError(5),
            DuplicateAnswerError("q-1"),
            SessionNotCompleteError(2, 5),
            ValidationError("user_id", "blank"),
            InvalidOperationError("submit_answer", "not current"),
        ],
    )
    def test_all_inherit_from_base(self, exc):
        assert isinstance(exc, QuizStreakDomainException)
        assert exc.to_dict()["error_type"] == type(exc).__name__

    def test_empty_pool_is_retryable_info(self):
        exc = EmptyPoolError(requested=5)

        assert exc.is_retryable is True
        assert exc.severity is ErrorSeverity.INFO
        assert exc.error_code == "EMPTY_QUESTION_POOL"
        assert exc.details == {"requested": 5, "available": 0}

    def test_session_not_complete_details(self):
        exc = SessionNotCompleteError(answered=3, total=5)

        assert exc.details["remaining"] == 2
        assert "3 of 5" in exc.message

    def test_str_includes_code_and_details(self):
        exc = DuplicateAnswerError("q-9")

        assert str(exc).startswith("[DUPLICATE_ANSWER]")
        assert "q-9" in str(exc)


@pytest.mark.unit
class TestExceptionHelpers:
    def test_is_transient_error(self):
        assert is_transient_error(EmptyPoolError()) is True
        assert is_transient_error(DuplicateAnswerError("q-1")) is False
        assert is_transient_error(RuntimeError("boom")) is False

    def test_severity_of_foreign_exception_is_error(self):
        assert get_error_severity(KeyError("x")) is ErrorSeverity.ERROR

    def test_should_alert(self):
        assert should_alert(SessionNotCompleteError(1, 5)) is True
        assert should_alert(ValidationError("selected_key", "unknown")) is False
        assert should_alert(RuntimeError("boom")) is True
