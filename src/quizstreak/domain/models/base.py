"""
Base domain model primitives for quizstreak.

Purpose
-------
Shared building blocks for the immutable domain models: the validation
error raised on invariant violations, small validators used from
`__post_init__`, and the DomainEvent envelope that services publish on the
event bus after a transaction commits.

Non-Responsibilities
--------------------
- Persistence (handled by repositories and the ORM models)
- Service orchestration (handled by the service layer)

Design Patterns
---------------
- **Value Object**: frozen dataclasses, validated on construction, every
  "mutation" returns a new instance via `dataclasses.replace`.
- **Domain Events**: describe what happened; published by services only
  after the surrounding transaction has committed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass(frozen=True)
class DomainEvent:
    """
    A state change worth announcing.

    Attributes
    ----------
    event_name : str
        Event name (e.g., "streak.extended")
    payload : Dict[str, Any]
        Event payload with relevant data
    occurred_at : datetime
        When the event occurred (UTC)
    """

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """Raised when a domain model is constructed in an invalid state."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_non_negative(value: int, field_name: str) -> None:
    """
    Raises
    ------
    DomainValidationError
        If value is negative
    """
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    """
    Raises
    ------
    DomainValidationError
        If value is empty or whitespace-only
    """
    if not value or not value.strip():
        raise DomainValidationError(
            f"{field_name} cannot be empty",
            field=field_name,
        )
