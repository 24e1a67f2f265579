"""
Base Service Foundation

Purpose
-------
Common base for the quizstreak domain services. Services orchestrate the
pure core (session engine, streak ledger) against the record store, own
transaction boundaries via DatabaseService, and emit domain events.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access
- Event emission helpers
- Input validation wrapping (raises ValidationError)

What this class does NOT do:
- Manage database transactions (that's DatabaseService's job)
- Contain challenge or streak rules (those live in the pure modules)

Usage
-----
    class StreakService(BaseService):
        def __init__(self, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)

        async def record_completion(self, user_id: str, result: SessionResult):
            self.log_operation("record_completion", user_id=user_id)
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from quizstreak.core.config.errors import MissingConfigError
from quizstreak.domain.models.base import DomainEvent
from quizstreak.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from quizstreak.core.config.manager import ConfigManager
    from quizstreak.core.event.bus import EventBus


class BaseService:
    """
    Base class for all domain services.

    Args:
        config_manager: Challenge configuration (ConfigManager or compatible)
        event_bus: Event bus for cross-module communication
        logger: Structured logger instance
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Retrieve a configuration value.

        Raises:
            MissingConfigError: If required=True and key is missing
        """
        value = self._config.get(key, default)
        if required and value is None:
            raise MissingConfigError(key)
        return value

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._events.publish(event_type, {**data, **(context or {})})

    async def emit_domain_events(self, events: Iterable[DomainEvent]) -> None:
        """Publish events in order. Call only after the transaction has committed."""
        for event in events:
            await self.emit_event(
                event.event_name,
                event.payload,
                {"occurred_at": event.occurred_at.isoformat()},
            )

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(
        self,
        operation: str,
        error: Exception,
        **context: Any,
    ) -> None:
        self.log.error(
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )

    def validate_user_id(self, user_id: Any, name: str = "user_id") -> str:
        """
        Raises:
            ValidationError: If user_id is not a non-blank string
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError(name, f"{name} must be a non-empty string, got {user_id!r}")
        return user_id

    def validate_positive_int(self, value: int, name: str) -> None:
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValidationError(
                name, f"{name} must be a positive integer, got {value}"
            )
