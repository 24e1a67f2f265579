"""
Event system for quizstreak.

Exports the process-wide EventBus singleton plus the types needed to
subscribe to it.
"""

from .bus import EventBus
from .router import EventRouter
from .types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

event_bus = EventBus()

__all__ = [
    "event_bus",
    "EventBus",
    "EventRouter",
    "EventPayload",
    "ListenerPriority",
    "EventListener",
    "CallbackType",
]
