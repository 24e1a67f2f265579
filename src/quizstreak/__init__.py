"""
quizstreak: daily quiz challenges with consecutive-day streak tracking.

The pure core lives in `quizstreak.modules.challenge.engine` (session
engine) and `quizstreak.modules.streak.ledger` (streak accounting). The
services in the same packages persist results through SQLAlchemy and
publish events on `quizstreak.core.event.event_bus`.
"""

__version__ = "1.0.0"
