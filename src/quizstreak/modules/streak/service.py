"""
Streak Service
==============

Purpose
-------
Persist the outcome of daily challenges: the per-day progress row, the
user's streak and their personal-best history. Also serves the read models
behind the dashboard and the records page (own records, friends' streaks,
friends' records).

Domain
------
- Lazy missed-day reset on every read and before every completion
- Atomic completion: progress upsert, streak update and record append
  succeed or fail together
- Same-day completions are idempotent for the streak
- Friends' stale streaks are shown as 0 without writing their rows

Design Notes
------------
- Transaction-safe: every write runs in DatabaseService.get_transaction()
- Pessimistic locking: the streak row is read with SELECT ... FOR UPDATE
  before anything else in a completion, which serializes writers per user
- Event-driven: streak.* and daily_challenge.completed are published only
  after the transaction commits
- The rules themselves live in `ledger`; this module only moves data
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Callable, List, NamedTuple, Optional, Sequence

from quizstreak.core.database.service import DatabaseService
from quizstreak.core.logging.logger import LogContext, get_logger
from quizstreak.database.models.progress import DailyProgress as DailyProgressRow
from quizstreak.database.models.streak import Streak as StreakRow
from quizstreak.database.models.streak import StreakRecord as StreakRecordRow
from quizstreak.domain.models.base import DomainEvent
from quizstreak.domain.models.session import SessionResult
from quizstreak.domain.models.streak import (
    CompletionOutcome,
    DailyProgress,
    StreakRecord,
    StreakState,
)
from quizstreak.modules.challenge.engine import DEFAULT_BATCH_SIZE
from quizstreak.modules.shared.base_repository import BaseRepository
from quizstreak.modules.shared.base_service import BaseService
from quizstreak.modules.shared.exceptions import ValidationError
from quizstreak.modules.streak import ledger

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from quizstreak.core.config.manager import ConfigManager
    from quizstreak.core.event.bus import EventBus


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


# ============================================================================
# Read Models
# ============================================================================


@dataclass(frozen=True)
class CompletionSummary:
    """What the results screen shows after a challenge is saved."""

    user_id: str
    date: date
    correct_count: int
    total_count: int
    accuracy: int
    completed: bool
    current_streak: int
    longest_streak: int
    streak_changed: bool
    new_record: Optional[StreakRecord] = None


@dataclass(frozen=True)
class DashboardSummary:
    user_id: str
    current_streak: int
    longest_streak: int
    today: Optional[DailyProgress] = None


@dataclass(frozen=True)
class FriendStreak:
    user_id: str
    current_streak: int
    longest_streak: int


class FriendRecord(NamedTuple):
    user_id: str
    record: StreakRecord


# ============================================================================
# Repositories
# ============================================================================


class StreakRepository(BaseRepository[StreakRow]):
    async def get_for_user(
        self, session: AsyncSession, user_id: str, *, for_update: bool = False
    ) -> Optional[StreakRow]:
        return await self.find_one_where(
            session, StreakRow.user_id == user_id, for_update=for_update
        )

    async def get_for_users(
        self, session: AsyncSession, user_ids: Sequence[str]
    ) -> List[StreakRow]:
        return await self.find_many_where(session, StreakRow.user_id.in_(list(user_ids)))


class DailyProgressRepository(BaseRepository[DailyProgressRow]):
    async def get_for_day(
        self, session: AsyncSession, user_id: str, day: date, *, for_update: bool = False
    ) -> Optional[DailyProgressRow]:
        return await self.find_one_where(
            session,
            DailyProgressRow.user_id == user_id,
            DailyProgressRow.progress_date == day,
            for_update=for_update,
        )


class StreakRecordRepository(BaseRepository[StreakRecordRow]):
    async def newest_for_users(
        self, session: AsyncSession, user_ids: Sequence[str], limit: Optional[int] = None
    ) -> List[StreakRecordRow]:
        return await self.find_many_where(
            session,
            StreakRecordRow.user_id.in_(list(user_ids)),
            order_by=[StreakRecordRow.date_achieved.desc(), StreakRecordRow.id.desc()],
            limit=limit,
        )


# ============================================================================
# StreakService
# ============================================================================


class StreakService(BaseService):
    """
    Public Methods
    --------------
    - get_streak() -> Current streak with the lazy reset applied (and persisted)
    - record_completion() -> Save a finished session and update the streak
    - get_daily_progress() -> One day's progress row
    - get_dashboard() -> Streak plus today's progress
    - get_records() -> Own personal bests, newest first
    - get_friend_streaks() -> Friends' streaks, highest current first
    - get_friend_records() -> Friends' personal bests, newest first
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        clock: Callable[[], date] = utc_today,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._clock = clock

        self._streak_repo = StreakRepository(
            model_class=StreakRow,
            logger=get_logger(f"{__name__}.StreakRepository"),
        )
        self._progress_repo = DailyProgressRepository(
            model_class=DailyProgressRow,
            logger=get_logger(f"{__name__}.DailyProgressRepository"),
        )
        self._record_repo = StreakRecordRepository(
            model_class=StreakRecordRow,
            logger=get_logger(f"{__name__}.StreakRecordRepository"),
        )

    def _today(self, today: Optional[date]) -> date:
        return ledger.to_utc_date(today) if today is not None else self._clock()

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def get_streak(self, user_id: str, today: Optional[date] = None) -> StreakState:
        """
        Return the user's streak, creating an empty one on first use.

        A stale streak is reset to 0 and the reset is written back, so later
        readers see the same value.
        """
        user_id = self.validate_user_id(user_id)
        day = self._today(today)

        async with DatabaseService.get_transaction() as session:
            row = await self._get_or_create_streak(session, user_id)
            before = StreakState.from_db(row)
            after = ledger.apply_missed_day_reset(before, day)
            if after != before:
                self._apply_streak(row, after)

        if after != before:
            await self.emit_domain_events([self._reset_event(user_id, before, day)])

        return after

    async def record_completion(
        self,
        user_id: str,
        result: SessionResult,
        today: Optional[date] = None,
    ) -> CompletionSummary:
        """
        Save a finished session.

        One transaction: lock the streak row, apply the lazy reset, run the
        ledger, upsert the day's progress, update the streak and append a
        record when a new best is reached. Any storage error rolls back all
        of it and propagates unchanged.

        A partial session never advances the streak, but the lazy reset still
        applies: a stale streak is written back with `current_streak=0` and
        `streak.reset` is emitted, the same as a `get_streak` read would do.
        """
        user_id = self.validate_user_id(user_id)
        day = self._today(today)
        batch_size = int(self.get_config("daily_challenge.batch_size", DEFAULT_BATCH_SIZE))

        async with LogContext(user_id=user_id, operation="record_completion"):
            self.log_operation(
                "record_completion",
                user_id=user_id,
                date=day.isoformat(),
                correct_count=result.correct_count,
                total_count=result.total_count,
            )

            try:
                async with DatabaseService.get_transaction() as session:
                    row = await self._get_or_create_streak(session, user_id)
                    before = StreakState.from_db(row)
                    reset = ledger.apply_missed_day_reset(before, day)
                    outcome = ledger.record_completion(
                        reset, day, result, user_id, batch_size=batch_size
                    )

                    await self._upsert_progress(session, outcome.progress)

                    if outcome.streak != before:
                        self._apply_streak(row, outcome.streak)

                    if outcome.record is not None:
                        self._record_repo.add(
                            session,
                            StreakRecordRow(
                                user_id=user_id,
                                streak_value=outcome.record.streak_value,
                                date_achieved=outcome.record.date_achieved,
                            ),
                        )

            except Exception as e:
                self.log_error(
                    "record_completion", e, user_id=user_id, date=day.isoformat()
                )
                raise

            await self.emit_domain_events(
                self._completion_events(user_id, day, before, reset, outcome, result)
            )

            self.log.info(
                f"Completion saved for {user_id} "
                f"({result.correct_count}/{result.total_count}, streak {outcome.streak.current_streak})",
                extra={
                    "user_id": user_id,
                    "date": day.isoformat(),
                    "completed": outcome.progress.completed,
                    "streak_changed": outcome.streak_changed,
                    "current_streak": outcome.streak.current_streak,
                    "longest_streak": outcome.streak.longest_streak,
                    "new_record": outcome.record is not None,
                },
            )

        return CompletionSummary(
            user_id=user_id,
            date=day,
            correct_count=result.correct_count,
            total_count=result.total_count,
            accuracy=result.accuracy,
            completed=outcome.progress.completed,
            current_streak=outcome.streak.current_streak,
            longest_streak=outcome.streak.longest_streak,
            streak_changed=outcome.streak_changed,
            new_record=outcome.record,
        )

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_daily_progress(
        self, user_id: str, day: Optional[date] = None
    ) -> Optional[DailyProgress]:
        user_id = self.validate_user_id(user_id)
        day = self._today(day)

        async with DatabaseService.get_session() as session:
            row = await self._progress_repo.get_for_day(session, user_id, day)
            return DailyProgress.from_db(row) if row is not None else None

    async def get_dashboard(
        self, user_id: str, today: Optional[date] = None
    ) -> DashboardSummary:
        day = self._today(today)
        streak = await self.get_streak(user_id, day)
        progress = await self.get_daily_progress(user_id, day)
        return DashboardSummary(
            user_id=user_id,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            today=progress,
        )

    async def get_records(self, user_id: str) -> List[StreakRecord]:
        """Own personal bests, newest first."""
        user_id = self.validate_user_id(user_id)

        async with DatabaseService.get_session() as session:
            rows = await self._record_repo.newest_for_users(session, [user_id])
            return [StreakRecord.from_db(row) for row in rows]

    async def get_friend_streaks(
        self, friend_ids: Sequence[str], today: Optional[date] = None
    ) -> List[FriendStreak]:
        """
        Friends' streaks sorted by current streak, highest first.

        Friends who never played have no row and are left out. Stale streaks
        are displayed as 0; their rows are not written from here.
        """
        friend_ids = self._validate_friend_ids(friend_ids)
        if not friend_ids:
            return []
        day = self._today(today)

        async with DatabaseService.get_session() as session:
            rows = await self._streak_repo.get_for_users(session, friend_ids)

        friends = []
        for row in rows:
            state = ledger.apply_missed_day_reset(StreakState.from_db(row), day)
            friends.append(
                FriendStreak(
                    user_id=row.user_id,
                    current_streak=state.current_streak,
                    longest_streak=state.longest_streak,
                )
            )

        friends.sort(key=lambda f: (-f.current_streak, -f.longest_streak, f.user_id))
        return friends

    async def get_friend_records(
        self, friend_ids: Sequence[str], limit: Optional[int] = None
    ) -> List[FriendRecord]:
        """Friends' personal bests, newest first."""
        friend_ids = self._validate_friend_ids(friend_ids)
        if not friend_ids:
            return []

        if limit is None:
            limit = int(self.get_config("streaks.friend_records_limit", 20))
        self.validate_positive_int(limit, "limit")

        async with DatabaseService.get_session() as session:
            rows = await self._record_repo.newest_for_users(session, friend_ids, limit=limit)
            return [FriendRecord(row.user_id, StreakRecord.from_db(row)) for row in rows]

    # ========================================================================
    # Internals
    # ========================================================================

    def _validate_friend_ids(self, friend_ids: Sequence[str]) -> List[str]:
        if isinstance(friend_ids, str):
            raise ValidationError("friend_ids", "must be a sequence of user ids, not a string")
        return list(dict.fromkeys(self.validate_user_id(f, "friend_id") for f in friend_ids))

    async def _get_or_create_streak(self, session: AsyncSession, user_id: str) -> StreakRow:
        row = await self._streak_repo.get_for_user(session, user_id, for_update=True)
        if row is None:
            row = self._streak_repo.add(
                session,
                StreakRow(
                    user_id=user_id,
                    current_streak=0,
                    longest_streak=0,
                    last_completed_date=None,
                ),
            )
            await self._streak_repo.flush(session)
            self.log.info("Created streak row", extra={"user_id": user_id})
        return row

    async def _upsert_progress(self, session: AsyncSession, progress: DailyProgress) -> None:
        row = await self._progress_repo.get_for_day(
            session, progress.user_id, progress.date, for_update=True
        )
        if row is None:
            self._progress_repo.add(
                session,
                DailyProgressRow(
                    user_id=progress.user_id,
                    progress_date=progress.date,
                    questions_solved=progress.questions_solved,
                    questions_correct=progress.questions_correct,
                    completed=progress.completed,
                ),
            )
            return

        row.questions_solved = progress.questions_solved
        row.questions_correct = progress.questions_correct
        row.completed = progress.completed

    @staticmethod
    def _apply_streak(row: StreakRow, state: StreakState) -> None:
        for column, value in state.to_db_updates().items():
            setattr(row, column, value)

    @staticmethod
    def _reset_event(user_id: str, before: StreakState, day: date) -> DomainEvent:
        return DomainEvent(
            "streak.reset",
            {
                "user_id": user_id,
                "previous_streak": before.current_streak,
                "longest_streak": before.longest_streak,
                "last_completed_date": before.last_completed_date.isoformat()
                if before.last_completed_date
                else None,
                "date": day.isoformat(),
            },
        )

    def _completion_events(
        self,
        user_id: str,
        day: date,
        before: StreakState,
        reset: StreakState,
        outcome: CompletionOutcome,
        result: SessionResult,
    ) -> List[DomainEvent]:
        events = []
        if reset != before:
            events.append(self._reset_event(user_id, before, day))

        events.append(
            DomainEvent(
                "daily_challenge.completed",
                {
                    "user_id": user_id,
                    "date": day.isoformat(),
                    "correct_count": result.correct_count,
                    "total_count": result.total_count,
                    "accuracy": result.accuracy,
                    "completed": outcome.progress.completed,
                },
            )
        )

        if outcome.streak_changed:
            events.append(
                DomainEvent(
                    "streak.extended",
                    {
                        "user_id": user_id,
                        "date": day.isoformat(),
                        "previous_streak": reset.current_streak,
                        "current_streak": outcome.streak.current_streak,
                        "longest_streak": outcome.streak.longest_streak,
                    },
                )
            )

        if outcome.record is not None:
            events.append(
                DomainEvent(
                    "streak.record_achieved",
                    {
                        "user_id": user_id,
                        "streak_value": outcome.record.streak_value,
                        "date_achieved": outcome.record.date_achieved.isoformat(),
                    },
                )
            )

        return events
