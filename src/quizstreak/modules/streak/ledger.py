"""
Streak ledger: pure streak accounting.

Given the prior streak state and today's session result, compute the new
streak, the day's progress row and, when a new personal best is reached, the
record to append. Nothing here touches storage or the clock; callers pass
`today` explicitly.

Rules
-----
- A day counts only when the full batch was answered.
- A second completion on the same day changes nothing but the progress row.
- Yesterday -> extend. Longer gap or first ever -> start over at 1.
- A last date in the future (clock skew) is treated as a fresh start.
- Best streak only ever grows; each strict increase yields one record.

Callers apply `apply_missed_day_reset` first, in the same transaction, so a
stale streak reads as 0 before it is extended or restarted.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Union

from quizstreak.core.logging.logger import get_logger
from quizstreak.domain.models.session import SessionResult
from quizstreak.domain.models.streak import (
    CompletionOutcome,
    DailyProgress,
    StreakRecord,
    StreakState,
)
from quizstreak.modules.challenge.engine import DEFAULT_BATCH_SIZE

logger = get_logger(__name__)

DateLike = Union[date, datetime]


def to_utc_date(value: DateLike) -> date:
    """Calendar date of `value`; aware datetimes are converted to UTC first."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from `start` to `end`, ignoring time of day."""
    return (to_utc_date(end) - to_utc_date(start)).days


def apply_missed_day_reset(streak: StreakState, today: DateLike) -> StreakState:
    """
    Zero the current streak if more than one day has passed since the last
    completion. Best streak and last date are left alone.

    Returns `streak` itself when nothing changes.
    """
    if streak.last_completed_date is None or streak.current_streak == 0:
        return streak
    if days_between(streak.last_completed_date, today) > 1:
        return streak.with_current(0)
    return streak


def record_completion(
    streak: StreakState,
    today: DateLike,
    result: SessionResult,
    user_id: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> CompletionOutcome:
    """
    Apply one session result to the streak.

    The progress row is always produced. The streak changes only for a full
    batch on a day that has not already been counted.
    """
    day = to_utc_date(today)
    completed = result.total_count >= batch_size
    progress = DailyProgress(
        user_id=user_id,
        date=day,
        questions_solved=result.total_count,
        questions_correct=result.correct_count,
        completed=completed,
    )

    if not completed:
        return CompletionOutcome(streak, progress, None, False)

    last = streak.last_completed_date
    if last == day:
        return CompletionOutcome(streak, progress, None, False)

    if last is None:
        new_current = 1
    else:
        diff = days_between(last, day)
        if diff == 1:
            new_current = streak.current_streak + 1
        elif diff > 1:
            new_current = 1
        else:
            logger.warning(
                "Last completion date is after today; restarting streak",
                extra={
                    "user_id": user_id,
                    "last_completed_date": last.isoformat(),
                    "today": day.isoformat(),
                    "day_diff": diff,
                },
            )
            new_current = 1

    new_longest = max(streak.longest_streak, new_current)
    new_streak = StreakState(
        current_streak=new_current,
        longest_streak=new_longest,
        last_completed_date=day,
    )

    record = None
    if new_longest > streak.longest_streak:
        record = StreakRecord(streak_value=new_longest, date_achieved=day)

    return CompletionOutcome(new_streak, progress, record, True)
