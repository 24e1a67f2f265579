"""
Daily Challenge Service
=======================

Purpose
-------
Drive one daily challenge end to end: load the question pool, draw a
session, take answers, pace the reveal, and hand the finished session to
StreakService for persistence.

Design Notes
------------
- Sessions live with the caller (an immutable SessionState); nothing is
  written until `complete()`, so abandoned sessions leave no trace
- The question pool is read in full on every start (no paging)
- Events: daily_challenge.started here; daily_challenge.completed and the
  streak.* events come from StreakService after its commit
"""

from __future__ import annotations

import asyncio
import random
from datetime import date
from typing import TYPE_CHECKING, List, Optional, Tuple

from quizstreak.core.database.service import DatabaseService
from quizstreak.core.logging.logger import LogContext, get_logger
from quizstreak.database.models.question import Question as QuestionRow
from quizstreak.domain.models.question import AnswerResult, Question
from quizstreak.domain.models.session import SessionState
from quizstreak.modules.challenge import engine
from quizstreak.modules.shared.base_repository import BaseRepository
from quizstreak.modules.shared.base_service import BaseService
from quizstreak.modules.shared.exceptions import EmptyPoolError

if TYPE_CHECKING:
    from logging import Logger

    from quizstreak.core.config.manager import ConfigManager
    from quizstreak.core.event.bus import EventBus
    from quizstreak.modules.streak.service import CompletionSummary, StreakService


class QuestionRepository(BaseRepository[QuestionRow]):
    pass


class DailyChallengeService(BaseService):
    """
    Public Methods
    --------------
    - load_question_pool() -> Every question in the pool
    - start() -> Draw a new session
    - submit_answer() -> Grade the current question
    - advance() -> Move past a revealed result
    - advance_after_reveal() -> Wait the reveal delay, then advance
    - complete() -> Score the session and persist progress and streak
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        streak_service: StreakService,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._streaks = streak_service
        self._question_repo = QuestionRepository(
            model_class=QuestionRow,
            logger=get_logger(f"{__name__}.QuestionRepository"),
        )

    @property
    def batch_size(self) -> int:
        return int(self.get_config("daily_challenge.batch_size", engine.DEFAULT_BATCH_SIZE))

    @property
    def reveal_delay_seconds(self) -> float:
        return float(self.get_config("daily_challenge.reveal_delay_seconds", 2.0))

    async def load_question_pool(self) -> List[Question]:
        async with DatabaseService.get_session() as session:
            rows = await self._question_repo.find_many_where(
                session, order_by=[QuestionRow.id]
            )
            pool = [Question.from_db(row) for row in rows]

        self.log.debug("Question pool loaded", extra={"pool_size": len(pool)})
        return pool

    async def start(
        self, user_id: str, rng: Optional[random.Random] = None
    ) -> SessionState:
        """
        Draw a new session for the user.

        Raises
        ------
        EmptyPoolError
            If there are no questions; the caller should offer a retry later.
        """
        user_id = self.validate_user_id(user_id)
        batch_size = self.batch_size

        async with LogContext(user_id=user_id, operation="start_challenge"):
            self.log_operation("start_challenge", user_id=user_id, batch_size=batch_size)

            pool = await self.load_question_pool()
            try:
                state = engine.start_session(pool, batch_size=batch_size, rng=rng)
            except EmptyPoolError:
                self.log.info(
                    "Daily challenge unavailable: question pool is empty",
                    extra={"user_id": user_id},
                )
                raise

            if len(state.questions) < batch_size:
                self.log.warning(
                    "Question pool smaller than batch size; session cannot complete the day",
                    extra={
                        "user_id": user_id,
                        "pool_size": len(pool),
                        "batch_size": batch_size,
                    },
                )

        await self.emit_event(
            "daily_challenge.started",
            {
                "user_id": user_id,
                "question_ids": [q.id for q in state.questions],
                "batch_size": batch_size,
            },
        )
        return state

    def submit_answer(
        self, state: SessionState, question_id: str, selected_key: str
    ) -> Tuple[SessionState, AnswerResult]:
        new_state, result = engine.submit_answer(state, question_id, selected_key)
        self.log.debug(
            "Answer submitted",
            extra={
                "question_id": question_id,
                "is_correct": result.is_correct,
                "answered": len(new_state.answers),
                "total": len(new_state.questions),
            },
        )
        return new_state, result

    def advance(self, state: SessionState) -> SessionState:
        return engine.advance(state)

    async def advance_after_reveal(
        self, state: SessionState, delay: Optional[float] = None
    ) -> SessionState:
        """Keep the result on screen for the reveal delay, then advance."""
        seconds = self.reveal_delay_seconds if delay is None else delay
        if seconds > 0:
            await asyncio.sleep(seconds)
        return engine.advance(state)

    async def complete(
        self, user_id: str, state: SessionState, today: Optional[date] = None
    ) -> CompletionSummary:
        """
        Score the session and persist it.

        Raises
        ------
        SessionNotCompleteError
            If some question has no answer yet. Nothing is written.
        """
        user_id = self.validate_user_id(user_id)
        result = engine.finalize(state)
        return await self._streaks.record_completion(user_id, result, today=today)
