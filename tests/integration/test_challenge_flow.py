"""
Integration Tests for the Daily Challenge Flow
==============================================

Load the pool from the database, play a session through
DailyChallengeService and persist it via StreakService.
"""

from datetime import date, timedelta

import pytest

from quizstreak.core.config.manager import ConfigManager
from quizstreak.domain.models.session import SessionPhase
from quizstreak.modules.shared.exceptions import EmptyPoolError

pytestmark = [pytest.mark.integration, pytest.mark.database]

DAY = date(2024, 5, 1)


async def _play_day(service, user_id, rng, today, wrong=0):
    state = await service.start(user_id, rng=rng)
    for i in range(len(state.questions)):
        question = state.current_question
        key = "B" if i < wrong else question.correct_answer
        state, _ = service.submit_answer(state, question.id, key)
        state = await service.advance_after_reveal(state, delay=0)
    assert state.phase is SessionPhase.COMPLETE
    return await service.complete(user_id, state, today=today)


class TestChallengeFlow:
    async def test_pool_loaded_in_id_order(self, seeded_questions, challenge_service):
        pool = await challenge_service.load_question_pool()

        assert [q.id for q in pool] == sorted(q.id for q in seeded_questions)
        assert pool[0].options["A"] == "4"

    async def test_full_day(self, seeded_questions, challenge_service, recorded_events, rng):
        summary = await _play_day(challenge_service, "u-1", rng, DAY, wrong=2)

        assert summary.correct_count == 3
        assert summary.total_count == 5
        assert summary.accuracy == 60
        assert summary.current_streak == 1
        assert [name for name, _ in recorded_events] == [
            "daily_challenge.started",
            "daily_challenge.completed",
            "streak.extended",
            "streak.record_achieved",
        ]

    async def test_three_day_streak_then_gap(self, seeded_questions, challenge_service, rng):
        for offset in range(3):
            summary = await _play_day(
                challenge_service, "u-1", rng, DAY + timedelta(days=offset)
            )
        assert (summary.current_streak, summary.longest_streak) == (3, 3)

        summary = await _play_day(challenge_service, "u-1", rng, DAY + timedelta(days=5))

        assert (summary.current_streak, summary.longest_streak) == (1, 3)
        assert summary.new_record is None

    async def test_empty_pool(self, database, challenge_service):
        with pytest.raises(EmptyPoolError):
            await challenge_service.start("u-1")

    async def test_small_batch_config_counts_day(self, seeded_questions, challenge_service, rng):
        ConfigManager.set("daily_challenge.batch_size", 3)

        summary = await _play_day(challenge_service, "u-1", rng, DAY)

        assert summary.total_count == 3
        assert summary.completed is True
        assert summary.current_streak == 1
