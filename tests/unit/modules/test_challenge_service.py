"""
Unit Tests for DailyChallengeService
====================================

Test Coverage
-------------
- start(): batch size from config, started event, empty pool handling
- submit_answer() / advance() delegation
- advance_after_reveal() pacing
- complete(): finalize then hand off to StreakService

Testing Strategy
----------------
- Mock the event bus, config and StreakService; no database
- The question pool loader is patched on the instance
"""

import pytest

from quizstreak.domain.models.session import SessionPhase, SessionState
from quizstreak.modules.challenge.service import DailyChallengeService
from quizstreak.modules.shared.exceptions import (
    EmptyPoolError,
    SessionNotCompleteError,
    ValidationError,
)


@pytest.fixture
def mock_streak_service(mocker):
    streaks = mocker.MagicMock()
    streaks.record_completion = mocker.AsyncMock(return_value="summary")
    return streaks


@pytest.fixture
def service(mocker, mock_config_manager, mock_event_bus, mock_streak_service):
    return DailyChallengeService(
        config_manager=mock_config_manager,
        event_bus=mock_event_bus,
        logger=mocker.MagicMock(),
        streak_service=mock_streak_service,
    )


@pytest.fixture
def pool_loader(mocker, service, question_pool):
    return mocker.patch.object(
        service, "load_question_pool", mocker.AsyncMock(return_value=question_pool)
    )


def _play_through(service, state, key="A"):
    while state.phase is not SessionPhase.COMPLETE:
        state, _ = service.submit_answer(state, state.current_question.id, key)
        state = service.advance(state)
    return state


@pytest.mark.unit
class TestStart:
    async def test_start_draws_batch_and_emits_event(
        self, service, pool_loader, mock_event_bus, rng
    ):
        # Act
        state = await service.start("u-1", rng=rng)

        # Assert
        assert len(state.questions) == 5
        pool_loader.assert_awaited_once()
        mock_event_bus.publish.assert_awaited_once()
        event_name, payload = mock_event_bus.publish.await_args.args
        assert event_name == "daily_challenge.started"
        assert payload["user_id"] == "u-1"
        assert payload["question_ids"] == [q.id for q in state.questions]
        assert payload["batch_size"] == 5

    async def test_batch_size_from_config(self, service, pool_loader, mock_config_manager, rng):
        mock_config_manager.get.side_effect = lambda key, default=None: (
            3 if key == "daily_challenge.batch_size" else default
        )

        state = await service.start("u-1", rng=rng)

        assert len(state.questions) == 3

    async def test_empty_pool_raises_without_event(self, mocker, service, mock_event_bus):
        mocker.patch.object(service, "load_question_pool", mocker.AsyncMock(return_value=[]))

        with pytest.raises(EmptyPoolError):
            await service.start("u-1")

        mock_event_bus.publish.assert_not_awaited()

    async def test_small_pool_logs_warning(self, mocker, service, question_pool):
        mocker.patch.object(
            service, "load_question_pool", mocker.AsyncMock(return_value=question_pool[:2])
        )

        state = await service.start("u-1")

        assert len(state.questions) == 2
        service.log.warning.assert_called_once()

    @pytest.mark.parametrize("user_id", ["", "   ", None, 42])
    async def test_invalid_user_id(self, service, pool_loader, user_id):
        with pytest.raises(ValidationError):
            await service.start(user_id)

        pool_loader.assert_not_awaited()


@pytest.mark.unit
class TestPlay:
    async def test_advance_after_reveal_waits_then_advances(self, mocker, service, question_pool):
        sleep = mocker.patch(
            "quizstreak.modules.challenge.service.asyncio.sleep", mocker.AsyncMock()
        )
        state, _ = service.submit_answer(SessionState(questions=question_pool[:2]), "q-0", "A")

        advanced = await service.advance_after_reveal(state)

        sleep.assert_awaited_once_with(2.0)
        assert advanced.current_index == 1
        assert advanced.phase is SessionPhase.AWAITING_ANSWER

    async def test_advance_after_reveal_zero_delay_skips_sleep(
        self, mocker, service, question_pool
    ):
        sleep = mocker.patch(
            "quizstreak.modules.challenge.service.asyncio.sleep", mocker.AsyncMock()
        )
        state, _ = service.submit_answer(SessionState(questions=question_pool[:1]), "q-0", "A")

        advanced = await service.advance_after_reveal(state, delay=0)

        sleep.assert_not_awaited()
        assert advanced.phase is SessionPhase.COMPLETE


@pytest.mark.unit
class TestComplete:
    async def test_complete_hands_result_to_streak_service(
        self, service, pool_loader, mock_streak_service, rng
    ):
        state = _play_through(service, await service.start("u-1", rng=rng))

        summary = await service.complete("u-1", state)

        assert summary == "summary"
        mock_streak_service.record_completion.assert_awaited_once()
        args, kwargs = mock_streak_service.record_completion.await_args
        assert args[0] == "u-1"
        assert args[1].total_count == 5
        assert args[1].correct_count == 5
        assert kwargs == {"today": None}

    async def test_incomplete_session_is_not_saved(
        self, service, pool_loader, mock_streak_service, rng
    ):
        state = await service.start("u-1", rng=rng)
        state, _ = service.submit_answer(state, state.current_question.id, "A")

        with pytest.raises(SessionNotCompleteError):
            await service.complete("u-1", state)

        mock_streak_service.record_completion.assert_not_awaited()
