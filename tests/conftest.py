"""
Pytest Configuration and Fixtures for quizstreak Tests
======================================================

Purpose
-------
Centralized fixtures for the quizstreak test suite: an in-memory database
for integration tests, fresh event buses, configuration resets, mocks for
unit tests, and question factories.

Architecture Notes
------------------
- Unit tests use mocks and the pure core (fast, isolated)
- Integration tests run the real services against SQLite via aiosqlite;
  every test gets a brand-new in-memory database
- The environment is forced to "testing" before quizstreak is imported, so
  Config picks it up on load and no log files are written
"""

from __future__ import annotations

import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import random
from typing import AsyncGenerator, Callable, List

import pytest
import pytest_asyncio

from quizstreak.core.config.manager import ConfigManager
from quizstreak.core.database.service import DatabaseService
from quizstreak.core.event.bus import EventBus
from quizstreak.core.logging.logger import clear_log_context, get_logger
from quizstreak.database.models.question import Question as QuestionRow
from quizstreak.domain.models.question import Difficulty, Question, Subject
from quizstreak.modules.challenge.service import DailyChallengeService
from quizstreak.modules.streak.service import StreakService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# GLOBAL STATE
# ============================================================================


@pytest.fixture(autouse=True)
def reset_config_manager():
    """Every test starts from built-in defaults, without YAML overrides."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture(autouse=True)
def reset_log_context():
    clear_log_context()
    yield
    clear_log_context()


# ============================================================================
# QUESTION FACTORIES
# ============================================================================


@pytest.fixture
def make_question() -> Callable[..., Question]:
    """
    Build a valid Question with sensible defaults.

    Usage:
        q = make_question("q-1", correct_answer="B")
    """

    def _make(
        question_id: str = "q-1",
        *,
        subject: Subject = Subject.MATH,
        text: str = "What is 2 + 2?",
        options: dict | None = None,
        correct_answer: str = "A",
        explanation: str = "Basic addition.",
        difficulty: Difficulty = Difficulty.EASY,
    ) -> Question:
        return Question(
            id=question_id,
            subject=subject,
            text=text,
            options=options or {"A": "4", "B": "3", "C": "5", "D": "22"},
            correct_answer=correct_answer,
            explanation=explanation,
            difficulty=difficulty,
        )

    return _make


@pytest.fixture
def question_pool(make_question) -> List[Question]:
    """Ten questions q-0..q-9, correct answer always "A"."""
    return [make_question(f"q-{i}", text=f"Question {i}?") for i in range(10)]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


# ============================================================================
# EVENT FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """A private bus so tests never share listeners."""
    return EventBus()


@pytest.fixture
def recorded_events(event_bus) -> list:
    """
    Every event published on `event_bus`, as (name, payload) tuples.
    """
    received: list = []

    def _recorder(event_name: str):
        def _record(payload):
            received.append((event_name, payload))

        return _record

    for name in (
        "daily_challenge.started",
        "daily_challenge.completed",
        "streak.extended",
        "streak.record_achieved",
        "streak.reset",
    ):
        event_bus.subscribe(name, _recorder(name), identifier=f"recorder@{name}")
    return received


# ============================================================================
# DATABASE FIXTURES (Integration Tests)
# ============================================================================


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[type[DatabaseService], None]:
    """
    Fresh in-memory database with the full schema.

    Scope: function (clean slate per test)
    """
    await DatabaseService.initialize(TEST_DATABASE_URL)
    await DatabaseService.create_all()
    yield DatabaseService
    await DatabaseService.shutdown()


@pytest_asyncio.fixture
async def seeded_questions(database, question_pool) -> List[Question]:
    """Persist `question_pool` into the questions table."""
    async with DatabaseService.get_transaction() as session:
        for question in question_pool:
            session.add(
                QuestionRow(
                    id=question.id,
                    subject=question.subject.value,
                    text=question.text,
                    options=dict(question.options),
                    correct_answer=question.correct_answer,
                    explanation=question.explanation,
                    difficulty=question.difficulty.value,
                )
            )
    return question_pool


@pytest.fixture
def streak_service(event_bus) -> StreakService:
    return StreakService(
        config_manager=ConfigManager,
        event_bus=event_bus,
        logger=get_logger("tests.streak_service"),
    )


@pytest.fixture
def challenge_service(event_bus, streak_service) -> DailyChallengeService:
    return DailyChallengeService(
        config_manager=ConfigManager,
        event_bus=event_bus,
        logger=get_logger("tests.challenge_service"),
        streak_service=streak_service,
    )


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def mock_event_bus(mocker):
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock()
    mock_bus.subscribe = mocker.MagicMock()
    return mock_bus


@pytest.fixture
def mock_config_manager(mocker):
    """ConfigManager stand-in that returns whatever default the caller passes."""
    mock_config = mocker.MagicMock()
    mock_config.get = mocker.MagicMock(side_effect=lambda key, default=None: default)
    return mock_config
