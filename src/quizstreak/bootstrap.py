"""
quizstreak - Application Bootstrap
==================================

Wires the infrastructure and services together in a fixed order:

1. Config validation
2. Logging
3. ConfigManager (YAML challenge settings)
4. Database engine (optionally creating the schema)
5. StreakService and DailyChallengeService on the global event bus

`shutdown()` waits for background event listeners, then tears down in
reverse. Running the module directly initializes everything, creates the
schema and reports database and logging health.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from quizstreak.core.config.config import Config
from quizstreak.core.config.manager import ConfigManager
from quizstreak.core.database.service import DatabaseService
from quizstreak.core.event import event_bus
from quizstreak.core.event.bus import EventBus
from quizstreak.core.logging.logger import (
    get_logger,
    get_logging_health,
    setup_logging,
    shutdown_logging,
)
from quizstreak.modules.challenge.service import DailyChallengeService
from quizstreak.modules.streak.service import StreakService

logger = get_logger(__name__)


@dataclass(frozen=True)
class Services:
    streaks: StreakService
    challenge: DailyChallengeService


def build_services(bus: Optional[EventBus] = None) -> Services:
    bus = bus or event_bus
    streaks = StreakService(
        config_manager=ConfigManager,
        event_bus=bus,
        logger=get_logger("quizstreak.modules.streak.service"),
    )
    challenge = DailyChallengeService(
        config_manager=ConfigManager,
        event_bus=bus,
        logger=get_logger("quizstreak.modules.challenge.service"),
        streak_service=streaks,
    )
    return Services(streaks=streaks, challenge=challenge)


async def startup(
    database_url: Optional[str] = None,
    *,
    config_dir: Optional[Path] = None,
    create_schema: bool = False,
) -> Services:
    """Initialize all infrastructure and return the wired services."""
    Config.validate()
    setup_logging()
    logger.info("========== QUIZSTREAK INITIALIZATION START ==========")
    logger.info("Configuration summary", extra=Config.get_config_summary())

    ConfigManager.initialize(config_dir)

    try:
        await DatabaseService.initialize(database_url)
        if create_schema:
            await DatabaseService.create_all()
    except Exception as exc:
        logger.critical(f"Database initialization failed: {exc}", exc_info=True)
        raise

    services = build_services()
    logger.info("========== INFRASTRUCTURE INITIALIZED SUCCESSFULLY ==========")
    return services


async def shutdown() -> None:
    logger.info("========== QUIZSTREAK SHUTDOWN START ==========")
    await event_bus.drain()
    logger.info("Event bus metrics", extra={"event_bus": event_bus.get_metrics_summary()})
    try:
        await DatabaseService.shutdown()
    except Exception as exc:
        logger.error(f"Database service shutdown error: {exc}", exc_info=True)
    logger.info("========== SHUTDOWN COMPLETE ==========")
    shutdown_logging()


async def _run() -> int:
    await startup(create_schema=True)
    try:
        healthy = await DatabaseService.health_check()
        logger.info("Database health check", extra={"healthy": healthy})
        logger.info("Logging health", extra=asdict(get_logging_health()))
        return 0 if healthy else 1
    finally:
        await shutdown()


def main() -> None:
    sys.exit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
