"""
Dynamic challenge configuration backed by YAML files.

Features:
- Hierarchical config access with dot notation (e.g. 'daily_challenge.batch_size')
- Built-in defaults, deep-merged with every YAML file under the config directory
- Runtime overrides via set() for tests and operational tuning
- Lightweight read metrics

Static process settings (database URL, log level) live in Config; this
manager only serves values that tune challenge and streak behaviour.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional

import yaml

from quizstreak.core.config.config import Config
from quizstreak.core.config.errors import ConfigValidationError
from quizstreak.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class _ConfigManagerMetrics:
    gets: int = 0
    sets: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    yaml_files_loaded: int = 0


class ConfigManager:
    """
    Challenge configuration with dot-notation access.

    Examples
    --------
    >>> ConfigManager.initialize()
    >>> ConfigManager.get("daily_challenge.batch_size")
    5
    >>> ConfigManager.set("daily_challenge.reveal_delay_seconds", 0.5)
    """

    _defaults: Dict[str, Any] = {
        "daily_challenge": {
            "batch_size": 5,
            "reveal_delay_seconds": 2.0,
        },
        "streaks": {
            "friend_records_limit": 20,
        },
    }
    _cache: Dict[str, Any] = {}
    _initialized: bool = False
    _metrics: _ConfigManagerMetrics = _ConfigManagerMetrics()

    # =========================================================================
    # YAML LOADING
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = value

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> None:
        if not config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        yaml_files = sorted(config_dir.rglob("*.yaml")) + sorted(config_dir.rglob("*.yml"))
        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                logger.warning(
                    "Failed to load YAML config",
                    extra={
                        "file": str(yaml_file),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                continue

            if isinstance(data, dict):
                cls._deep_merge_dict(cls._cache, data)
                cls._metrics.yaml_files_loaded += 1
                logger.debug("Loaded YAML config", extra={"file": str(yaml_file)})
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={"file": str(yaml_file), "root_type": type(data).__name__},
                )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Load built-in defaults and YAML files into the cache.

        Safe to call again; each call rebuilds the cache from scratch.
        """
        directory = Path(config_dir) if config_dir is not None else Config.CONFIG_DIR

        cls._cache = copy.deepcopy(cls._defaults)
        cls._metrics = _ConfigManagerMetrics()
        cls._load_yaml_configs(directory)
        cls._validate()
        cls._initialized = True

        logger.info(
            "ConfigManager initialized",
            extra={
                "config_dir": str(directory),
                "yaml_file_count": cls._metrics.yaml_files_loaded,
            },
        )

    @classmethod
    def reset(cls) -> None:
        """Drop all overrides and return to built-in defaults."""
        cls._cache = copy.deepcopy(cls._defaults)
        cls._metrics = _ConfigManagerMetrics()
        cls._initialized = True

    @classmethod
    def _validate(cls) -> None:
        batch_size = cls.get("daily_challenge.batch_size")
        if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size <= 0:
            raise ConfigValidationError(
                "daily_challenge.batch_size", f"must be a positive integer, got {batch_size!r}"
            )

        delay = cls.get("daily_challenge.reveal_delay_seconds")
        if not isinstance(delay, (int, float)) or delay < 0:
            raise ConfigValidationError(
                "daily_challenge.reveal_delay_seconds",
                f"must be a non-negative number, got {delay!r}",
            )

    # =========================================================================
    # ACCESS
    # =========================================================================

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Examples
        --------
        >>> ConfigManager.get("streaks.friend_records_limit", 20)
        20
        """
        cls._metrics.gets += 1

        if not cls._initialized:
            logger.warning(
                "ConfigManager accessed before explicit initialization; "
                "falling back to defaults only"
            )
            cls.reset()

        value: Any = cls._cache
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                cls._metrics.cache_misses += 1
                return default
            value = value[part]

        cls._metrics.cache_hits += 1
        return value if value is not None else default

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        """Override a value at runtime (not persisted)."""
        if not cls._initialized:
            cls.reset()

        parts = key.split(".")
        node = cls._cache
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child

        old_value = node.get(parts[-1])
        node[parts[-1]] = value
        cls._metrics.sets += 1

        logger.info(
            "Configuration value overridden",
            extra={"config_key": key, "old_value": old_value, "new_value": value},
        )

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        total = cls._metrics.cache_hits + cls._metrics.cache_misses
        return {
            "gets": cls._metrics.gets,
            "sets": cls._metrics.sets,
            "cache_hit_rate": round(cls._metrics.cache_hits / total * 100, 2) if total else 0.0,
            "yaml_files_loaded": cls._metrics.yaml_files_loaded,
        }
