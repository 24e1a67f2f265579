"""
Configuration subsystem.

- **config.py**: static settings from environment variables (.env support)
- **manager.py**: challenge tuning from YAML with dot-notation access
- **errors.py**: configuration exception hierarchy

Usage
-----
```python
from quizstreak.core.config import Config, ConfigManager

db_url = Config.DATABASE_URL

ConfigManager.initialize()
batch_size = ConfigManager.get("daily_challenge.batch_size", default=5)
```
"""

from .config import Config, Environment
from .errors import ConfigError, ConfigValidationError, MissingConfigError
from .manager import ConfigManager

__all__ = [
    "Config",
    "ConfigManager",
    "Environment",
    "ConfigError",
    "ConfigValidationError",
    "MissingConfigError",
]
