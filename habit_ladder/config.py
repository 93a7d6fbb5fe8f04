"""
Runtime configuration read from environment variables.
"""
import os

from habit_ladder.constants import (
    DEFAULT_DATABASE_URL,
    DEFAULT_API_KEY,
    DEFAULT_LOG_DIRECTORY_PROD,
    DEFAULT_LOG_FILE,
    DEFAULT_WEEKLY_RESET_DAY,
    DEFAULT_WEEKLY_RESET_HOUR,
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("HABIT_LADDER_DATABASE_URL", DEFAULT_DATABASE_URL)

# Override in production via the environment or a secret store
API_KEY = os.getenv("HABIT_LADDER_API_KEY", DEFAULT_API_KEY)

LOG_DIR = os.getenv("HABIT_LADDER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("HABIT_LADDER_LOG_FILE", DEFAULT_LOG_FILE)

WEEKLY_RESET_ENABLED = _env_bool("HABIT_LADDER_WEEKLY_RESET_ENABLED", True)
WEEKLY_RESET_DAY = os.getenv("HABIT_LADDER_WEEKLY_RESET_DAY", DEFAULT_WEEKLY_RESET_DAY)
WEEKLY_RESET_HOUR = int(
    os.getenv("HABIT_LADDER_WEEKLY_RESET_HOUR", str(DEFAULT_WEEKLY_RESET_HOUR))
)
