"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "event_monitor.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"
DEFAULT_CATALOG_PATH = DATA_DIR / "channels.json"

# Live view limits
BUFFER_CAPACITY = 200
RETENTION_WINDOW = 500

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_catalog_path(env_value: PathLike | None = None) -> Path:
    """Resolve CHANNEL_CATALOG to an absolute path."""
    if not env_value:
        return DEFAULT_CATALOG_PATH

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_buffer_capacity(env_value: str | None = None) -> int:
    """Resolve BUFFER_CAPACITY, falling back to the default on bad input."""
    if env_value is None:
        env_value = os.getenv("BUFFER_CAPACITY")
    if not env_value:
        return BUFFER_CAPACITY

    try:
        capacity = int(env_value)
    except ValueError:
        return BUFFER_CAPACITY
    return capacity if capacity > 0 else BUFFER_CAPACITY
