"""Environment-driven settings for tutordesk."""

import os
from pathlib import Path
from typing import Optional

DB_PATH_ENV = "TUTORDESK_DB_PATH"
EXPORT_DIR_ENV = "TUTORDESK_EXPORT_DIR"
LOG_LEVEL_ENV = "TUTORDESK_LOG_LEVEL"
DEFAULT_CURRENCY_ENV = "TUTORDESK_DEFAULT_CURRENCY"

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_CURRENCY = "DZD"


def data_dir() -> Path:
    """Return ~/.tutordesk, the home of the default database and exports."""
    return Path.home() / ".tutordesk"


def database_path(override: Optional[str] = None) -> str:
    """Resolve the SQLite file path.

    Args:
        override: Explicit path (e.g. from --db-path). Takes precedence over
            TUTORDESK_DB_PATH.

    Returns:
        Path to the SQLite database file
    """
    if override:
        return override
    path = os.environ.get(DB_PATH_ENV)
    if path:
        return path
    directory = data_dir()
    directory.mkdir(parents=True, exist_ok=True)
    return str(directory / "tutordesk.db")


def export_dir() -> Path:
    """Directory report files are written to; created on demand."""
    configured = os.environ.get(EXPORT_DIR_ENV)
    directory = Path(configured) if configured else data_dir() / "exports"
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def log_level(override: Optional[str] = None) -> str:
    return (override or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()


def default_currency() -> str:
    return (os.environ.get(DEFAULT_CURRENCY_ENV) or DEFAULT_CURRENCY).upper()
