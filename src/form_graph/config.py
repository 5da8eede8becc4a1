from __future__ import annotations

"""Settings loader backed by environment variables.

``get_settings`` reads the ``FG_*`` variables once and caches the resulting
``Settings`` object.  Tests may call ``reset_settings_cache`` to force a
reload after changing the environment at runtime.
"""

from dataclasses import dataclass
import os
from functools import lru_cache
from zoneinfo import ZoneInfo


@dataclass
class Settings:
    db_dsn: str = "sqlite:///.db/forms.db"
    db_echo: bool = False
    table_prefix: str = "wp_"
    timezone: str = "UTC"
    max_workers: int = 4
    log_level: str = "INFO"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        return default


@lru_cache()
def get_settings() -> Settings:
    """Return settings loaded from environment variables."""

    return Settings(
        db_dsn=os.getenv("FG_DB_DSN") or "sqlite:///.db/forms.db",
        db_echo=os.getenv("FG_DB_ECHO", "false").lower() == "true",
        table_prefix=os.getenv("FG_TABLE_PREFIX", "wp_"),
        timezone=os.getenv("FG_TIMEZONE") or "UTC",
        max_workers=_int_env("FG_MAX_WORKERS", 4),
        log_level=os.getenv("FG_LOG_LEVEL", "INFO"),
    )


def reset_settings_cache() -> None:
    """Clear the settings cache (mainly for tests)."""

    get_settings.cache_clear()
