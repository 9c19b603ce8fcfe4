from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from zoneinfo import ZoneInfo

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    environment: str = "local"
    timezone: str = "Asia/Ho_Chi_Minh"
    submission_lock_seconds: float = 2.0
    default_daily_revenue: float = 10_000_000
    rate_full_time: float = 30_000
    rate_casual: float = 24_000
    log_level: str = "INFO"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def load_settings() -> Settings:
    return Settings(
        environment=os.getenv("ENVIRONMENT", "local"),
        timezone=os.getenv("APP_TIMEZONE", "Asia/Ho_Chi_Minh"),
        submission_lock_seconds=_float_env("SUBMISSION_LOCK_SECONDS", 2.0),
        default_daily_revenue=_float_env("DEFAULT_DAILY_REVENUE", 10_000_000),
        rate_full_time=_float_env("RATE_FULL_TIME", 30_000),
        rate_casual=_float_env("RATE_CASUAL", 24_000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logging.getLogger("shiftboard").setLevel(settings.log_level)
