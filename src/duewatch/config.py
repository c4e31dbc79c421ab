# src/duewatch/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every value has a working default; nothing is required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "DUEWATCH"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_float(name: str, default: float, *, minimum: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    tasks_path: Path

    # ---- Scheduler ----
    check_interval_seconds: float
    default_time_offset_minutes: int
    default_date_offset_minutes: int

    # ---- Alerts ----
    os_notifications_enabled: bool
    banner_dismiss_seconds: float
    notification_title: str
    notification_body_template: str
    time_format: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "duewatch")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/duewatch"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")

        check_interval_seconds = _env_float(_k("CHECK_INTERVAL_SECONDS"), 30.0, minimum=0.5)
        default_time_offset_minutes = _env_int(_k("DEFAULT_TIME_OFFSET_MINUTES"), 30, minimum=0)
        default_date_offset_minutes = _env_int(_k("DEFAULT_DATE_OFFSET_MINUTES"), 1440, minimum=0)

        os_notifications_enabled = _env_bool(_k("OS_NOTIFICATIONS"), True)
        banner_dismiss_seconds = _env_float(_k("BANNER_DISMISS_SECONDS"), 6.0, minimum=0.0)
        notification_title = _env(_k("NOTIFICATION_TITLE"), "Deadline approaching")
        notification_body_template = _env(_k("NOTIFICATION_BODY"), "{name} is due at {time}")
        time_format = _env(_k("TIME_FORMAT"), "%H:%M")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            check_interval_seconds=check_interval_seconds,
            default_time_offset_minutes=default_time_offset_minutes,
            default_date_offset_minutes=default_date_offset_minutes,
            os_notifications_enabled=os_notifications_enabled,
            banner_dismiss_seconds=banner_dismiss_seconds,
            notification_title=notification_title,
            notification_body_template=notification_body_template,
            time_format=time_format,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings; .env is read on first use and never overrides real env vars."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
