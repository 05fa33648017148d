# src/pulse_service/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is read at import time; get_settings() loads once and caches.
- Every knob has a sane default so the app runs with an empty environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .core.models import RunnerMode

ENV_PREFIX = "PULSE"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return max(minimum, float(raw))
    except ValueError:
        return default


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
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    prefs_db_path: Path
    prefs_scope: str

    # ---- Runner ----
    auto_start: bool
    initial_mode: RunnerMode
    tick_interval_seconds: float
    warmup_seconds: float

    # ---- Notification ----
    notification_title: str
    notification_content: str
    initial_notification_title: str
    initial_notification_content: str
    notification_permission: bool

    # ---- Presentation ----
    log_poll_interval_seconds: float
    device_id: str | None

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pulse").strip() or "pulse"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pulse"))
        prefs_db_path = _env_path(_k("PREFS_DB_PATH"), data_dir / "prefs.sqlite3")
        prefs_scope = _env(_k("PREFS_SCOPE"), "flutter").strip() or "flutter"

        auto_start = _env_bool(_k("AUTO_START"), True)
        # STOPPED is not a valid start mode; fall back to foreground.
        initial_mode = RunnerMode.parse(_env(_k("INITIAL_MODE")), RunnerMode.FOREGROUND)
        if not initial_mode.is_live:
            initial_mode = RunnerMode.FOREGROUND

        tick_interval_seconds = _env_float(_k("TICK_INTERVAL_SECONDS"), 1.0, minimum=0.01)
        warmup_seconds = _env_float(_k("WARMUP_SECONDS"), 1.0)

        notification_title = _env(_k("NOTIFICATION_TITLE"), "Foreground service")
        notification_content = _env(_k("NOTIFICATION_CONTENT"), "Current time {now}")
        initial_notification_title = _env(_k("INITIAL_NOTIFICATION_TITLE"), "Pulse service")
        initial_notification_content = _env(_k("INITIAL_NOTIFICATION_CONTENT"), "Initializing")
        notification_permission = _env_bool(_k("NOTIFICATION_PERMISSION"), True)

        log_poll_interval_seconds = _env_float(_k("LOG_POLL_INTERVAL_SECONDS"), 1.0, minimum=0.01)
        device_id = _env(_k("DEVICE_ID")).strip() or None

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            prefs_db_path=prefs_db_path,
            prefs_scope=prefs_scope,
            auto_start=auto_start,
            initial_mode=initial_mode,
            tick_interval_seconds=tick_interval_seconds,
            warmup_seconds=warmup_seconds,
            notification_title=notification_title,
            notification_content=notification_content,
            initial_notification_title=initial_notification_title,
            initial_notification_content=initial_notification_content,
            notification_permission=notification_permission,
            log_poll_interval_seconds=log_poll_interval_seconds,
            device_id=device_id,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
