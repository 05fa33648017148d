# src/pulse_service/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

LOG_FILE_NAME = "pulse.log"

# Minimum console level per logger prefix. The most specific prefix wins;
# pulse_service loggers not listed here pass through, everything else needs ERROR.
CONSOLE_LEVELS: dict[str, int] = {
    "pulse_service": logging.NOTSET,
    "pulse_service.runner.service": logging.WARNING,
    "pulse_service.channel": logging.WARNING,
    "pulse_service.presentation.log_view": logging.WARNING,
    "py.warnings": logging.ERROR,
}

_DEFAULT_CONSOLE_LEVEL = logging.ERROR


def _matches(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


class ConsoleLevelFilter(logging.Filter):
    """
    Keep the console readable while the runner ticks every second.

    Each record is held against the level of the longest matching prefix in
    `levels`; records from loggers with no match need `default`.
    """

    def __init__(self, levels: Mapping[str, int] | None = None, default: int = _DEFAULT_CONSOLE_LEVEL) -> None:
        super().__init__()
        merged = dict(CONSOLE_LEVELS)
        if levels:
            merged.update(levels)
        # Longest prefix first so the first match is the most specific one.
        self._levels = sorted(merged.items(), key=lambda kv: len(kv[0]), reverse=True)
        self._default = default

    def threshold(self, name: str) -> int:
        for prefix, level in self._levels:
            if _matches(name, prefix):
                return level
        return self._default

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/pulse",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    console_levels: Mapping[str, int] | None = None,
) -> Path:
    """
    Console handler (filtered per logger, see CONSOLE_LEVELS) plus a full file log.

    `console_levels` overrides or extends CONSOLE_LEVELS. Call once, before the
    first log record. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(ConsoleLevelFilter(console_levels))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
