# tests/test_logging_setup.py

from __future__ import annotations

import logging

import pytest

from pulse_service.logging_setup import ConsoleLevelFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_uses_most_specific_prefix() -> None:
    f = ConsoleLevelFilter()

    assert f.filter(_record("pulse_service.presentation.endpoint", logging.DEBUG))
    assert not f.filter(_record("pulse_service.runner.service", logging.INFO))
    assert f.filter(_record("pulse_service.runner.service", logging.WARNING))
    assert f.filter(_record("pulse_service.runner.host", logging.INFO))
    assert not f.filter(_record("pulse_service.channel.bus", logging.INFO))
    assert not f.filter(_record("pulse_service.presentation.log_view", logging.INFO))


def test_console_filter_third_party_needs_error() -> None:
    f = ConsoleLevelFilter()

    assert not f.filter(_record("asyncio", logging.WARNING))
    assert f.filter(_record("asyncio", logging.ERROR))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    # Prefix match is per dotted segment.
    assert not f.filter(_record("pulse_serviceextra", logging.INFO))


def test_console_filter_overrides() -> None:
    f = ConsoleLevelFilter({"pulse_service.runner.service": logging.DEBUG, "asyncio": logging.INFO})

    assert f.filter(_record("pulse_service.runner.service", logging.DEBUG))
    assert f.filter(_record("asyncio", logging.INFO))
    assert f.threshold("pulse_service.channel.bus") == logging.WARNING


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        if h not in handlers:
            h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_setup_logging_writes_file(tmp_path, restore_root_logging) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)

    logging.getLogger("pulse_service.runner.service").debug("tick detail")
    for h in logging.getLogger().handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / "pulse.log"
    assert "tick detail" in log_file.read_text(encoding="utf-8")
