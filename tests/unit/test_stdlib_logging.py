from __future__ import annotations

import logging
from pathlib import Path

import pytest

from po.core.exceptions import LogSetupError
from po.core.stdlib_logging import (
    configure_from_env,
    configure_stdlib_logging,
    shutdown_handlers,
)


def test_configure_from_env_writes_to_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "po.log"
    handler = configure_from_env({"PO_LOG_LEVEL": "debug", "PO_LOG_FILE": str(log_file)})

    assert isinstance(handler, logging.FileHandler)
    logging.getLogger("po.test").debug("cache miss abc")
    shutdown_handlers()

    assert "cache miss abc" in log_file.read_text(encoding="utf-8")
    assert handler not in logging.getLogger().handlers


def test_default_level_is_warning_on_stderr() -> None:
    handler = configure_from_env({})
    assert isinstance(handler, logging.StreamHandler)
    assert not isinstance(handler, logging.FileHandler)
    assert handler.level == logging.WARNING


def test_unknown_level_falls_back_to_warning() -> None:
    handler = configure_stdlib_logging(level="chatty")
    assert handler.level == logging.WARNING


def test_reconfiguring_replaces_previous_handler() -> None:
    first = configure_stdlib_logging(level="INFO")
    second = configure_stdlib_logging(level="DEBUG")
    root = logging.getLogger()
    assert second in root.handlers
    assert first not in root.handlers


def test_unopenable_log_file_raises_log_setup_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")

    with pytest.raises(LogSetupError, match="cannot open log file"):
        configure_from_env({"PO_LOG_FILE": str(blocker / "po.log")})
