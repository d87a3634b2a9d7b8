"""Process-wide stdlib logging setup for the ``po`` front-end.

Level comes from ``PO_LOG_LEVEL`` (default WARNING). Records go to the file
named by ``PO_LOG_FILE`` when set, otherwise to stderr. Command scripts replace
the process image, so every handler must be flushed before the hand-off.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional

from po.core.exceptions import LogSetupError
from po.core.utils.io import ensure_directory

LOG_LEVEL_ENV = "PO_LOG_LEVEL"
LOG_FILE_ENV = "PO_LOG_FILE"
DEFAULT_LEVEL = "WARNING"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_PO_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_stdlib_logging(
    *, log_path: Optional[Path] = None, level: str = DEFAULT_LEVEL
) -> logging.Handler:
    """Install the po handler on the root logger, replacing a previous one.

    Idempotent per destination; stream handlers write to ``sys.stderr``.

    Raises:
        LogSetupError: If ``log_path`` cannot be created or opened.
    """
    global _PO_HANDLER

    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    if _PO_HANDLER is not None:
        root.removeHandler(_PO_HANDLER)
        _PO_HANDLER.close()
        _PO_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        resolved = Path(log_path).expanduser().resolve()
        try:
            ensure_directory(resolved.parent)
            handler = logging.FileHandler(resolved, encoding="utf-8")
        except OSError as exc:
            raise LogSetupError(
                f"cannot open log file {resolved}: {exc.strerror or exc}",
                context={"path": str(resolved)},
            ) from exc
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)

    _PO_HANDLER = handler
    return handler


def configure_from_env(environ: Optional[Mapping[str, str]] = None) -> logging.Handler:
    """Configure logging from ``PO_LOG_LEVEL`` and ``PO_LOG_FILE``."""
    env = os.environ if environ is None else environ
    raw_path = (env.get(LOG_FILE_ENV) or "").strip()
    return configure_stdlib_logging(
        log_path=Path(raw_path) if raw_path else None,
        level=env.get(LOG_LEVEL_ENV) or DEFAULT_LEVEL,
    )


def shutdown_handlers() -> None:
    """Flush and close every root handler; called right before ``execve``."""
    global _PO_HANDLER
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.flush()
        if handler is _PO_HANDLER:
            root.removeHandler(handler)
            handler.close()
            _PO_HANDLER = None


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the po handler."""
    global _PO_HANDLER
    if _PO_HANDLER is not None:
        logging.getLogger().removeHandler(_PO_HANDLER)
        _PO_HANDLER.close()
    _PO_HANDLER = None
    logging.getLogger().setLevel(logging.WARNING)


__all__ = [
    "LOG_FILE_ENV",
    "LOG_LEVEL_ENV",
    "configure_from_env",
    "configure_stdlib_logging",
    "reset_stdlib_logging_for_tests",
    "shutdown_handlers",
]
