"""Logging bootstrap for the vibe-builder CLI.

Every module logs through logging.getLogger(__name__); only configure()
attaches handlers, and only to the package logger. Library users who never
call it get the stdlib default (propagate to root, no handlers of ours).

Environment:
    VIBE_BUILDER_LOG_LEVEL  level name (default INFO)
    VIBE_BUILDER_LOG_DIR    directory for per-run log files
    VIBE_BUILDER_LOG_FILE   exact log file path (overrides the directory)

// [LAW:single-enforcer] Handler wiring for the vibe_builder logger happens here only.
// [LAW:one-source-of-truth] The resolved level and log path are returned as LoggingRuntime.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "vibe_builder"

LEVEL_ENV = "VIBE_BUILDER_LOG_LEVEL"
DIR_ENV = "VIBE_BUILDER_LOG_DIR"
FILE_ENV = "VIBE_BUILDER_LOG_FILE"
DEFAULT_LOG_DIR = "~/.local/share/vibe-builder/logs"

STDERR_FORMAT = "[%(name)s] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"
MAX_LOG_BYTES = 20 * 1024 * 1024
LOG_BACKUPS = 5


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    level: int
    file_path: str


_RUNTIME: LoggingRuntime | None = None


def resolve_level(explicit: str | None = None) -> tuple[str, int]:
    """Explicit name, else $VIBE_BUILDER_LOG_LEVEL, else INFO. Unknown names mean INFO."""
    name = (explicit or os.environ.get(LEVEL_ENV) or "INFO").strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.INFO
    return logging.getLevelName(level), level


def _file_stem(run_name: str) -> str:
    stem = "".join(ch if ch.isalnum() or ch in "-_" else "-" for ch in run_name).strip("-_")
    return stem or "run"


def resolve_log_file(run_name: str) -> Path:
    """$VIBE_BUILDER_LOG_FILE, else a timestamped file in the log directory."""
    explicit = os.environ.get(FILE_ENV)
    if explicit:
        return Path(explicit)
    log_dir = Path(os.environ.get(DIR_ENV) or os.path.expanduser(DEFAULT_LOG_DIR))
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return log_dir / f"{_file_stem(run_name)}-{stamp}-{os.getpid()}.log"


def _build_handlers(level: int, file_path: Path) -> list[logging.Handler]:
    stderr = logging.StreamHandler()
    stderr.setFormatter(logging.Formatter(STDERR_FORMAT))

    rotating = RotatingFileHandler(
        file_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    rotating.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    handlers: list[logging.Handler] = [stderr, rotating]
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure(run_name: str = "vibe-builder", level: str | None = None) -> LoggingRuntime:
    """Attach stderr and rotating-file handlers to the vibe_builder logger.

    Idempotent: once configured, later calls return the first runtime
    unchanged, whatever arguments they pass.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level_no = resolve_level(level)
    file_path = resolve_log_file(run_name)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(ROOT_LOGGER)
    package_logger.setLevel(level_no)
    package_logger.propagate = False
    package_logger.handlers.clear()
    for handler in _build_handlers(level_no, file_path):
        package_logger.addHandler(handler)

    _RUNTIME = LoggingRuntime(level_name=level_name, level=level_no, file_path=str(file_path))
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    return _RUNTIME


def reset() -> None:
    """Close our handlers and restore propagation (tests, repeated CLI runs)."""
    global _RUNTIME
    package_logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
    _RUNTIME = None
