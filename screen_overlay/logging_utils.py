from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from screen_overlay.version import __version__, is_dev_build

ROOT_LOGGER_NAME = "ScreenOverlay"
LOG_DIR_ENV_VAR = "SCREEN_OVERLAY_LOG_DIR"
PROPAGATE_ENV_VAR = "SCREEN_OVERLAY_PROPAGATE_LOGS"

DEBUG_LOGGING_ENABLED = is_dev_build(__version__)


class ReleaseLogLevelFilter(logging.Filter):
    """Promote debug logs to INFO in release builds so diagnostics stay visible."""

    def __init__(self, release_mode: bool) -> None:
        super().__init__()
        self._release_mode = release_mode

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - logging shim
        if self._release_mode and record.levelno == logging.DEBUG:
            record.levelno = logging.INFO
            record.levelname = "INFO"
        return True


def resolve_log_level(debug_enabled: bool) -> int:
    """Return the level used by every ScreenOverlay logger."""
    return logging.DEBUG if debug_enabled else logging.INFO


def get_logger(suffix: str) -> logging.Logger:
    """Return a child logger of the ScreenOverlay hierarchy with the release filter attached."""
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{suffix}" if suffix else ROOT_LOGGER_NAME)
    logger.setLevel(resolve_log_level(DEBUG_LOGGING_ENABLED))
    if not any(isinstance(existing, ReleaseLogLevelFilter) for existing in logger.filters):
        logger.addFilter(ReleaseLogLevelFilter(release_mode=not DEBUG_LOGGING_ENABLED))
    return logger


def propagation_requested() -> bool:
    return os.environ.get(PROPAGATE_ENV_VAR, "").lower() in {"1", "true", "yes", "on"}


def resolve_logs_dir(base_path: Path, log_dir_name: str = "ScreenOverlay") -> Path:
    """
    Resolve the directory to store overlay logs.

    Strategy:
    - Use SCREEN_OVERLAY_LOG_DIR if set.
    - Prefer ~/Library/Logs on macOS, then XDG state/cache locations.
    - Fall back to `base_path/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    """
    candidates = []

    env_override = os.environ.get(LOG_DIR_ENV_VAR)
    if env_override:
        candidates.append(Path(env_override).expanduser())

    mac_logs = Path.home() / "Library" / "Logs"
    if mac_logs.is_dir():
        candidates.append(mac_logs)
    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home)
    candidates.append(cache_home)
    candidates.append(base_path.resolve() / "logs")

    for base in candidates:
        try:
            target = base / log_dir_name
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Construct a rotating file handler with sane defaults."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def configure_logging(
    log_dir: Optional[Path],
    *,
    retention: int = 5,
    debug: bool = False,
    console: bool = True,
) -> logging.Logger:
    """Attach file/console handlers to the ScreenOverlay root logger."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolve_log_level(debug or DEBUG_LOGGING_ENABLED))
    logger.propagate = propagation_requested()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if log_dir is not None:
        logger.addHandler(
            build_rotating_file_handler(log_dir, "screen-overlay.log", retention=retention, formatter=formatter)
        )
    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)
    return logger
