"""Process-wide logging setup for the API server and CLI."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_PATH = "work/logs/star_gen.log"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_QUIET_LIBRARY_LOGGERS = ("httpx", "httpcore", "openai")

_CONFIGURED = False


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _level_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip().upper()
    level = logging.getLevelName(raw) if raw else default
    return level if isinstance(level, int) else default


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    raw_path = os.environ.get("STAR_GEN_LOG_PATH", DEFAULT_LOG_PATH).strip()
    if raw_path in {"", "-"}:
        return None
    log_path = Path(raw_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=_int_env(
            "STAR_GEN_LOG_MAX_BYTES",
            5 * 1024 * 1024,
            minimum=64 * 1024,
            maximum=100 * 1024 * 1024,
        ),
        backupCount=_int_env("STAR_GEN_LOG_BACKUP_COUNT", 10, minimum=1, maximum=120),
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def configure_runtime_logging(*, force: bool = False) -> None:
    """Install console and optional rotating file handlers once per process.

    ``STAR_GEN_LOG_PATH=-`` keeps output on the console only.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(_level_env("STAR_GEN_LOG_LEVEL", logging.INFO))
    root.handlers.clear()
    root.addHandler(stream_handler)
    file_handler = _file_handler(formatter)
    if file_handler is not None:
        root.addHandler(file_handler)

    logging.getLogger("uvicorn.access").setLevel(
        _level_env("STAR_GEN_ACCESS_LOG_LEVEL", logging.WARNING)
    )
    library_level = _level_env("STAR_GEN_HTTP_CLIENT_LOG_LEVEL", logging.WARNING)
    for name in _QUIET_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    _CONFIGURED = True
