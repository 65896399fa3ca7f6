from __future__ import annotations

import logging
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from star_gen.adapters.observability import configure_runtime_logging


@pytest.fixture
def _restore_root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    named = {
        name: logging.getLogger(name).level
        for name in ("uvicorn.access", "httpx", "httpcore", "openai")
    }
    yield root
    for name, named_level in named.items():
        logging.getLogger(name).setLevel(named_level)
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_file_logging_uses_rotating_handler(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, _restore_root_logger: logging.Logger
) -> None:
    log_path = tmp_path / "logs" / "star_gen.log"
    monkeypatch.setenv("STAR_GEN_LOG_PATH", str(log_path))
    monkeypatch.setenv("STAR_GEN_LOG_LEVEL", "debug")
    monkeypatch.setenv("STAR_GEN_LOG_MAX_BYTES", "1")
    configure_runtime_logging(force=True)

    file_handlers = [
        handler
        for handler in _restore_root_logger.handlers
        if isinstance(handler, RotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 64 * 1024
    assert _restore_root_logger.level == logging.DEBUG

    logging.getLogger("star_gen.test").info("stories.generate.done stories=%s", 3)
    file_handlers[0].flush()
    assert "stories.generate.done stories=3" in log_path.read_text(encoding="utf-8")


def test_dash_log_path_keeps_console_only(
    monkeypatch: pytest.MonkeyPatch, _restore_root_logger: logging.Logger
) -> None:
    monkeypatch.setenv("STAR_GEN_LOG_PATH", "-")
    monkeypatch.setenv("STAR_GEN_LOG_LEVEL", "not-a-level")
    monkeypatch.setenv("STAR_GEN_HTTP_CLIENT_LOG_LEVEL", "ERROR")
    configure_runtime_logging(force=True)

    assert not any(
        isinstance(handler, RotatingFileHandler) for handler in _restore_root_logger.handlers
    )
    assert _restore_root_logger.level == logging.INFO
    assert logging.getLogger("openai").level == logging.ERROR
