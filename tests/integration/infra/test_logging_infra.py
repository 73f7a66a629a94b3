from __future__ import annotations

"""
Integration tests for Logging Infrastructure.

Verifies the QueueListener architecture, idempotent configuration,
file output and rotation.
"""

import logging
from pathlib import Path
from logging.handlers import QueueHandler

import pytest

from sizetree.infra.logging import LoggingConfig, configure_logging, shutdown_logging
from sizetree.infra.logging.core import _QUEUE_LISTENER_ATTR
from sizetree.infra.logging.handlers import _is_our_handler


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach our handlers before and after each test."""
    shutdown_logging()
    yield
    shutdown_logging()


def _our_handlers():
    return [h for h in logging.getLogger().handlers if _is_our_handler(h)]


def test_logging_idempotency() -> None:
    """TC-01: Repeated configuration does not duplicate handlers."""
    cfg = LoggingConfig(level="INFO", console=True)

    configure_logging(cfg)
    initial = len(_our_handlers())
    configure_logging(cfg)

    assert initial == 1
    assert len(_our_handlers()) == initial


def test_force_replaces_handlers() -> None:
    configure_logging(LoggingConfig(level="INFO"))
    first_listener = getattr(logging.getLogger(), _QUEUE_LISTENER_ATTR)

    configure_logging(LoggingConfig(level="DEBUG"), force=True)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(_our_handlers()) == 1
    assert getattr(root, _QUEUE_LISTENER_ATTR) is not first_listener


def test_queue_listener_architecture() -> None:
    """TC-02: The root logger gets a single tagged QueueHandler."""
    configure_logging(LoggingConfig(level="INFO", console=True))

    handlers = _our_handlers()
    assert len(handlers) == 1
    assert isinstance(handlers[0], QueueHandler)
    assert getattr(logging.getLogger(), _QUEUE_LISTENER_ATTR) is not None


def test_file_output(tmp_path: Path) -> None:
    """TC-03: Records reach the log file once the listener is flushed."""
    log_file = tmp_path / "logs" / "sizetree.log"
    configure_logging(LoggingConfig(level="INFO", console=False, log_file=str(log_file)))

    logging.getLogger("sizetree.test").info("tree built")
    shutdown_logging()

    content = log_file.read_text(encoding="utf-8")
    assert "INFO | sizetree.test | tree built" in content


def test_log_rotation(tmp_path: Path) -> None:
    """TC-04: The file rotates once max_bytes is exceeded."""
    log_file = tmp_path / "rotate.log"
    cfg = LoggingConfig(
        level="DEBUG",
        console=False,
        log_file=str(log_file),
        max_bytes=100,
        backup_count=1,
    )
    configure_logging(cfg)

    logger = logging.getLogger("test_rotate")
    for _ in range(10):
        logger.debug("This is a long log message to trigger rotation." * 5)
    shutdown_logging()

    assert log_file.exists()
    assert (tmp_path / "rotate.log.1").exists()


def test_from_config_maps_debug_and_log_file() -> None:
    cfg = LoggingConfig.from_config({"log_level": "WARNING", "log_file": ""}, debug=True)

    assert cfg.level == "DEBUG"
    assert cfg.log_file is None
