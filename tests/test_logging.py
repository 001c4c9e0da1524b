"""Tests for assetpack.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from assetpack.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_assetpack_logger():
    yield
    logger = logging.getLogger("assetpack")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def test_get_logger_nests_under_package() -> None:
    assert get_logger().name == "assetpack"
    assert get_logger("scanner").name == "assetpack.scanner"


def test_configure_logging_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging(verbose=True)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert "%(module)s" in logger.handlers[0].formatter._fmt


def test_log_file_keeps_debug_detail_when_console_is_quiet(tmp_path: Path) -> None:
    log_file = tmp_path / "assetpack.log"
    logger = configure_logging(log_file=log_file)

    get_logger("rewriter").debug("copied %s", "abc123")
    for handler in logger.handlers:
        handler.flush()

    assert logger.handlers[0].level == logging.INFO
    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG assetpack.rewriter [MainThread]: copied abc123" in text
