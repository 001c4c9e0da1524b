"""Logger hierarchy for the packaging stages.

Every module logs under ``assetpack.<module>``; ``configure_logging`` is
called once per CLI run and owns the handlers of the ``assetpack`` logger.
"""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "assetpack"

_CONSOLE_FORMAT = "[assetpack] %(levelname)s %(message)s"
# Verbose runs name the emitting stage (scanner, rewriter, archive, ...).
_VERBOSE_CONSOLE_FORMAT = "[assetpack:%(module)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``assetpack.<name>``, or the package logger itself."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route assetpack records to stderr and, when given, to ``log_file``.

    The file sink always records DEBUG detail, including the worker thread
    so ``--jobs`` copies can be told apart.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger"]
