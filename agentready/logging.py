"""Logging for agentready runs: one ``agentready.<component>`` logger per stage."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "agentready"
_CONSOLE_FORMAT = "[agentready] %(levelname)s %(component)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


class _ComponentFormatter(logging.Formatter):
    """Adds ``component``: the logger name without the package prefix."""

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith(f"{_LOGGER_NAME}."):
            name = name[len(_LOGGER_NAME) + 1 :]
        record.component = name
        return super().format(record)


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the logger for a pipeline component (``selector``, ``summarizer``, ...)."""
    full_name = f"{_LOGGER_NAME}.{component}" if component else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install the console handler and, when ``log_file`` is given, a file sink.

    The file sink always records DEBUG so a quiet console run still leaves a
    full trace, including which summarizer worker thread made each call.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(_ComponentFormatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    return logger


__all__ = ["configure_logging", "get_logger"]
