"""
Logging configuration for typing-bird.

All loggers hang off the "typing_bird" logger. Console output goes to
stderr through Rich when attached to a terminal, and as plain timestamped
lines otherwise (for example inside an injected pane piped to a file).
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "typing_bird"
PLAIN_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the typing_bird hierarchy."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the typing_bird logger.

    Existing handlers are removed first so repeated setup does not
    duplicate output.

    Args:
        level: Logging level for the typing_bird hierarchy
        log_file: Optional file to append log records to
        console: Whether to log to stderr
        rich_console: Use Rich formatting for the stderr handler

    Returns:
        The root typing_bird logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    if console:
        if rich_console:
            handler: logging.Handler = RichHandler(
                console=Console(stderr=True),
                show_path=False,
                markup=False,
                rich_tracebacks=False,
            )
        else:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
        handler.setLevel(level)
        logger.addHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger


def setup_cli_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure logging for a command-line run.

    INFO by default, DEBUG with --verbose. Rich output only on a terminal.
    """
    setup_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        log_file=log_file,
        console=True,
        rich_console=sys.stderr.isatty(),
    )
    return get_logger("cli")


class StructuredLogger:
    """Logger wrapper that appends key=value context to every message."""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._context = dict(context or {})

    def with_context(self, **kwargs: Any) -> "StructuredLogger":
        """Return a new logger carrying this context plus kwargs."""
        merged = dict(self._context)
        merged.update(kwargs)
        return StructuredLogger(self._logger, merged)

    def _format_message(self, msg: str, kwargs: Dict[str, Any]) -> str:
        fields = dict(self._context)
        fields.update(kwargs)
        if not fields:
            return msg
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{msg} {rendered}"

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._logger.debug(self._format_message(msg, kwargs))

    def info(self, msg: str, **kwargs: Any) -> None:
        self._logger.info(self._format_message(msg, kwargs))

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._logger.warning(self._format_message(msg, kwargs))

    def error(self, msg: str, **kwargs: Any) -> None:
        self._logger.error(self._format_message(msg, kwargs))

    def exception(self, msg: str, **kwargs: Any) -> None:
        self._logger.exception(self._format_message(msg, kwargs))

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a StructuredLogger under the typing_bird hierarchy."""
    return StructuredLogger(get_logger(name))
