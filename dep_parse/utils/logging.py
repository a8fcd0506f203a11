"""Logging utilities for dep-parse.

All loggers are children of ``dep_parse``, which owns the rich console
handler. Parsers bind their ecosystem so each line says where it came from.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "dep_parse"

_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
    "debug": "dim",
})


def _root_logger() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if logger.handlers:
        return logger

    handler = RichHandler(
        console=Console(stderr=True, theme=_THEME),
        show_time=True,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s", datefmt="[%X]"))

    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


class DepParseLogger:
    """Named dep-parse logger with optional bound context.

    Context pairs are rendered in front of every message, e.g.
    ``[ecosystem=docker] No manifest for ...``.
    """

    def __init__(self, name: str, **context: Any) -> None:
        _root_logger()
        self.name = name
        self.context: Dict[str, Any] = context
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    def bind(self, **context: Any) -> "DepParseLogger":
        """Return a logger with extra context pairs."""
        return DepParseLogger(self.name, **{**self.context, **context})

    def _render(self, msg: str) -> str:
        if not self.context:
            return msg
        pairs = " ".join(f"{key}={value}" for key, value in self.context.items())
        return f"[{pairs}] {msg}"

    def info(self, msg: str) -> None:
        self.logger.info(self._render(msg))

    def warning(self, msg: str) -> None:
        self.logger.warning(self._render(msg))

    def error(self, msg: str) -> None:
        self.logger.error(self._render(msg))

    def debug(self, msg: str) -> None:
        self.logger.debug(self._render(msg))


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """Configure dep-parse logging for a CLI run.

    Args:
        level: Logging level
        log_file: Optional file that receives a plain-text copy of the log
        verbose: Shortcut for DEBUG level
    """
    if verbose:
        level = logging.DEBUG

    root = _root_logger()
    root.setLevel(level)

    if log_file and not any(
        isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == Path(log_file).resolve()
        for handler in root.handlers
    ):
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
        root.addHandler(file_handler)

    # Registry traffic is reported through our own client
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> DepParseLogger:
    """Get a dep-parse logger instance.

    Args:
        name: Logger name, placed under ``dep_parse.``
        **context: Pairs to prefix every message with

    Returns:
        Configured logger instance
    """
    return DepParseLogger(name, **context)
