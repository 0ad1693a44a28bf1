# coursecache/utils/logger.py
"""
Logging setup for applications using the read cache.

Library modules only call logging.getLogger(__name__); handlers are attached
here by the application. Background (stale-while-revalidate) refreshes run
inside background_refresh_context so their routine chatter can be filtered
out while warnings and errors still come through.
"""

from __future__ import annotations
import contextvars
import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from rich.console import Console
from rich.logging import RichHandler

# Whether the current task is a background refresh
background_refresh_context: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "background_refresh_active", default=False
)


@contextmanager
def background_refresh() -> Iterator[None]:
    """Mark the enclosed code (and tasks it creates) as a background refresh."""
    token = background_refresh_context.set(True)
    try:
        yield
    finally:
        background_refresh_context.reset(token)


class BackgroundRefreshFilter(logging.Filter):
    """
    Drops records at or below suppress_level emitted during a background refresh.
    """

    def __init__(self, suppress_level: int = logging.INFO, name: str = ""):
        super().__init__(name)
        self.suppress_level = suppress_level

    def filter(self, record: logging.LogRecord) -> bool:
        if background_refresh_context.get() and record.levelno <= self.suppress_level:
            return False
        return True


def setup_logger(
    name: str = "coursecache",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    suppress_background_level: Optional[int] = logging.INFO,
) -> logging.Logger:
    """
    Configure a logger with a rich console handler and an optional file handler.

    Args:
        name: Logger to configure. Defaults to the package root logger.
        level: Level for the logger and its handlers.
        log_file: If given, also write plain-text records to this file.
        suppress_background_level: Records at or below this level are hidden
            during background refreshes. None disables the filter.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    # Avoid duplicate handlers when called twice
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.setLevel(level)

    console_handler = RichHandler(
        level=level,
        console=Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    for handler in handlers:
        if suppress_background_level is not None:
            handler.addFilter(BackgroundRefreshFilter(suppress_level=suppress_background_level))
        logger.addHandler(handler)

    return logger
