from __future__ import annotations

import logging
from typing import List, Optional

from ..Net.events import ModelAction, ModelEvent

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_level: str = "INFO",
    log_filename: Optional[str] = None,
    logger_name: str = "petrikit",
) -> logging.Logger:
    """
    Configure and return the package logger.

    Handlers previously attached by this function are replaced, so calling it
    again only changes level and destination.

    :param log_level: Level name, e.g. ``"DEBUG"`` or ``"WARNING"``.
    :param log_filename: Optional file to log to; console otherwise.
    :param logger_name: Logger to configure.
    :returns: The configured logger.
    :raises ValueError: If ``log_level`` is not a valid level name.
    """
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    for old in list(logger.handlers):
        if getattr(old, "_petrikit", False):
            logger.removeHandler(old)
            old.close()

    handler: logging.Handler
    if log_filename:
        handler = logging.FileHandler(log_filename, mode="w", encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._petrikit = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


class LoggingListener:
    """
    Listener forwarding model notifications to a logger.

    ``PRINT_LINE`` events are logged at INFO with their text; everything else
    at DEBUG with the tag and payload.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("petrikit.events")

    def __call__(self, event: ModelEvent) -> None:
        if event.action is ModelAction.PRINT_LINE:
            self.logger.info("%s", event.payload)
        else:
            self.logger.debug("%s: %r", event.action.value, event.payload)


class TextCollector:
    """Listener keeping the ``PRINT_LINE`` texts in arrival order."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def __call__(self, event: ModelEvent) -> None:
        if event.action is ModelAction.PRINT_LINE:
            self.lines.append(str(event.payload))

    def text(self) -> str:
        return "\n".join(self.lines)
