"""Simple logger adapter over the standard library ``logging`` module."""

import logging
from typing import Any

from ..ports.logger import LoggerPort

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SimpleLogger(LoggerPort):
    """Logger implementation using Python's standard logging.

    Keyword arguments become ``extra`` fields on the log record, so handlers
    and formatters downstream can pick up error codes and key paths.
    """

    def __init__(self, name: str = "eyedoo_sync", level: int | str = logging.INFO):
        """Initialize the logger.

        Args:
            name: Logger name (default: "eyedoo_sync")
            level: Logging level, numeric or by name (default: INFO)
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, extra=kwargs)

    def exception(self, message: str, exc_info: Exception | None = None, **kwargs: Any) -> None:
        self._logger.exception(message, exc_info=exc_info or True, extra=kwargs)
