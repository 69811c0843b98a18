"""
Interceptors for capturing standard library and third-party logs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .levels import Level
from .logger import Logger


class RedirectStdLibHandler(logging.Handler):
    """
    Redirect standard library logging records into a teelog logger.

    Third-party libraries (uvicorn, httpx, ...) that log through ``logging``
    then reach the same cores as application records, with the originating
    logger name under the ``logger`` key.
    """

    def __init__(self, logger: Logger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            caller = None
            if not self._logger.config.disable_caller:
                path = Path(record.pathname)
                caller = f"{path.parent.name}/{path.name}:{record.lineno}"
            self._logger.bound.log(
                Level.from_stdlib(record.levelno),
                record.getMessage(),
                {"logger": self._simplify_logger_name(record.name)},
                exc_info=record.exc_info,
                caller=caller,
            )
        except Exception:
            self.handleError(record)

    @staticmethod
    def _simplify_logger_name(name: str) -> str:
        """
        Keep short names as they are, otherwise the last two parts.

        - "uvicorn.access" -> "uvicorn.access"
        - "httpx._client.transport" -> "_client.transport"
        """
        if not name:
            return "stdlib"
        parts = name.split(".")
        if len(parts) <= 2:
            return name
        return ".".join(parts[-2:])


def intercept_stdlib(logger: Logger, level: Union[Level, str] = Level.INFO) -> RedirectStdLibHandler:
    """Replace every root handler with a redirect into ``logger``."""
    handler = RedirectStdLibHandler(logger)
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(int(Level.parse(level)))
    return handler
