"""
Severity levels.

Ordered: debug < info < warn < error < panic < fatal. The numeric values line
up with the standard library's (``logging.DEBUG`` == ``Level.DEBUG``) so
records bridged from ``logging`` keep their ordering.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from .errors import ConfigurationError


class Level(IntEnum):
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    PANIC = 50
    FATAL = 60

    @property
    def label(self) -> str:
        """Lower-case name written to the ``level`` key."""
        return self.name.lower()

    @classmethod
    def parse(cls, text: str | Level) -> Level:
        """Parse a level name, raising ``ConfigurationError`` when unknown."""
        if isinstance(text, Level):
            return text
        name = str(text).strip().upper()
        name = _ALIASES.get(name, name)
        try:
            return cls[name]
        except KeyError:
            raise ConfigurationError(
                f"unrecognized level: {text!r}",
                details={"level": text, "allowed": [lvl.label for lvl in cls]},
            ) from None

    @classmethod
    def from_stdlib(cls, levelno: int) -> Level:
        """Map a standard library ``levelno`` onto the nearest level at or below it."""
        if levelno >= logging.CRITICAL:
            return cls.PANIC
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        return cls.DEBUG


_ALIASES = {"WARNING": "WARN", "CRITICAL": "PANIC"}
