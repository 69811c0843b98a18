"""
Record encoders and color utilities.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

import orjson
from structlog.typing import EventDict

TIME_KEY = "time"
LEVEL_KEY = "level"
MESSAGE_KEY = "msg"
CALLER_KEY = "caller"
STACKTRACE_KEY = "stacktrace"
EXCEPTION_KEY = "exception"

# Event-dict key holding the user fields; expanded into the record by the encoders.
FIELDS_KEY = "_fields"
# User fields named like a record key are written as ``fields.<key>``.
COLLISION_PREFIX = "fields."

_HEAD_KEYS = (TIME_KEY, LEVEL_KEY, CALLER_KEY, MESSAGE_KEY)
_TAIL_KEYS = (EXCEPTION_KEY, STACKTRACE_KEY)
_RECORD_KEYS = frozenset(_HEAD_KEYS + _TAIL_KEYS)

# =============================================================================
# Time Layouts
# =============================================================================

TimeFormatter = Callable[[datetime], Any]


def make_time_formatter(layout: str) -> TimeFormatter:
    """Build a formatter for a named layout or a strftime pattern."""
    name = layout.strip().lower()
    if name == "rfc3339nano":
        return lambda dt: dt.isoformat(timespec="microseconds")
    if name == "rfc3339":
        return lambda dt: dt.isoformat(timespec="seconds")
    if name == "epoch":
        return lambda dt: dt.timestamp()
    return lambda dt: dt.strftime(layout)


# =============================================================================
# JSON Encoder
# =============================================================================


def _json_default(value: Any) -> Any:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return str(value)


_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _stringify_wide_ints(value: Any) -> Any:
    """orjson rejects integers outside 64 bits without consulting ``default``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value if _INT64_MIN <= value <= _INT64_MAX else str(value)
    if isinstance(value, dict):
        return {key: _stringify_wide_ints(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_stringify_wide_ints(item) for item in value]
    return value


def orjson_dumps(v: Any) -> str:
    """Fast JSON serialization using orjson."""
    try:
        return orjson.dumps(v, default=_json_default, option=orjson.OPT_NON_STR_KEYS).decode()
    except orjson.JSONEncodeError:
        v = _stringify_wide_ints(v)
        return orjson.dumps(v, default=_json_default, option=orjson.OPT_NON_STR_KEYS).decode()


def _ordered(event_dict: EventDict, format_time: TimeFormatter) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for key in _HEAD_KEYS:
        if key in event_dict:
            record[key] = event_dict[key]
    for key, value in event_dict.items():
        if key in _RECORD_KEYS or key == FIELDS_KEY:
            continue
        record[key] = format_time(value) if isinstance(value, datetime) else value
    for key, value in event_dict.get(FIELDS_KEY, {}).items():
        if key in _RECORD_KEYS:
            key = COLLISION_PREFIX + key
        record[key] = format_time(value) if isinstance(value, datetime) else value
    for key in _TAIL_KEYS:
        if key in event_dict:
            record[key] = event_dict[key]
    if isinstance(record.get(TIME_KEY), datetime):
        record[TIME_KEY] = format_time(record[TIME_KEY])
    return record


class JSONEncoder:
    """One JSON object per line: time, level, caller, msg, fields, then exception/stacktrace."""

    def __init__(self, time_format: str) -> None:
        self._format_time = make_time_formatter(time_format)

    def encode(self, event_dict: EventDict) -> str:
        return orjson_dumps(_ordered(event_dict, self._format_time)) + "\n"


# =============================================================================
# Console Encoder (Aligned Columns)
# =============================================================================

COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "debug": "\033[36m",
    "info": "\033[32m",
    "warn": "\033[33m",
    "error": "\033[31m",
    "panic": "\033[1;31m",
    "fatal": "\033[1;31m",
    "timestamp": "\033[90m",
    "caller": "\033[35m",
    "key": "\033[34m",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


class ConsoleEncoder:
    """Human-readable console rendering (fixed width, right-aligned columns)."""

    LEVEL_WIDTH = 5
    CALLER_WIDTH = 32
    SEPARATOR = " | "

    def __init__(self, time_format: str, *, use_color: bool = True) -> None:
        self._format_time = make_time_formatter(time_format)
        self._use_color = use_color

    @staticmethod
    def _fit_right(text: str, width: int) -> str:
        if width <= 0:
            return text
        if len(text) > width:
            if width <= 3:
                text = text[-width:]
            else:
                text = "..." + text[-(width - 3) :]
        return f"{text:>{width}}"

    def _maybe_color(self, text: str, color: str) -> str:
        if not self._use_color:
            return text
        return colorize(text, color)

    def encode(self, event_dict: EventDict) -> str:
        record = _ordered(event_dict, self._format_time)
        level = str(record.get(LEVEL_KEY, "info"))
        message = str(record.get(MESSAGE_KEY, ""))

        extras = []
        for key, value in record.items():
            if key in _HEAD_KEYS or key in _TAIL_KEYS:
                continue
            text = value if isinstance(value, str) else orjson_dumps(value)
            extras.append(f"{self._maybe_color(key, 'key')}={self._maybe_color(text, 'dim')}")
        if extras:
            message = f"{message} " + " ".join(extras)

        columns = [
            self._maybe_color(str(record.get(TIME_KEY, "")), "timestamp"),
            self._maybe_color(self._fit_right(level.upper(), self.LEVEL_WIDTH), level),
        ]
        if CALLER_KEY in record:
            columns.append(self._maybe_color(self._fit_right(str(record[CALLER_KEY]), self.CALLER_WIDTH), "caller"))
        columns.append(message)

        lines = [self.SEPARATOR.join(columns)]
        for key in _TAIL_KEYS:
            if key in record:
                lines.append(str(record[key]))
        return "\n".join(lines) + "\n"
