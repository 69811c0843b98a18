"""
Core composition and the structlog processor chain.

``build_core`` turns a configuration into a ``Tee`` of cores; ``new_logger``
wraps that tee in a structlog bound logger whose processors stamp the time,
level, caller and stack trace before handing the event to every core.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from structlog import BoundLoggerBase, DropEvent
from structlog.processors import (
    CallsiteParameter,
    CallsiteParameterAdder,
    StackInfoRenderer,
    format_exc_info,
)
from structlog.typing import EventDict, Processor, WrappedLogger

from .config import ConfigSource, LoggerConfig, merge_with_defaults
from .errors import TeelogError
from .formatters import (
    CALLER_KEY,
    FIELDS_KEY,
    LEVEL_KEY,
    MESSAGE_KEY,
    STACKTRACE_KEY,
    TIME_KEY,
    ConsoleEncoder,
    JSONEncoder,
)
from .levels import Level
from .logger import Logger
from .sinks import BaseCore, Core, Tee
from .writers import BufferedWriter, StreamWriter, buffer_size_for, create_writer

# Frames from these modules are skipped when resolving the caller.
_INTERNAL_MODULES = ["teelog."]

_LEVELS_BY_LABEL = {level.label: level for level in Level}


# =============================================================================
# Bound Logger
# =============================================================================


class LevelBoundLogger(BoundLoggerBase):
    """Bound logger dispatching on ``Level`` with a cheap fan-out level check.

    The wrapped logger is the ``Tee``; the last processor writes to it and
    drops the event, so the tee is never called by method name.

    User fields travel as one mapping under ``FIELDS_KEY``, never as structlog
    keyword arguments; the encoders expand them into the record.
    """

    @property
    def fields(self) -> Mapping[str, Any]:
        return self._context.get(FIELDS_KEY, {})

    def bind_fields(self, fields: Mapping[str, Any]) -> LevelBoundLogger:
        return self.bind(**{FIELDS_KEY: {**self.fields, **fields}})

    def log(
        self,
        level: Level,
        event: str,
        fields: Optional[Mapping[str, Any]] = None,
        *,
        exc_info: Any = None,
        caller: Optional[str] = None,
    ) -> None:
        if not self._logger.enabled(level):
            return
        kw: dict[str, Any] = {}
        if fields:
            kw[FIELDS_KEY] = {**self.fields, **fields}
        if exc_info:
            kw["exc_info"] = exc_info
        if caller:
            kw[CALLER_KEY] = caller
        self._proxy_to_logger(level.label, event, **kw)


# =============================================================================
# Structlog Processors
# =============================================================================


def add_log_level(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict[LEVEL_KEY] = method_name
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Local time; rendered by the encoder using the configured layout."""
    event_dict[TIME_KEY] = datetime.now().astimezone()
    return event_dict


def add_caller(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Collapse callsite parameters into ``dir/file.py:line`` unless a caller is already set."""
    pathname = event_dict.pop(CallsiteParameter.PATHNAME.value, None)
    lineno = event_dict.pop(CallsiteParameter.LINENO.value, None)
    if pathname:
        path = Path(pathname)
        event_dict.setdefault(CALLER_KEY, f"{path.parent.name}/{path.name}:{lineno}")
    return event_dict


def request_stacktrace(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    if _LEVELS_BY_LABEL[method_name] >= Level.ERROR:
        event_dict.setdefault("stack_info", True)
    return event_dict


def rename_stack_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    if "stack" in event_dict:
        event_dict[STACKTRACE_KEY] = event_dict.pop("stack")
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    if "event" in event_dict:
        event_dict[MESSAGE_KEY] = event_dict.pop("event")
    return event_dict


def render_to_cores(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Offer the event to every core, then stop the chain."""
    logger.write(_LEVELS_BY_LABEL[method_name], event_dict)
    raise DropEvent


def build_processors(config: LoggerConfig) -> list[Processor]:
    processors: list[Processor] = [add_log_level, add_timestamp]
    if not config.disable_caller:
        processors += [
            CallsiteParameterAdder(
                parameters=[CallsiteParameter.PATHNAME, CallsiteParameter.LINENO],
                additional_ignores=_INTERNAL_MODULES,
            ),
            add_caller,
        ]
    if not config.disable_stacktrace:
        processors += [
            request_stacktrace,
            StackInfoRenderer(additional_ignores=_INTERNAL_MODULES),
            rename_stack_key,
        ]
    processors += [format_exc_info, rename_event_key, render_to_cores]
    return processors


# =============================================================================
# Composition
# =============================================================================


def _console_core(config: LoggerConfig, level: Level) -> Core:
    stream = StreamWriter(sys.stdout)
    writer = BufferedWriter(stream, buffer_size_for(config)) if config.enable_async else stream
    encoder = ConsoleEncoder(config.time_format, use_color=stream.isatty())
    return Core("console", encoder, writer, level)


def build_core(config: ConfigSource = None) -> Tee:
    """Build the main file, error file and console cores and join them in a tee.

    Raises:
        ConfigurationError: unknown level or invalid values.
        FilesystemError: a log directory or file cannot be created.
    """
    c = merge_with_defaults(config)
    level = Level.parse(c.level)

    cores: list[BaseCore] = []
    try:
        if c.filename:
            cores.append(Core("file", JSONEncoder(c.time_format), create_writer(c.filename, c), level))
        if c.error_filename:
            cores.append(Core("error", JSONEncoder(c.time_format), create_writer(c.error_filename, c), Level.ERROR))
        if c.console:
            cores.append(_console_core(c, level))
    except TeelogError:
        for core in cores:
            core.close()
        raise

    tee = Tee(cores)
    if c.enable_async:
        tee.start_flusher(c.async_flush_seconds)
    return tee


def new_logger(config: ConfigSource = None) -> Logger:
    """Build a logger without publishing it as the process-wide instance."""
    c = merge_with_defaults(config)
    tee = build_core(c)
    return Logger(c, tee, LevelBoundLogger(tee, build_processors(c), {}))
