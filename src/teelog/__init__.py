"""
teelog: structured logging fanned out to several sinks.

Provides one logger facade writing to multiple cores, each with its own
severity threshold:
- file: rotating JSON log (configured level)
- error file: rotating JSON log (error and above only)
- console: aligned, colorized lines on stdout

Fields bound with ``with_field``/``with_fields`` produce new immutable loggers;
fields attached to a ``LogContext`` follow a request through
``with_context``.

Library: structlog + orjson for the record pipeline and JSON serialization.
"""

from .config import LoggerConfig, load_config_from_yaml, merge_with_defaults
from .context import (
    LogContext,
    attach_fields,
    current_context,
    fields_from_context,
    use_context,
    with_logger,
)
from .core import build_core, new_logger
from .errors import (
    ConfigurationError,
    FilesystemError,
    FlushError,
    TeelogError,
    UninitializedAccess,
)
from .fields import Field, field
from .levels import Level
from .logger import Logger
from .registry import (
    from_context,
    get_logger,
    init_logger,
    init_logger_from_yaml,
    shutdown,
)

__all__ = [
    "ConfigurationError",
    "Field",
    "FilesystemError",
    "FlushError",
    "Level",
    "LogContext",
    "Logger",
    "LoggerConfig",
    "TeelogError",
    "UninitializedAccess",
    "attach_fields",
    "build_core",
    "current_context",
    "field",
    "fields_from_context",
    "from_context",
    "get_logger",
    "init_logger",
    "init_logger_from_yaml",
    "load_config_from_yaml",
    "merge_with_defaults",
    "new_logger",
    "shutdown",
    "use_context",
    "with_logger",
]
