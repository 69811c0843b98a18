"""
Process-wide logger instance.

``init_logger`` publishes the first successfully built logger; every later call
is a no-op, even with a different configuration. ``get_logger`` refuses to
hand out anything before that, so a missing initialization fails fast instead
of logging to nowhere.
"""

from __future__ import annotations

import atexit
import threading
from contextlib import suppress
from pathlib import Path
from typing import Optional, Union

from .config import ConfigSource, load_config_from_yaml
from .context import LogContext, logger_from_context
from .core import new_logger
from .errors import TeelogError, UninitializedAccess
from .logger import Logger

_logger: Optional[Logger] = None
_lock = threading.Lock()
_exit_hook_registered = False


def init_logger(config: ConfigSource = None) -> None:
    """Build and publish the process-wide logger; the first successful call wins.

    Raises:
        ConfigurationError: unknown level or invalid values.
        FilesystemError: a log directory or file cannot be created.
    """
    global _logger, _exit_hook_registered
    if _logger is not None:
        return
    with _lock:
        if _logger is not None:
            return
        _logger = new_logger(config)
        if not _exit_hook_registered:
            atexit.register(_shutdown_at_exit)
            _exit_hook_registered = True


def init_logger_from_yaml(config_path: Union[str, Path]) -> None:
    """Initialize from the ``logger:`` section of a YAML file."""
    if _logger is not None:
        return
    init_logger(load_config_from_yaml(config_path))


def get_logger() -> Logger:
    """Return the process-wide logger.

    Raises:
        UninitializedAccess: ``init_logger`` has not succeeded yet.
    """
    logger = _logger
    if logger is None:
        raise UninitializedAccess()
    return logger


def is_initialized() -> bool:
    return _logger is not None


def from_context(ctx: Optional[LogContext]) -> Logger:
    """Logger stored in ``ctx``, else the process-wide logger."""
    return logger_from_context(ctx) or get_logger()


def shutdown() -> None:
    """Stop background flushing, flush and close the published logger's writers.

    The instance stays published; files are reopened on the next write.
    """
    logger = _logger
    if logger is not None:
        logger.tee.close()


def _shutdown_at_exit() -> None:
    with suppress(TeelogError, OSError):
        shutdown()
