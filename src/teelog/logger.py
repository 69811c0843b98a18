"""
The logger facade.

A ``Logger`` is immutable: ``with_field`` and friends return a new instance
sharing the same cores and configuration, so derived loggers can be handed to
any number of threads without locking.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional

from .config import LoggerConfig
from .context import LogContext, fields_from_context
from .fields import Field, as_context, fields_from_mapping
from .levels import Level

if TYPE_CHECKING:
    from .core import LevelBoundLogger
    from .sinks import Tee


def _sprintf(template: str, args: tuple[Any, ...]) -> str:
    """``%``-format ``template``; mismatched arguments are appended instead of raised."""
    try:
        return template % args
    except (TypeError, ValueError):
        return f"{template} %!(BADARGS {args!r})"


class Logger:
    """Leveled logging calls plus immutable field derivation.

    Args:
        config: The merged configuration the cores were built from.
        tee: Fan-out over the configured cores, shared by every derived logger.
        bound: structlog bound logger carrying this instance's bound fields.
    """

    __slots__ = ("_config", "_tee", "_bound")

    def __init__(self, config: LoggerConfig, tee: Tee, bound: LevelBoundLogger) -> None:
        self._config = config
        self._tee = tee
        self._bound = bound

    def __repr__(self) -> str:
        return f"<Logger level={self._config.level} fields={self.fields!r}>"

    @property
    def config(self) -> LoggerConfig:
        return self._config

    @property
    def tee(self) -> Tee:
        return self._tee

    @property
    def bound(self) -> LevelBoundLogger:
        return self._bound

    @property
    def fields(self) -> dict[str, Any]:
        """Copy of the fields bound to this instance."""
        return dict(self._bound.fields)

    @property
    def write_errors(self) -> int:
        """Records dropped because a core failed to write them."""
        return self._tee.write_errors

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    def with_field(self, key: str, value: Any) -> Logger:
        return self.with_fields(Field.any(key, value))

    def with_fields(self, *fields: Field) -> Logger:
        if not fields:
            return self
        return Logger(self._config, self._tee, self._bound.bind_fields(as_context(fields)))

    def with_fields_from_mapping(self, mapping: Mapping[str, Any]) -> Logger:
        if not mapping:
            return self
        return self.with_fields(*fields_from_mapping(mapping))

    def with_context(self, ctx: Optional[LogContext]) -> Logger:
        return self.with_fields(*fields_from_context(ctx))

    # -------------------------------------------------------------------------
    # Leveled calls
    # -------------------------------------------------------------------------

    def log(self, level: Level | str, msg: str, /, *fields: Field, exc_info: Any = None, **kw: Any) -> None:
        """Log ``msg`` with ``fields``; keyword arguments are further fields of any key but ``exc_info``."""
        call_fields = {**as_context(fields), **kw} if fields else kw
        self._bound.log(Level.parse(level), msg, call_fields, exc_info=exc_info)

    def debug(self, msg: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.DEBUG, msg, *fields, **kw)

    def info(self, msg: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.INFO, msg, *fields, **kw)

    def warn(self, msg: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.WARN, msg, *fields, **kw)

    warning = warn

    def error(self, msg: str, /, *fields: Field, **kw: Any) -> None:
        self.log(Level.ERROR, msg, *fields, **kw)

    def exception(self, msg: str, /, *fields: Field, exc_info: Any = True, **kw: Any) -> None:
        """Log at error level with the exception being handled."""
        self.log(Level.ERROR, msg, *fields, exc_info=exc_info, **kw)

    # -------------------------------------------------------------------------
    # printf-style calls
    # -------------------------------------------------------------------------

    def debugf(self, template: str, *args: Any) -> None:
        self.log(Level.DEBUG, _sprintf(template, args))

    def infof(self, template: str, *args: Any) -> None:
        self.log(Level.INFO, _sprintf(template, args))

    def warnf(self, template: str, *args: Any) -> None:
        self.log(Level.WARN, _sprintf(template, args))

    def errorf(self, template: str, *args: Any) -> None:
        self.log(Level.ERROR, _sprintf(template, args))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def sync(self) -> None:
        """Flush every core.

        Raises:
            FlushError: at least one core failed; all cores were attempted.
        """
        self._tee.sync()

    def close(self) -> None:
        """Flush. The shared writers stay open for other derived loggers."""
        self.sync()
