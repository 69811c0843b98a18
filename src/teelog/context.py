"""
Request-scoped log context.

A ``LogContext`` is an immutable value: attaching fields always builds a new
tuple, so two contexts derived from the same parent never see each other's
additions. The current context of a thread or asyncio task is carried in a
``ContextVar`` so middleware can set it once per request.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterator, Optional

from .fields import Field

if TYPE_CHECKING:
    from .logger import Logger


@dataclass(frozen=True)
class LogContext:
    fields: tuple[Field, ...] = ()
    logger: Optional[Logger] = None


EMPTY_CONTEXT = LogContext()

_current_context: ContextVar[LogContext] = ContextVar("teelog_context", default=EMPTY_CONTEXT)


def attach_fields(ctx: Optional[LogContext], *fields: Field) -> LogContext:
    """Return a new context holding ``ctx``'s fields followed by ``fields``."""
    base = ctx if ctx is not None else EMPTY_CONTEXT
    return replace(base, fields=base.fields + fields)


def fields_from_context(ctx: Optional[LogContext]) -> tuple[Field, ...]:
    if ctx is None:
        return ()
    return ctx.fields


def with_logger(ctx: Optional[LogContext], logger: Logger) -> LogContext:
    """Return a new context carrying ``logger``."""
    base = ctx if ctx is not None else EMPTY_CONTEXT
    return replace(base, logger=logger)


def logger_from_context(ctx: Optional[LogContext]) -> Optional[Logger]:
    if ctx is None:
        return None
    return ctx.logger


def current_context() -> LogContext:
    return _current_context.get()


@contextmanager
def use_context(ctx: LogContext) -> Iterator[LogContext]:
    """Make ``ctx`` the current context for the duration of the block."""
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)
