"""
Typed log fields.

A ``Field`` is a closed tagged variant: the caller picks the constructor
(``Field.string``, ``Field.int``, ...) so nothing has to inspect value types
at log time. ``Field.any`` is the fallback for values of no particular kind;
the JSON encoder writes them natively when it can and as ``str()`` otherwise.
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Mapping


class FieldKind(Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    ERROR = "error"
    TIME = "time"
    DURATION = "duration"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class Field:
    key: str
    kind: FieldKind
    value: Any

    @classmethod
    def string(cls, key: str, value: str) -> Field:
        return cls(key, FieldKind.STRING, builtins.str(value))

    @classmethod
    def int(cls, key: str, value: builtins.int) -> Field:
        return cls(key, FieldKind.INT, builtins.int(value))

    @classmethod
    def float(cls, key: str, value: builtins.float) -> Field:
        return cls(key, FieldKind.FLOAT, builtins.float(value))

    @classmethod
    def bool(cls, key: str, value: builtins.bool) -> Field:
        return cls(key, FieldKind.BOOL, builtins.bool(value))

    @classmethod
    def error(cls, err: BaseException, key: str = "error") -> Field:
        """Record an exception by its message under ``key``."""
        return cls(key, FieldKind.ERROR, builtins.str(err))

    @classmethod
    def time(cls, key: str, value: datetime) -> Field:
        return cls(key, FieldKind.TIME, value)

    @classmethod
    def duration(cls, key: str, value: timedelta) -> Field:
        return cls(key, FieldKind.DURATION, value)

    @classmethod
    def any(cls, key: str, value: Any) -> Field:
        return cls(key, FieldKind.ANY, value)


def field(key: str, value: Any) -> Field:
    """Shorthand for ``Field.any``."""
    return Field.any(key, value)


def fields_from_mapping(mapping: Mapping[str, Any]) -> tuple[Field, ...]:
    return tuple(Field.any(key, value) for key, value in mapping.items())


def as_context(fields: Iterable[Field]) -> dict[str, Any]:
    """Flatten fields into a key/value dict; a later field wins over an earlier one."""
    return {f.key: f.value for f in fields}
