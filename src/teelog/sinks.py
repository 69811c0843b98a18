"""
Cores and their fan-out.

A core is one formatted write path: encoder + writer + minimum level. The
``Tee`` offers every accepted record to all of its cores and each core
re-checks its own threshold, so the error core never sees a record below
ERROR whatever the main level is.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Protocol

from structlog.typing import EventDict

from .errors import FlushError
from .levels import Level
from .writers import Writer


class Encoder(Protocol):
    def encode(self, event_dict: EventDict) -> str: ...


# =============================================================================
# Core Abstraction
# =============================================================================


class BaseCore(ABC):
    """Abstract base class for cores."""

    name: str
    level: Level

    def enabled(self, level: Level) -> bool:
        return level >= self.level

    @property
    def write_errors(self) -> int:
        return 0

    @abstractmethod
    def write(self, event_dict: EventDict) -> None:
        """Encode and write one record; failures are swallowed."""
        ...

    @abstractmethod
    def sync(self) -> None:
        """Flush buffered output."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Flush and release the underlying writer."""
        ...


class Core(BaseCore):
    def __init__(self, name: str, encoder: Encoder, writer: Writer, level: Level) -> None:
        self.name = name
        self.encoder = encoder
        self.writer = writer
        self.level = level
        self._errors = 0
        self._errors_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<Core {self.name} level={self.level.label}>"

    @property
    def write_errors(self) -> int:
        return self._errors

    def write(self, event_dict: EventDict) -> None:
        try:
            self.writer.write(self.encoder.encode(event_dict))
        except Exception:
            with self._errors_lock:
                self._errors += 1

    def sync(self) -> None:
        self.writer.sync()

    def close(self) -> None:
        self.writer.close()


class NopCore(BaseCore):
    """Accepts nothing; installed when no sink is configured."""

    name = "nop"
    level = Level.FATAL

    def enabled(self, level: Level) -> bool:
        return False

    def write(self, event_dict: EventDict) -> None:
        pass

    def sync(self) -> None:
        pass

    def close(self) -> None:
        pass


# =============================================================================
# Fan-out
# =============================================================================


class Tee:
    """Fan-out over a fixed set of cores."""

    def __init__(self, cores: Iterable[BaseCore]) -> None:
        self.cores: tuple[BaseCore, ...] = tuple(cores) or (NopCore(),)
        self.min_level = min(core.level for core in self.cores)
        self._flusher: Optional[Flusher] = None

    def __repr__(self) -> str:
        return f"<Tee {list(self.cores)!r}>"

    def enabled(self, level: Level) -> bool:
        return level >= self.min_level and any(core.enabled(level) for core in self.cores)

    def write(self, level: Level, event_dict: EventDict) -> None:
        for core in self.cores:
            if core.enabled(level):
                core.write(event_dict)

    @property
    def write_errors(self) -> int:
        return sum(core.write_errors for core in self.cores)

    def sync(self) -> None:
        """Flush every core; raise ``FlushError`` after all were attempted."""
        failures: list[tuple[str, BaseException]] = []
        for core in self.cores:
            try:
                core.sync()
            except Exception as exc:
                failures.append((core.name, exc))
        if failures:
            raise FlushError(failures) from failures[0][1]

    def start_flusher(self, interval: float) -> None:
        if self._flusher is None and interval > 0:
            self._flusher = Flusher(self, interval)
            self._flusher.start()

    def stop(self) -> None:
        """Stop the background flusher, if any, and flush once more."""
        if self._flusher is not None:
            self._flusher.stop()
            self._flusher = None
        self.sync()

    def close(self) -> None:
        try:
            self.stop()
        finally:
            for core in self.cores:
                core.close()


class Flusher(threading.Thread):
    """Periodically syncs a tee until ``stop`` is called."""

    def __init__(self, tee: Tee, interval: float) -> None:
        super().__init__(name="teelog-flusher", daemon=True)
        self._tee = tee
        self._interval = interval
        self._stopped = threading.Event()
        self.failures = 0

    def run(self) -> None:
        while not self._stopped.wait(self._interval):
            try:
                self._tee.sync()
            except FlushError:
                self.failures += 1

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stopped.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)
