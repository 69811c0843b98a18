"""
Sink factory: durable, optionally buffered output destinations.

Rotation and retention belong to ``RotatingFileWriter``, a thin extension of
the standard library's ``RotatingFileHandler``; this module only configures it
and stacks a ``BufferedWriter`` on top.
"""

from __future__ import annotations

import gzip
import os
import shutil
import threading
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import IO, Protocol, Union

from .config import LoggerConfig
from .errors import FilesystemError

MEGABYTE = 1024 * 1024
MIN_BUFFER_SIZE = 4096


class Writer(Protocol):
    def write(self, data: str) -> None: ...

    def sync(self) -> None: ...

    def close(self) -> None: ...


# =============================================================================
# Rotating File Writer
# =============================================================================


def _gzip_namer(default_name: str) -> str:
    return default_name + ".gz"


def _gzip_rotator(source: str, dest: str) -> None:
    if not os.path.exists(source):
        return
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


class RotatingFileWriter(RotatingFileHandler):
    """Size-bounded file with numbered backups, age pruning and optional gzip.

    Backups are ``app.log.1`` .. ``app.log.N`` (``.gz`` appended when
    compressing); backups older than ``max_age_days`` are removed on rollover.
    """

    def __init__(
        self,
        filename: Union[str, Path],
        *,
        max_size_mb: int,
        max_backups: int,
        max_age_days: int,
        compress: bool,
    ) -> None:
        super().__init__(
            filename,
            maxBytes=max_size_mb * MEGABYTE,
            backupCount=max_backups,
            encoding="utf-8",
        )
        self.max_age_days = max_age_days
        if compress:
            self.namer = _gzip_namer
            self.rotator = _gzip_rotator

    def write(self, data: str) -> None:
        self.acquire()
        try:
            if self.stream is None:
                self.stream = self._open()
            if self.maxBytes > 0:
                self.stream.seek(0, 2)
                position = self.stream.tell()
                if position > 0 and position + len(data) >= self.maxBytes:
                    self.doRollover()
                    if self.stream is None:
                        self.stream = self._open()
            self.stream.write(data)
        finally:
            self.release()

    def sync(self) -> None:
        self.flush()

    def doRollover(self) -> None:
        super().doRollover()
        self._remove_expired_backups()

    def _remove_expired_backups(self) -> None:
        if self.max_age_days <= 0:
            return
        cutoff = time.time() - self.max_age_days * 86400
        base = Path(self.baseFilename)
        for backup in base.parent.glob(base.name + ".*"):
            try:
                if backup.stat().st_mtime < cutoff:
                    backup.unlink()
            except FileNotFoundError:
                continue


# =============================================================================
# Buffering and Stream Writers
# =============================================================================


class BufferedWriter:
    """Holds writes in memory until the buffer is full or ``sync`` is called."""

    def __init__(self, writer: Writer, size: int) -> None:
        self._writer = writer
        self.size = max(size, MIN_BUFFER_SIZE)
        self._lock = threading.Lock()
        self._chunks: list[str] = []
        self._pending = 0

    @property
    def pending(self) -> int:
        return self._pending

    def write(self, data: str) -> None:
        with self._lock:
            self._chunks.append(data)
            self._pending += len(data)
            if self._pending >= self.size:
                self._drain()

    def _drain(self) -> None:
        if not self._chunks:
            return
        data = "".join(self._chunks)
        self._chunks.clear()
        self._pending = 0
        self._writer.write(data)

    def sync(self) -> None:
        with self._lock:
            self._drain()
            self._writer.sync()

    def close(self) -> None:
        try:
            self.sync()
        finally:
            self._writer.close()


class StreamWriter:
    """Serialized writes to an already open text stream (never closed here)."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def isatty(self) -> bool:
        return bool(getattr(self._stream, "isatty", lambda: False)())

    def write(self, data: str) -> None:
        with self._lock:
            self._stream.write(data)

    def sync(self) -> None:
        with self._lock:
            self._stream.flush()

    def close(self) -> None:
        self.sync()


# =============================================================================
# Factory
# =============================================================================


def buffer_size_for(config: LoggerConfig) -> int:
    return config.async_buffer_size if config.enable_async else config.buffer_size


def create_writer(path: Union[str, Path], config: LoggerConfig) -> BufferedWriter:
    """Create the parent directory and a buffered rotating file writer."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        writer = RotatingFileWriter(
            target,
            max_size_mb=config.max_size,
            max_backups=config.max_backups,
            max_age_days=config.max_age,
            compress=config.compress,
        )
    except OSError as exc:
        raise FilesystemError(path=str(target), reason=str(exc)) from exc

    return BufferedWriter(writer, buffer_size_for(config))
