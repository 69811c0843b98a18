from __future__ import annotations

import typing as t
from contextlib import suppress
from pathlib import Path

import orjson
import pytest

from teelog import registry
from teelog.core import new_logger
from teelog.errors import TeelogError
from teelog.logger import Logger


@pytest.fixture(autouse=True)
def reset_registry(monkeypatch):
    """
    Each test starts without a published process-wide logger.
    Whatever a test publishes is flushed and closed afterwards.
    """
    monkeypatch.setattr(registry, "_logger", None)
    yield
    published = registry._logger
    if published is not None:
        with suppress(TeelogError):
            published.tee.close()


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def make_logger(log_dir: Path) -> t.Iterator[t.Callable[..., Logger]]:
    """
    Factory for loggers writing under tmp_path; console is off unless asked for.
    """
    created: list[Logger] = []

    def factory(**overrides: t.Any) -> Logger:
        values: dict[str, t.Any] = {
            "filename": str(log_dir / "app.log"),
            "error_filename": str(log_dir / "error.log"),
            "console": False,
        }
        values.update(overrides)
        logger = new_logger(values)
        created.append(logger)
        return logger

    yield factory

    for logger in created:
        with suppress(TeelogError):
            logger.tee.close()


@pytest.fixture
def read_records() -> t.Callable[[Path], list[dict[str, t.Any]]]:
    """Parse a JSON-lines log file; a missing file has no records."""

    def reader(path: Path) -> list[dict[str, t.Any]]:
        if not path.exists():
            return []
        return [orjson.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]

    return reader
