"""
全局 logger 注册表单元测试

测试初始化前访问失败、首次初始化生效、并发初始化、
初始化失败不发布实例、从上下文取 logger 以及关闭。
"""

from __future__ import annotations

import subprocess
import sys
import threading
from pathlib import Path

import pytest

from teelog import registry
from teelog.context import attach_fields, with_logger
from teelog.errors import ConfigurationError, UninitializedAccess
from teelog.fields import Field


def config_for(log_dir: Path, **overrides) -> dict:
    values = {
        "filename": str(log_dir / "app.log"),
        "error_filename": str(log_dir / "error.log"),
        "console": False,
    }
    values.update(overrides)
    return values


class TestUninitialized:
    """未初始化访问测试"""

    def test_get_logger_raises(self) -> None:
        with pytest.raises(UninitializedAccess) as exc_info:
            registry.get_logger()

        assert str(exc_info.value) == "logger not initialized, please call init_logger first"
        assert isinstance(exc_info.value, RuntimeError)
        assert not registry.is_initialized()

    def test_uncaught_access_exits_nonzero(self) -> None:
        result = subprocess.run(
            [sys.executable, "-c", "import teelog; teelog.get_logger()"],
            capture_output=True,
            text=True,
            timeout=60,
        )

        assert result.returncode != 0
        assert "UninitializedAccess" in result.stderr

    def test_from_context_without_logger_raises(self) -> None:
        with pytest.raises(UninitializedAccess):
            registry.from_context(None)


class TestInitLogger:
    """初始化测试"""

    def test_first_call_wins(self, log_dir) -> None:
        registry.init_logger(config_for(log_dir, level="debug"))
        first = registry.get_logger()

        registry.init_logger(config_for(log_dir, level="error"))

        assert registry.get_logger() is first
        assert first.config.level == "debug"

    def test_concurrent_init_publishes_one_instance(self, log_dir) -> None:
        barrier = threading.Barrier(16)
        seen = []

        def worker() -> None:
            barrier.wait()
            registry.init_logger(config_for(log_dir))
            seen.append(registry.get_logger())

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(seen) == 16
        assert all(logger is seen[0] for logger in seen)

    def test_failed_init_publishes_nothing(self, log_dir) -> None:
        with pytest.raises(ConfigurationError):
            registry.init_logger(config_for(log_dir, level="loud"))

        assert not registry.is_initialized()

        registry.init_logger(config_for(log_dir))
        assert registry.is_initialized()

    def test_init_from_yaml(self, tmp_path, log_dir) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "logger:\n"
            "  level: warn\n"
            f"  filename: {log_dir / 'app.log'}\n"
            f"  error_filename: {log_dir / 'error.log'}\n"
            "  console: false\n",
            encoding="utf-8",
        )

        registry.init_logger_from_yaml(config_file)

        assert registry.get_logger().config.level == "warn"

    def test_init_from_missing_yaml(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="config file not found"):
            registry.init_logger_from_yaml(tmp_path / "absent.yaml")
        assert not registry.is_initialized()


class TestFromContext:
    """上下文 logger 测试"""

    def test_context_logger_preferred(self, log_dir, make_logger) -> None:
        registry.init_logger(config_for(log_dir))
        own = make_logger()

        assert registry.from_context(with_logger(None, own)) is own
        assert registry.from_context(attach_fields(None, Field.string("k", "v"))) is registry.get_logger()


class TestShutdown:
    """关闭测试"""

    def test_shutdown_flushes(self, log_dir, read_records) -> None:
        registry.init_logger(config_for(log_dir))
        registry.get_logger().info("before exit")

        registry.shutdown()

        assert [r["msg"] for r in read_records(log_dir / "app.log")] == ["before exit"]
        assert registry.is_initialized()

    def test_shutdown_without_logger(self) -> None:
        registry.shutdown()

    def test_exit_hook_swallows_os_errors(self, monkeypatch) -> None:
        """退出钩子在关闭文件失败时不抛出异常"""

        def failing_shutdown() -> None:
            raise OSError("stale file handle")

        monkeypatch.setattr(registry, "shutdown", failing_shutdown)

        registry._shutdown_at_exit()
