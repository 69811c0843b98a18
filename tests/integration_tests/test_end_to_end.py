"""
端到端集成测试

通过进程级入口初始化 logger，验证写入文件的记录内容，
以及多线程并发写入时每一行都是完整的 JSON。
"""

from __future__ import annotations

import threading

import orjson

import teelog
from teelog import field


class TestEndToEnd:
    """进程级 logger 端到端测试"""

    def test_single_record(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        teelog.init_logger({"level": "debug", "filename": "tmp/app.log", "console": False})

        teelog.get_logger().info("hello", field("k", "v"))
        teelog.get_logger().sync()

        lines = (tmp_path / "tmp" / "app.log").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        record = orjson.loads(lines[0])
        assert record["level"] == "info"
        assert record["msg"] == "hello"
        assert record["k"] == "v"
        assert record["time"]
        # error file falls back to its default location
        assert (tmp_path / "logs" / "error.log").read_text(encoding="utf-8") == ""

    def test_concurrent_writers(self, tmp_path) -> None:
        teelog.init_logger(
            {
                "filename": str(tmp_path / "app.log"),
                "error_filename": str(tmp_path / "error.log"),
                "console": False,
                "disable_caller": True,
            }
        )
        threads_count, per_thread = 100, 1000

        def worker(n: int) -> None:
            logger = teelog.get_logger().with_field("worker", n)
            for i in range(per_thread):
                logger.info("tick", teelog.Field.int("seq", i))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        teelog.get_logger().sync()

        counts = [0] * threads_count
        with open(tmp_path / "app.log", "rb") as fh:
            for line in fh:
                record = orjson.loads(line)
                assert record["msg"] == "tick"
                counts[record["worker"]] += 1

        assert counts == [per_thread] * threads_count
