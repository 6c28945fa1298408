"""日志配置单元测试"""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest

from bzlimport.utils.logger import JSONFormatter, reset_logging, setup_logging


@pytest.fixture(autouse=True)
def _clean_root_logger():
    root = logging.getLogger()
    saved_level = root.level
    yield
    reset_logging()
    root.setLevel(saved_level)


class TestSetupLogging:
    def test_repeated_setup_keeps_single_handler(self) -> None:
        setup_logging("DEBUG")
        setup_logging("WARNING")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_unknown_level_defaults_to_info(self) -> None:
        setup_logging("chatty")
        assert logging.getLogger().level == logging.INFO

    def test_json_formatter_selected(self) -> None:
        setup_logging(json_output=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)


class TestJSONFormatter:
    def test_fields(self) -> None:
        record = logging.LogRecord(
            "bzlimport.core.aspect.cache", logging.INFO, "cache.py", 10,
            "ASPECT CACHE HIT target: %s", ("//a:b",), None,
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "bzlimport.core.aspect.cache"
        assert entry["message"] == "ASPECT CACHE HIT target: //a:b"
        assert "exception" not in entry

    def test_exception_and_unicode(self) -> None:
        try:
            raise RuntimeError("坏了")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, "x.py", 1, "失败", (), sys.exc_info())
        text = JSONFormatter().format(record)
        assert "失败" in text
        assert "RuntimeError" in json.loads(text)["exception"]

    def test_context_fields(self) -> None:
        record = logging.LogRecord("x", logging.INFO, "x.py", 1, "m", (), None)
        record.target = "//a:b"
        record.project = "demo"
        record.caller = ""
        entry = json.loads(JSONFormatter().format(record))
        assert entry["target"] == "//a:b"
        assert entry["project"] == "demo"
        assert "caller" not in entry


class TestCacheEventLogs:
    def test_cache_events_carry_target_and_origin(self, manager, fake_bazel, rec) -> None:
        out = io.StringIO()
        setup_logging("INFO", json_output=True, stream=out)
        fake_bazel.add("//a:x", rec("//a:x"))
        manager.resolve(["//a:x"], project="demo", caller="cli")
        manager.resolve(["//a:x"], project="demo", caller="cli")

        entries = [json.loads(line) for line in out.getvalue().splitlines()]
        events = [e for e in entries if e["message"].startswith("ASPECT CACHE")]
        assert [e["message"].split()[2] for e in events] == ["MISS", "LOAD", "HIT"]
        assert all(e["target"] == "//a:x" for e in events)
        assert events[-1]["project"] == "demo"
        assert events[-1]["caller"] == "cli"
        assert events[-1]["message"].endswith("[prj=demo, src=cli]")
