"""
Tests for monitor/logger.py -- structured logging.
"""

import json
import logging
import os
import sys

import pytest

from monitor.logger import ConsoleFormatter, JSONFormatter, setup_logging


def _record(msg="Hello %s", args=("world",), level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="pipeline.cycle", level=level, pathname="cycle.py",
        lineno=1, msg=msg, args=args, exc_info=exc_info,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


class TestJSONFormatter:
    def test_basic_message(self):
        parsed = json.loads(JSONFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "pipeline.cycle"
        assert parsed["msg"] == "Hello world"
        assert "ts" in parsed

    def test_extra_fields(self):
        record = _record()
        record.cycle = 7
        record.trade_id = "trade_3"
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["cycle"] == 7
        assert parsed["trade_id"] == "trade_3"
        assert "instrument_id" not in parsed

    def test_exception(self):
        try:
            raise ValueError("bad quote")
        except ValueError:
            record = _record(msg="failed", args=(), level=logging.ERROR, exc_info=sys.exc_info())
        parsed = json.loads(JSONFormatter().format(record))
        assert "bad quote" in parsed["exception"]


class TestConsoleFormatter:
    def test_plain_output(self):
        line = ConsoleFormatter(use_color=False).format(_record(level=logging.WARNING))
        assert line.endswith("WRN Hello world")


class TestSetupLogging:
    def test_writes_debug_file(self, tmp_path, restore_root_logger):
        path = setup_logging("WARNING", log_dir=str(tmp_path))
        logging.getLogger("pipeline.cycle").debug("debug line")
        for h in logging.getLogger().handlers:
            h.flush()
        assert path is not None and os.path.exists(path)
        with open(path) as f:
            assert "debug line" in f.read()

    def test_json_file(self, tmp_path, restore_root_logger):
        json_path = tmp_path / "engine.ndjson"
        setup_logging("INFO", json_log_file=str(json_path), log_dir=None)
        logging.getLogger("pipeline.cycle").info("cycle done", extra={"cycle": 2})
        for h in logging.getLogger().handlers:
            h.flush()
        lines = json_path.read_text().strip().splitlines()
        entry = json.loads(lines[-1])
        assert entry["msg"] == "cycle done"
        assert entry["cycle"] == 2

    def test_no_log_dir(self, restore_root_logger):
        assert setup_logging("INFO", log_dir=None) is None
