"""
Engine logging setup:
  - stderr: short colored lines at the configured level
  - logs/engine_YYYYMMDD_HHMMSS.log: everything at DEBUG, for post-run review
  - optional ndjson file: one JSON object per record, with any `cycle` /
    `trade_id` attached via `extra=` carried as fields
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone

DEFAULT_LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs")

# LogRecord attributes promoted into the JSON line when present
_EXTRA_FIELDS = ("cycle", "trade_id", "instrument_id")

_NOISY_LOGGERS = ("httpx", "httpcore")

_ANSI = {
    "reset": "\033[0m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
}

# levelname -> (color key, 3-letter tag)
_TAGS = {
    "DEBUG": ("dim", "DBG"),
    "INFO": ("cyan", "INF"),
    "WARNING": ("yellow", "WRN"),
    "ERROR": ("red", "ERR"),
    "CRITICAL": ("red", "CRT"),
}


class ConsoleFormatter(logging.Formatter):
    """`HH:MM:SS TAG message`, colored when stderr is a terminal."""

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.colored = use_color and stderr_is_tty()

    def _paint(self, key: str, text: str) -> str:
        if not self.colored:
            return text
        return f"{_ANSI[key]}{text}{_ANSI['reset']}"

    def format(self, record: logging.LogRecord) -> str:
        color, tag = _TAGS.get(record.levelname, ("reset", record.levelname[:3]))
        clock = time.strftime("%H:%M:%S", time.localtime(record.created))
        parts = [self._paint("dim", clock), self._paint(color, tag), record.getMessage()]
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n     " + self._paint("red", repr(record.exc_info[1]))
        return line


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name))
            for name in _EXTRA_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = repr(record.exc_info[1])
        return json.dumps(payload, separators=(",", ":"), default=str)


def _debug_file_handler(log_dir: str) -> tuple[logging.Handler, str]:
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    path = os.path.join(log_dir, f"engine_{stamp}.log")
    handler = logging.FileHandler(path, mode="a")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    return handler, path


def setup_logging(
    level: str = "INFO",
    json_log_file: str | None = None,
    log_dir: str | None = DEFAULT_LOG_DIR,
) -> str | None:
    """
    Reconfigure the root logger (existing handlers are removed and closed).
    Returns the debug log path, or None when log_dir is None.
    """
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    # handlers filter by level; the root passes everything through
    root.setLevel(logging.DEBUG)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.getLevelName(level.upper()) if level.upper() in _TAGS else logging.INFO)
    stderr_handler.setFormatter(ConsoleFormatter())
    handlers: list[logging.Handler] = [stderr_handler]

    log_path = None
    if log_dir is not None:
        debug_handler, log_path = _debug_file_handler(log_dir)
        handlers.append(debug_handler)

    if json_log_file:
        json_handler = logging.FileHandler(json_log_file, mode="a")
        json_handler.setFormatter(JSONFormatter())
        handlers.append(json_handler)

    for handler in handlers:
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_path


def stderr_is_tty() -> bool:
    """NO_COLOR disables and FORCE_COLOR enables, ahead of the tty check."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return bool(getattr(sys.stderr, "isatty", None) and sys.stderr.isatty())
