"""Logging configuration: console output plus a bounded in-memory log buffer."""

from __future__ import annotations

import logging
import os
import sys
from collections import deque
from dataclasses import dataclass

TRACE = 5
OFF = logging.CRITICAL + 10
CPU_LOGGER = "ohboi.cpu"
BUFFER_LIMIT = 1000
FORMAT = "[%(levelname)s] [%(name)s] %(message)s"

logging.addLevelName(TRACE, "TRACE")

_LEVELS = {0: OFF, 1: logging.WARNING, 2: logging.INFO, 3: logging.DEBUG}
_COLORS = {
    logging.ERROR: "\x1b[31m",
    logging.WARNING: "\x1b[33m",
    logging.INFO: "\x1b[36m",
    logging.DEBUG: "\x1b[32m",
    TRACE: "\x1b[35m",
}
_RESET = "\x1b[0m"


@dataclass(frozen=True)
class LogLine:
    """A logged message and its level."""

    text: str
    level: int


class BufferHandler(logging.Handler):
    """Appends messages to a deque, dropping the oldest once it grows past the limit."""

    def __init__(self, buffer: deque[LogLine]) -> None:
        super().__init__()
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        if len(self.buffer) > BUFFER_LIMIT:
            self.buffer.popleft()
        self.buffer.append(LogLine(record.getMessage(), record.levelno))


class _ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = _COLORS.get(record.levelno)
        level = f"{color}{record.levelname}{_RESET}" if color else record.levelname
        return f"[{level}] [{record.name}] {record.getMessage()}"


class _ConsoleHandler(logging.StreamHandler):
    pass


def _level(verbosity: int) -> int:
    return _LEVELS.get(verbosity, TRACE)


def setup_logger(verbosity: int, cpu_verbosity: int, log_buffer: deque[LogLine]) -> None:
    """Configure the root logger to print to stdout and record into ``log_buffer``."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, (_ConsoleHandler, BufferHandler)):
            root.removeHandler(handler)
    root.setLevel(_level(verbosity))
    logging.getLogger(CPU_LOGGER).setLevel(_level(cpu_verbosity))

    console = _ConsoleHandler(sys.stdout)
    console.setFormatter(_ColorFormatter() if os.name == "posix" else logging.Formatter(FORMAT))
    root.addHandler(console)
    root.addHandler(BufferHandler(log_buffer))