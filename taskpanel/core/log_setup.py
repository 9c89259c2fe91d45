import os
import logging
from logging.handlers import RotatingFileHandler
from typing import List, Optional
import structlog
from structlog.stdlib import ProcessorFormatter, BoundLogger, add_logger_name
from structlog.processors import (
    JSONRenderer,
    TimeStamper,
    add_log_level,
    StackInfoRenderer,
    format_exc_info,
)
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer

APP_DIR = "taskpanel"
MAX_LOG_BYTES = 1024 * 1024
LOG_BACKUPS = 2


def default_log_file() -> str:
    state_home = os.environ.get("XDG_STATE_HOME") or os.path.expanduser(
        "~/.local/state"
    )
    return os.path.join(state_home, APP_DIR, "taskpanel.log")


class RepeatFilter(logging.Filter):
    """
    Collapses bursts of identical debug records, such as the restack and
    hover messages emitted for every pointer crossing. Records above DEBUG
    always pass and reset the burst.
    """

    def __init__(self, max_repeats: int = 3):
        super().__init__()
        self.max_repeats = max_repeats
        self._last_message: Optional[str] = None
        self._repeats = 0

    def filter(self, record):
        message = record.getMessage()
        if record.levelno > logging.DEBUG:
            self._last_message = None
            return True
        if message != self._last_message:
            self._last_message = message
            self._repeats = 0
            return True
        self._repeats += 1
        return self._repeats < self.max_repeats


def _shared_processors() -> List:
    return [
        add_log_level,
        TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        StackInfoRenderer(),
        format_exc_info,
    ]


def _file_handler(log_file: str, level: int) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file), exist_ok=True)
    handler = RotatingFileHandler(
        log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=_shared_processors() + [add_logger_name],
            processor=JSONRenderer(),
        )
    )
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        rich_tracebacks=True, markup=True, show_path=False, show_time=False
    )
    handler.setLevel(level)
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processor=ConsoleRenderer(colors=False),
            fmt="%(message)s",
        )
    )
    return handler


def setup_logging(
    level: int = logging.DEBUG, log_file: Optional[str] = None
) -> BoundLogger:
    """
    Routes structlog through the root stdlib logger: JSON lines into a
    rotating file under ``$XDG_STATE_HOME/taskpanel`` and a rich console.
    Args:
        level: Level for both handlers.
        log_file: Overrides the log file location.
    """
    structlog.configure(
        processors=_shared_processors()
        + [add_logger_name, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    root = logging.getLogger()
    root.setLevel(level)
    root.propagate = False
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    repeat_filter = RepeatFilter()
    for handler in (
        _file_handler(log_file or default_log_file(), level),
        _console_handler(level),
    ):
        handler.addFilter(repeat_filter)
        root.addHandler(handler)
    return structlog.get_logger()
