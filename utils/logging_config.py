"""
Logging setup for the skills-testing scorer.

Console output goes through rich. Files are optional:
    <log_dir>/<log_file>   every record, plain text or JSON lines
    <log_dir>/errors.log   ERROR and above, always JSON lines

Every record carries the current log context (project_id while a project
report is built), which ends up under "extra" in the JSON files.
"""

import json
import logging
import logging.handlers
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler


DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
PLAIN_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-24s | %(message)s'

# attributes every LogRecord has; anything else came from extra= or the context
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {'message', 'asctime'}

_log_context: ContextVar[Dict[str, Any]] = ContextVar('log_context', default={})


# ============================================
# LOG CONTEXT
# ============================================

class LogContext:
    """Fields copied onto every record handled by the configured handlers."""

    @staticmethod
    def set(**fields):
        _log_context.set({**_log_context.get(), **fields})

    @staticmethod
    def get(key: str, default: Any = None) -> Any:
        return _log_context.get().get(key, default)

    @staticmethod
    def fields() -> Dict[str, Any]:
        return dict(_log_context.get())

    @staticmethod
    def clear():
        _log_context.set({})


def attach_context(record: logging.LogRecord) -> bool:
    """Handler filter: copy the log context onto the record, never drop it."""
    for key, value in _log_context.get().items():
        setattr(record, key, value)
    return True


# ============================================
# FORMATTERS
# ============================================

class JsonLinesFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        extra = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES}
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, default=str, ensure_ascii=False)


# ============================================
# SETUP
# ============================================

def _rotating_file_handler(
    path: Path,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(attach_context)
    return handler


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    enable_console: bool = True,
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Replace the root logger's handlers.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Write log_file as JSON lines instead of plain text
        log_file: File name inside log_dir; None disables file logging
        max_bytes: Size at which a log file is rotated
        backup_count: Rotated files to keep
        enable_console: Pretty console output via rich
        log_dir: Folder for log files (default: <repo>/logs)

    Returns:
        The root logger
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if enable_console:
        console = RichHandler(show_path=False, markup=False, rich_tracebacks=False)
        console.addFilter(attach_context)
        root.addHandler(console)

    if log_file:
        directory = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)

        main_formatter = JsonLinesFormatter() if json_logs else logging.Formatter(PLAIN_FORMAT)
        root.addHandler(_rotating_file_handler(
            directory / log_file, logging.DEBUG, main_formatter, max_bytes, backup_count
        ))
        root.addHandler(_rotating_file_handler(
            directory / "errors.log", logging.ERROR, JsonLinesFormatter(), max_bytes, backup_count
        ))

    return root


# ============================================
# DECORATORS
# ============================================

def _elapsed(started: float) -> float:
    return round(time.perf_counter() - started, 3)


def log_execution_time(logger: Optional[logging.Logger] = None):
    """
    Log how long the wrapped call took (DEBUG), or its failure (ERROR).

    Exceptions are re-raised unchanged.

    Usage:
        @log_execution_time()
        def build_leaderboard(...):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            log = logger or logging.getLogger(func.__module__)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(
                    f"{func.__name__} failed: {e}",
                    exc_info=True,
                    extra={"duration_s": _elapsed(started), "error_type": type(e).__name__},
                )
                raise
            log.debug(f"{func.__name__} took {_elapsed(started)}s", extra={"duration_s": _elapsed(started)})
            return result
        return wrapper
    return decorator
