"""Logging utilities for capclust.

A thin layer over :mod:`logging` with four verbosity levels, coloured console
output and a tqdm-backed progress tracker.
"""

import logging
import os
from enum import Enum

from tqdm import tqdm


class LogLevel(Enum):
    """Verbosity levels understood by :class:`CapclustLogger`."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class Colors:
    """ANSI colour codes for terminal output."""

    GRAY = "\033[90m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


class Symbols:
    """Unicode symbols for logging."""

    CHECK = "✓"
    CROSS = "✗"
    GEAR = "⚙"
    WARNING = "⚠"
    ROCKET = "🚀"


_LEVEL_TO_LOGGING = {
    LogLevel.QUIET: logging.ERROR,
    LogLevel.NORMAL: logging.INFO,
    LogLevel.VERBOSE: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


class SimpleFormatter(logging.Formatter):
    """Formatter that colours the whole message according to its level."""

    COLORS = {
        "DEBUG": Colors.GRAY,
        "INFO": Colors.CYAN,
        "WARNING": Colors.YELLOW,
        "ERROR": Colors.RED,
        "CRITICAL": Colors.RED + Colors.BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        return f"{color}{record.getMessage()}{Colors.RESET}"


class CapclustLogger:
    """Process-wide logger registry with a shared verbosity level."""

    _current_level: LogLevel = LogLevel.NORMAL
    _loggers: dict[str, logging.Logger] = {}

    @classmethod
    def set_level(cls, level: LogLevel) -> None:
        cls._current_level = level
        for logger in cls._loggers.values():
            cls._configure_logger_level(logger, level)

    @classmethod
    def get_level(cls) -> LogLevel:
        return cls._current_level

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Return (and cache) the named logger configured for the current level."""
        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)
        logger = cls._loggers[name]
        cls._configure_logger_level(logger, cls._current_level)
        return logger

    @classmethod
    def _configure_logger_level(cls, logger: logging.Logger, level: LogLevel) -> None:
        # Worker processes inherit the effective level through the environment
        env_level = os.getenv("CAPCLUST_EFFECTIVE_LOG_LEVEL")
        if env_level is not None:
            try:
                level = LogLevel[env_level.upper()]
            except KeyError:
                pass
        logger.setLevel(_LEVEL_TO_LOGGING.get(level, logging.INFO))

    @classmethod
    def progress(cls, message: str, symbol: str = Symbols.GEAR) -> None:
        if cls._current_level.value >= LogLevel.NORMAL.value:
            cls.get_logger("capclust.progress").info(f"{symbol} {message}")

    @classmethod
    def success(cls, message: str, symbol: str = Symbols.CHECK) -> None:
        if cls._current_level.value >= LogLevel.NORMAL.value:
            cls.get_logger("capclust.success").info(
                f"{Colors.GREEN}{symbol} {message}{Colors.RESET}"
            )

    @classmethod
    def detail(cls, message: str, prefix: str = "  ") -> None:
        if cls._current_level.value >= LogLevel.VERBOSE.value:
            cls.get_logger("capclust.detail").info(f"{prefix} {message}")

    @classmethod
    def debug(cls, message: str, logger_name: str = "capclust.debug") -> None:
        if cls._current_level.value >= LogLevel.DEBUG.value:
            cls.get_logger(logger_name).debug(message)

    @classmethod
    def warning(cls, message: str, symbol: str = Symbols.WARNING) -> None:
        if cls._current_level.value >= LogLevel.NORMAL.value:
            cls.get_logger("capclust.warning").warning(f"{symbol} {message}")

    @classmethod
    def error(cls, message: str, symbol: str = Symbols.CROSS) -> None:
        cls.get_logger("capclust.error").error(f"{symbol} {message}")


def suppress_third_party_logs() -> None:
    """Keep chatty dependencies at WARNING."""
    for name in ("pulp", "joblib"):
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(level: LogLevel | None = None) -> None:
    """Configure the root handler and the shared capclust level.

    ``CAPCLUST_LOG_LEVEL`` (quiet/normal/verbose/debug) is used when no level is
    passed explicitly.
    """
    if level is None:
        env_level = os.getenv("CAPCLUST_LOG_LEVEL", "normal").upper()
        level = LogLevel.__members__.get(env_level, LogLevel.NORMAL)

    CapclustLogger.set_level(level)
    os.environ["CAPCLUST_EFFECTIVE_LOG_LEVEL"] = level.name

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(SimpleFormatter())
    if level == LogLevel.QUIET:
        handler.setLevel(logging.ERROR)
    elif level == LogLevel.DEBUG:
        handler.setLevel(logging.DEBUG)
    else:
        handler.setLevel(logging.INFO)
    root.addHandler(handler)
    root.setLevel(handler.level)

    suppress_third_party_logs()


class ProgressTracker:
    """tqdm progress bar over a known number of steps.

    No bar is created in QUIET mode; ``advance`` and ``close`` are then no-ops.
    """

    def __init__(self, steps: list[str] | int, desc: str = "Progress", width: int = 30):
        self.total = steps if isinstance(steps, int) else len(steps)
        self.show_progress = CapclustLogger.get_level() != LogLevel.QUIET
        self.pbar = None
        if self.show_progress:
            self.pbar = tqdm(
                total=self.total,
                desc=desc,
                bar_format=f"{{desc}} |{{bar:{width}}}| {{n_fmt}}/{{total_fmt}}",
                ascii=" #",
            )

    def advance(self, message: str | None = None, status: str = "success") -> None:
        if self.pbar is None:
            return
        if message:
            symbol = {
                "success": Symbols.CHECK,
                "warning": Symbols.WARNING,
                "error": Symbols.CROSS,
            }.get(status, Symbols.CHECK)
            self.pbar.write(f"{symbol} {message}")
        self.pbar.update(1)

    def close(self, message: str | None = None) -> None:
        if self.pbar is None:
            return
        self.pbar.write(f"{Colors.GREEN}{Symbols.CHECK} {message or 'All steps completed'}{Colors.RESET}")
        self.pbar.close()


def write_step(message: str) -> None:
    """Print a console line, above any active tqdm bar. Nothing in QUIET mode."""
    if CapclustLogger.get_level() == LogLevel.QUIET:
        return
    tqdm.write(message)


def log_progress(message: str, symbol: str = Symbols.GEAR) -> None:
    CapclustLogger.progress(message, symbol)


def log_success(message: str, symbol: str = Symbols.CHECK) -> None:
    CapclustLogger.success(message, symbol)


def log_detail(message: str, prefix: str = "  ") -> None:
    CapclustLogger.detail(message, prefix)


def log_debug(message: str, logger_name: str = "capclust.debug") -> None:
    CapclustLogger.debug(message, logger_name)


def log_warning(message: str, symbol: str = Symbols.WARNING) -> None:
    CapclustLogger.warning(message, symbol)


def log_error(message: str, symbol: str = Symbols.CROSS) -> None:
    CapclustLogger.error(message, symbol)
