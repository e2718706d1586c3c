"""
Logging infrastructure for lsopt.

Provides structured logging with configurable levels, formatting, and color
support for debugging and monitoring boundary discretisation passes.
"""

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar

import colorlog

_FORMAT = "%(asctime)s - %(name)-20s - %(levelname)-8s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class LsoptFormatter(logging.Formatter):
    """Formatter for lsopt logging with optional colors and source location."""

    def __init__(self, use_colors: bool = False, include_location: bool = False):
        self.use_colors = use_colors
        self.include_location = include_location

        format_str = _FORMAT
        if self.include_location:
            format_str += " [%(filename)s:%(lineno)d]"

        if self.use_colors:
            self.colored_formatter = colorlog.ColoredFormatter(
                "%(log_color)s" + format_str,
                datefmt=_DATEFMT,
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )

        super().__init__(format_str, datefmt=_DATEFMT)

    def format(self, record):
        if self.use_colors:
            return self.colored_formatter.format(record)
        return super().format(record)


class LsoptLogger:
    """
    Central logging manager for lsopt with configuration management.

    Loggers are created lazily and cached; configuration changes are applied
    to every cached logger. Creation uses double-check locking so concurrent
    get_logger() calls never attach duplicate handlers.
    """

    _instance = None
    _lock: ClassVar[threading.Lock] = threading.Lock()
    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _log_level = logging.INFO
    _log_to_file = False
    _log_file_path: Path | None = None
    _use_colors = True
    _include_location = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def configure(
        cls,
        level: str | int = "INFO",
        log_to_file: bool = False,
        log_file_path: str | Path | None = None,
        use_colors: bool = True,
        include_location: bool = False,
    ):
        """
        Configure global logging settings for lsopt.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_to_file: Whether to log to file
            log_file_path: Path to log file (optional)
            use_colors: Use colored terminal output
            include_location: Include file location in log messages
        """
        with cls._lock:
            if isinstance(level, str):
                cls._log_level = getattr(logging, level.upper())
            else:
                cls._log_level = level

            cls._log_to_file = log_to_file
            cls._use_colors = use_colors
            cls._include_location = include_location

            if log_to_file:
                if log_file_path is None:
                    log_dir = Path.cwd() / "logs"
                    log_dir.mkdir(exist_ok=True)
                    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                    cls._log_file_path = log_dir / f"lsopt_{timestamp}.log"
                else:
                    cls._log_file_path = Path(log_file_path)
                    cls._log_file_path.parent.mkdir(parents=True, exist_ok=True)
            else:
                cls._log_file_path = None

            for logger in cls._loggers.values():
                cls._setup_logger(logger)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get or create a logger for the specified module/component.

        Args:
            name: Logger name (typically __name__ from calling module)

        Returns:
            Configured logger instance
        """
        if name in cls._loggers:
            return cls._loggers[name]

        with cls._lock:
            if name not in cls._loggers:
                logger = logging.getLogger(name)

                # Loggers configured elsewhere keep their handlers
                if not logger.handlers:
                    cls._setup_logger(logger)

                cls._loggers[name] = logger

        return cls._loggers[name]

    @classmethod
    def _setup_logger(cls, logger: logging.Logger):
        """Configure individual logger with current settings."""
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()
        logger.setLevel(cls._log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(LsoptFormatter(use_colors=cls._use_colors, include_location=cls._include_location))
        console_handler.setLevel(cls._log_level)
        logger.addHandler(console_handler)

        if cls._log_to_file and cls._log_file_path:
            file_handler = logging.FileHandler(cls._log_file_path)
            # File logs never carry color codes
            file_handler.setFormatter(LsoptFormatter(use_colors=False, include_location=cls._include_location))
            file_handler.setLevel(cls._log_level)
            logger.addHandler(file_handler)

        logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger for the current module.

    Args:
        name: Logger name (if None, uses calling module name)

    Returns:
        Configured logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "lsopt")
        else:
            name = "lsopt"

    return LsoptLogger.get_logger(name)


def configure_logging(**kwargs):
    """
    Configure global logging settings.

    Keyword Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to file
        log_file_path: Path to log file
        use_colors: Use colored terminal output
        include_location: Include file location in messages
    """
    LsoptLogger.configure(**kwargs)


def configure_from_config(logging_config) -> None:
    """Apply a ``LoggingConfig`` model to the global logging settings."""
    configure_logging(
        level=logging_config.level,
        log_to_file=logging_config.log_to_file,
        log_file_path=logging_config.log_file_path,
        use_colors=logging_config.use_colors,
        include_location=logging_config.include_location,
    )


def log_discretisation_summary(logger: logging.Logger, summary: dict[str, Any], target: bool = False):
    """Log the outcome of one discretisation pass."""
    field_name = "target" if target else "primary"
    logger.info(
        f"Discretised {field_name} field: {summary['n_points']} points, "
        f"{summary['n_segments']} segments, length {summary['length']:.6g}"
    )
    details = {k: v for k, v in summary.items() if k not in ("n_points", "n_segments", "length")}
    if details:
        logger.debug(f"Boundary details: {details}")


def log_topology_anomaly(logger: logging.Logger, point: int, n_segments: int, coord: Any | None = None):
    """Log a non-manifold boundary point before the error is raised."""
    msg = f"Non-manifold boundary point {point}: {n_segments} incident segments"
    if coord is not None:
        msg += f" at ({float(coord[0]):.6g}, {float(coord[1]):.6g})"
    logger.error(msg)


def log_validation_error(logger: logging.Logger, component: str, error_msg: str, suggestion: str | None = None):
    """Log validation errors with optional suggestions."""
    logger.error(f"Validation error in {component}: {error_msg}")
    if suggestion:
        logger.info(f"Suggestion: {suggestion}")
