"""
Logging utilities for lsopt.

Usage:
    >>> from lsopt.utils.lsopt_logging import get_logger, configure_logging
    >>> logger = get_logger(__name__)
    >>> configure_logging(level="DEBUG")
    >>> logger.info("Discretising boundary...")
"""

from __future__ import annotations

from .logger import (
    LsoptFormatter,
    LsoptLogger,
    configure_from_config,
    configure_logging,
    get_logger,
    log_discretisation_summary,
    log_topology_anomaly,
    log_validation_error,
)

__all__ = [
    # Core logging
    "configure_logging",
    "configure_from_config",
    "get_logger",
    # Structured logging helpers
    "log_discretisation_summary",
    "log_topology_anomaly",
    "log_validation_error",
    # Classes
    "LsoptFormatter",
    "LsoptLogger",
]
