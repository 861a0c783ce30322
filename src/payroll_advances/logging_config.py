"""Logging setup for the API and CLI entry points."""

from __future__ import annotations

import logging
import sys

from payroll_advances.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install a stream handler on the package logger.

    Safe to call more than once; only the level is updated on later calls.
    """
    global _configured
    level = (level or get_settings().log_level).upper()

    package_logger = logging.getLogger("payroll_advances")
    package_logger.setLevel(level)

    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    _configured = True
