"""Build-log configuration for the command line."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_build_logging(*, verbose: bool = False) -> None:
    """Route package logs to stderr, replacing handlers installed by a previous call."""
    package_logger = logging.getLogger("levo_ci_runner")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    package_logger.addHandler(console_handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
