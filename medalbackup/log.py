# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
structlog setup for the command line tool.

Library modules only call ``structlog.get_logger()``; the CLI decides where
events go. Diagnostic events are written to stderr so they never mix with
the progress lines on stdout.
"""

import logging
import sys

import structlog


def _stderr_logger_factory(*args) -> structlog.PrintLogger:
    # Look up sys.stderr on every call so redirected streams are honoured
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: str = "ERROR") -> None:
    """
    Configure structlog for interactive use.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )
