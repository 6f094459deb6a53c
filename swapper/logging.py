"""structlog setup for the API process and scripts."""

from __future__ import annotations

import logging

import structlog


def configure_logging(debug: bool = False, json: bool = False) -> None:
    """Configure structlog processors.

    Args:
        debug: Emit debug events (route selection, rejected paths)
        json: Render JSON lines instead of the console format
    """
    log_level = logging.DEBUG if debug else logging.INFO
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )


__all__ = ["configure_logging"]
