from __future__ import annotations

import logging

import coloredlogs


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Install colored console logging on the package logger."""

    logger = logging.getLogger("smartzoom")

    # Calling this twice must not duplicate handlers.
    if logger.hasHandlers():
        logger.handlers.clear()

    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    coloredlogs.install(
        level=level,
        logger=logger,
        fmt=LOG_FORMAT,
        level_styles={
            "debug": {"color": "green"},
            "info": {"color": "cyan"},
            "warning": {"color": "yellow"},
            "error": {"color": "red", "bold": True},
            "critical": {"color": "red", "bold": True, "background": "white"},
        },
    )
    return logger
