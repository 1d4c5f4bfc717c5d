"""Logging initialization helpers."""

from __future__ import annotations

import logging

from .config import Settings

PACKAGE_LOGGER = "video_transcript_summary"


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the package logger from ``settings``.

    Only the ``video_transcript_summary`` logger and its children are touched;
    uvicorn keeps its own handlers.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    if getattr(logger, "_vts_configured", False):
        return logger

    level = getattr(logging, str(settings.log_level or "INFO").upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=settings.log_format))

    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
    setattr(logger, "_vts_configured", True)
    return logger
