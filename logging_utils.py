"""Logging setup shared by the API entry points."""

import logging

from config import LoggingConfig, config


def setup_logging(settings: LoggingConfig | None = None) -> None:
    """Configure the root logger. Call once at program start."""
    settings = settings or config.logging
    level = logging.DEBUG if config.debug else getattr(logging, settings.level, logging.INFO)
    logging.basicConfig(level=level, format=settings.format, datefmt=settings.datefmt)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
