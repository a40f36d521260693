"""Loguru sink setup for the CLI. Library code only ever calls ``logger``."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> | <level>{message}</level>"
)


def configure_logging(verbose: bool = False) -> None:
    logger.remove()  # drop the default handler
    logger.add(sys.stderr, format=LOG_FORMAT, level="DEBUG" if verbose else "WARNING")
