"""Logging utilities for Stillsite."""

import logging
import sys
from datetime import datetime
from typing import Optional

import config


def setup_logger(name: str = config.SLUG) -> logging.Logger:
    """
    Set up and return a logger instance.

    Args:
        name: Logger name

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if config.FLASK_DEBUG else logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if config.FLASK_DEBUG else logging.INFO)
    console_format = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S"
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler
    log_file = config.LOGS_DIR / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_format = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    return logger


# Default logger
logger = setup_logger()


def log_fetch(
    url: str,
    status_code: Optional[int],
    file_path: Optional[str] = None,
    error: Optional[str] = None,
):
    """Log a page fetch attempt."""
    status = "✓" if status_code == 200 and not error else "✗"
    msg = f"{status} [{status_code if status_code is not None else '---'}] {url}"
    if file_path:
        msg += f" -> {file_path}"
    if error:
        msg += f" - {error}"

    if error or status_code is None:
        logger.warning(msg)
    else:
        logger.info(msg)


def log_transition(from_state: str, event: str, to_state: str):
    """Log an archive state transition."""
    logger.debug(f"Archive state: {from_state} --{event}--> {to_state}")


def log_job_start(archive_name: str, page_count: int):
    """Log archive job start."""
    logger.info(f"Archive started: {archive_name} - {page_count} seed URLs")


def log_job_complete(archive_name: str, fetched: int, total: int, duration_s: float):
    """Log archive job completion."""
    logger.info(
        f"Archive completed: {archive_name} - "
        f"{fetched}/{total} pages fetched, {duration_s:.1f}s"
    )
