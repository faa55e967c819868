"""
Logging utilities for the FastAPI application and the refresh scheduler.

Provides a consistent logging format and configuration.
"""

import logging
import sys

_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "apscheduler.scheduler")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def mask_token(token: str | None, visible: int = 10) -> str:
    """Return a log-safe prefix of a bearer credential."""
    if not token:
        return "<none>"
    return f"{token[:visible]}..."


__all__ = ["configure_logging", "mask_token"]
