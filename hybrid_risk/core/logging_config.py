"""
Logging configuration for the API process.

One stdout handler on the root logger, in the same line format uvicorn uses, so engine and server
logs interleave cleanly. Client libraries that log every request (httpx, the Gemini SDK's gRPC
transport) are held at WARNING.
"""

import logging
import sys
from typing import Optional

from hybrid_risk.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "google.auth", "grpc")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger; ``level`` overrides ``settings.log_level``."""
    name = (level or settings.log_level).upper()
    log_level = logging.getLevelName(name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
