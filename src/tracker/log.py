from __future__ import annotations

import logging
import sys
from typing import Dict, Mapping


TOKEN_HEADER = "X-TrackerToken"
REDACTED = "***REDACTED***"

_SENSITIVE_HEADERS = {TOKEN_HEADER.lower(), "authorization"}


def configure_logging(level: str = "WARNING") -> None:
    """Send log records to stdout with a simple line format."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # Avoid duplicate output when called more than once
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return {
        k: (REDACTED if k.lower() in _SENSITIVE_HEADERS else v) for k, v in headers.items()
    }


__all__ = ["configure_logging", "redact_headers", "TOKEN_HEADER"]
