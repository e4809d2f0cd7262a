"""
Logging & audit utilities

Purpose: configure process-wide logging once and write a single audit line
per gateway exchange.

Input: operation tag, HTTP status and elapsed time of each request.

Output: log records on the root handler (stderr by default).

Example: "[Audit] op=medicine status=200 elapsed_ms=812"
"""
import logging

import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_audit_logger = logging.getLogger("audit")


def configure_logging(level: str = None) -> None:
    logging.basicConfig(level=(level or config.LOG_LEVEL).upper(), format=LOG_FORMAT)


def log_exchange(op: str, status: int, elapsed: float) -> None:
    """Record one request/response exchange. `elapsed` is in seconds."""
    level = logging.INFO if status < 500 else logging.WARNING
    _audit_logger.log(level, "[Audit] op=%s status=%s elapsed_ms=%d", op or "-", status, elapsed * 1000)


def mask(value: str, keep: int = 3) -> str:
    """Hide everything but the first few characters of a secret or address."""
    if not value:
        return ""
    return value[:keep] + "***"
