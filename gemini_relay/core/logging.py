"""
Core logging utilities.
"""

import logging
import uuid
from typing import Union

import httpx

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
HANDLER_NAME = "gemini_relay"


def generate_request_id() -> str:
    """
    Generate a unique request ID (UUID v4).

    Returns:
        UUID string
    """
    return str(uuid.uuid4())


def redact_url(url: Union[str, httpx.URL]) -> str:
    """
    Mask the ``key`` query parameter so API keys never reach the logs.

    Args:
        url: Outbound request URL

    Returns:
        URL string safe to log
    """
    parsed = httpx.URL(str(url))
    if "key" not in parsed.params:
        return str(parsed)
    return str(parsed.copy_set_param("key", "REDACTED"))


def configure_logging(level: str = "info") -> None:
    """
    Install a single stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
