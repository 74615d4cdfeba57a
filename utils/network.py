"""Connectivity check used to short-circuit turns while the host is offline."""

import logging
import os
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_CHECK_URL = "https://www.gstatic.com/generate_204"
CHECK_TIMEOUT = 3.0  # seconds


def connectivity_check_url() -> str:
    """URL the check sends a HEAD to; ``CONNECTIVITY_CHECK_URL`` overrides it."""
    return os.environ.get("CONNECTIVITY_CHECK_URL") or DEFAULT_CHECK_URL


def is_online(url: Optional[str] = None, timeout: float = CHECK_TIMEOUT) -> bool:
    """Check whether the network is reachable."""
    url = url or connectivity_check_url()
    try:
        httpx.head(url, timeout=timeout)
        return True
    except httpx.HTTPError as e:
        logger.debug(f"Connectivity check to {url} failed: {e}")
        return False
