"""
Allowlist Loader

Loads the browsing allowlist from YAML into immutable AllowedDomain
entries. The built-in defaults are used when the file is missing.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from augmentation.allowlist import DEFAULT_ALLOWED_DOMAINS, Allowlist
from augmentation.types import DEFAULT_CACHE_TIME, AllowedDomain, ExtractionProfile

logger = logging.getLogger(__name__)

# Path to the allowlist YAML file
ALLOWLIST_FILE = Path(__file__).parent / "allowlist.yaml"


def load_allowlist_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load the allowlist YAML configuration.

    Returns:
        Dict with a "domains" list, or an empty dict if the file is missing
    """
    path = Path(path) if path else ALLOWLIST_FILE
    if not path.exists():
        logger.warning(f"Allowlist file not found: {path}")
        return {}

    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}

    return config


def parse_domain(entry: dict[str, Any]) -> AllowedDomain:
    """Build one AllowedDomain from a YAML mapping.

    Raises:
        ValueError: If the entry is missing a domain, names an unknown
            profile or has a non-positive request ceiling
    """
    domain = str(entry.get("domain", "")).strip().lower()
    if not domain:
        raise ValueError("Allowlist entry is missing 'domain'")

    profiles = frozenset(
        ExtractionProfile.parse(p) for p in entry.get("profiles", []) or []
    )
    limit = int(entry.get("max_requests_per_minute", 10))
    if limit <= 0:
        raise ValueError(f"max_requests_per_minute must be positive for {domain}")

    return AllowedDomain(
        domain=domain,
        allow_subdomains=bool(entry.get("allow_subdomains", False)),
        extraction_profiles=profiles,
        max_requests_per_minute=limit,
        default_cache_ttl=int(entry.get("cache_ttl", DEFAULT_CACHE_TIME)),
    )


def load_allowlist(path: str | Path | None = None) -> Allowlist:
    """Load the allowlist, falling back to the built-in defaults.

    Args:
        path: YAML file to read (config/allowlist.yaml if None)

    Returns:
        Allowlist of immutable entries
    """
    config = load_allowlist_config(path)
    entries = config.get("domains")
    if not entries:
        logger.info("Using built-in allowlist defaults")
        return Allowlist(DEFAULT_ALLOWED_DOMAINS)

    domains = [parse_domain(entry) for entry in entries]
    logger.info(f"Loaded {len(domains)} allowed domains")
    return Allowlist(domains)
