"""
Config package for the browsing allowlist and provider selection.
"""

from .allowlist_loader import load_allowlist, load_allowlist_config, parse_domain
from .providers import (
    PROVIDER_BOTH,
    PROVIDER_CLAUDE,
    PROVIDER_OPENAI,
    ProviderSettings,
)

__all__ = [
    "load_allowlist",
    "load_allowlist_config",
    "parse_domain",
    "ProviderSettings",
    "PROVIDER_CLAUDE",
    "PROVIDER_OPENAI",
    "PROVIDER_BOTH",
]
