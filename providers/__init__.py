"""
Chat providers package.

This module registers the available providers with the global registry.
"""

from .anthropic_provider import AnthropicProvider
from .base import ChatProvider, ProviderResult, get_api_key
from .openai_provider import OpenAIProvider
from .registry import ProviderRegistry, registry

registry.register(AnthropicProvider)
registry.register(OpenAIProvider)

__all__ = [
    "registry",
    "ProviderRegistry",
    "ChatProvider",
    "ProviderResult",
    "get_api_key",
    "AnthropicProvider",
    "OpenAIProvider",
]
