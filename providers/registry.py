"""
Provider registry.

Maps selection names ("claude", "openai") to provider classes so the
orchestrator can build providers from configuration alone.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chat.store import ConversationStore

    from .base import ChatProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry of available provider classes."""

    def __init__(self):
        self._providers: dict[str, type["ChatProvider"]] = {}

    def register(self, provider_cls: type["ChatProvider"]) -> None:
        self._providers[provider_cls.name] = provider_cls
        logger.debug(f"Registered provider: {provider_cls.name}")

    def get(self, name: str) -> type["ChatProvider"] | None:
        return self._providers.get(name)

    def names(self) -> list[str]:
        return list(self._providers)

    def create(
        self,
        name: str,
        api_key: str | None,
        store: "ConversationStore",
        **kwargs,
    ) -> "ChatProvider":
        """
        Instantiate a registered provider.

        Raises:
            KeyError: If no provider is registered under the name
        """
        provider_cls = self._providers.get(name)
        if provider_cls is None:
            raise KeyError(f"Unknown provider: {name}")
        return provider_cls(api_key=api_key, store=store, **kwargs)


# Global registry instance
registry = ProviderRegistry()
