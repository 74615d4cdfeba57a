"""
Prompt Library - support persona and context suffixing.

Usage:
    from prompts import get_system_prompt

    system = get_system_prompt("Customer has expressed interest in: laptop.")
"""

import logging
from typing import Optional

from prompts.loader import PromptLibrary

logger = logging.getLogger(__name__)

# Global singleton
_library: "PromptLibrary | None" = None


def get_library() -> PromptLibrary:
    """Get the global PromptLibrary instance."""
    global _library
    if _library is None:
        _library = PromptLibrary()
    return _library


def reload_library() -> None:
    """Force reload of all prompt configs."""
    global _library
    _library = None
    logger.info("Prompt library will reload on next access")


def get_system_prompt(context_summary: Optional[str] = None) -> str:
    """
    Support persona, suffixed with the conversation summary when there is one.

    Args:
        context_summary: Output of ConversationStore.summarize()

    Returns:
        System instruction for the provider request
    """
    return get_library().render(
        "support", "system_template", context_summary=context_summary or ""
    )


__all__ = ["PromptLibrary", "get_library", "get_system_prompt", "reload_library"]
