"""
Conversation persistence for Support Relay.

Provides the message model, metadata extraction and the size-bounded,
expiring Conversation Store.
"""

from .metadata import summarize_metadata, update_metadata
from .models import ContextMetadata, ConversationContext, Message
from .storage import ContextStorage, MemoryStorage, SettingsStorage
from .store import (
    CONTEXT_EXPIRY,
    MAX_CONTEXT_SIZE,
    STORAGE_KEY,
    ConversationStore,
    trim_messages,
)

__all__ = [
    "Message",
    "ContextMetadata",
    "ConversationContext",
    "ContextStorage",
    "MemoryStorage",
    "SettingsStorage",
    "ConversationStore",
    "trim_messages",
    "update_metadata",
    "summarize_metadata",
    "MAX_CONTEXT_SIZE",
    "CONTEXT_EXPIRY",
    "STORAGE_KEY",
]
