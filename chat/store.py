"""
Conversation Store.

The single source of truth for the conversation. Every append re-applies
the size bound, re-derives metadata and persists the whole record; every
read enforces the time-to-live.
"""

import json
import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .metadata import summarize_metadata, update_metadata
from .models import ContextMetadata, ConversationContext, Message
from .storage import ContextStorage, MemoryStorage

logger = logging.getLogger(__name__)

MAX_CONTEXT_SIZE = 20  # Maximum number of messages to keep
CONTEXT_EXPIRY = timedelta(hours=24)
STORAGE_KEY = "chat_context"

# Smallest step used to keep lastUpdated strictly increasing
_TICK = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def trim_messages(messages: list[Message], max_size: int) -> list[Message]:
    """
    Enforce the size bound.

    System messages are kept and the most recent non-system messages fill the
    remaining budget. Relative order is preserved. If system messages alone
    exceed the bound, only the most recent ``max_size`` of them survive.
    """
    if len(messages) <= max_size:
        return list(messages)

    system_idx = [i for i, m in enumerate(messages) if m.role == "system"]
    other_idx = [i for i, m in enumerate(messages) if m.role != "system"]

    if len(system_idx) >= max_size:
        keep = set(system_idx[-max_size:]) if max_size > 0 else set()
    else:
        budget = max_size - len(system_idx)
        keep = set(system_idx) | set(other_idx[-budget:])

    return [m for i, m in enumerate(messages) if i in keep]


class ConversationStore:
    """
    Size-bounded, expiring conversation history.

    Usage:
        store = ConversationStore(MemoryStorage())
        store.append(Message(role="user", content="Hi"))
        context = store.read()
    """

    def __init__(
        self,
        storage: ContextStorage | None = None,
        max_messages: int = MAX_CONTEXT_SIZE,
        ttl: timedelta = CONTEXT_EXPIRY,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.max_messages = max_messages
        self.ttl = ttl
        self.key = key
        self._clock = clock
        self._lock = threading.RLock()

    def read(self) -> Optional[ConversationContext]:
        """Return the live context, or None if absent, unreadable or expired."""
        with self._lock:
            raw = self.storage.load(self.key)
            if not raw:
                return None

            try:
                context = ConversationContext.from_dict(json.loads(raw))
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Discarding unreadable conversation record: {e}")
                self.storage.delete(self.key)
                return None

            if self._clock() - context.last_updated > self.ttl:
                logger.info("Conversation context expired, clearing")
                self.storage.delete(self.key)
                return None

            return context

    def append(self, message: Message) -> ConversationContext:
        """Append a message, trim, update metadata and persist."""
        with self._lock:
            now = self._clock()
            context = self.read()
            if context is None:
                context = ConversationContext(
                    messages=[], metadata=ContextMetadata(last_updated=now)
                )
                previous = None
            else:
                previous = context.last_updated

            if message.timestamp is None:
                message = replace(message, timestamp=now)

            context.messages.append(message)
            context.messages = trim_messages(context.messages, self.max_messages)

            if previous is not None and now <= previous:
                now = previous + _TICK
            context.metadata.last_updated = now

            update_metadata(context.metadata, message)
            self._save(context)
            return context

    def summarize(self) -> str:
        """Human-readable metadata summary, empty when there is nothing to say."""
        context = self.read()
        if context is None:
            return ""
        return summarize_metadata(context.metadata)

    def clear(self) -> None:
        """Destroy the context unconditionally."""
        with self._lock:
            self.storage.delete(self.key)
            logger.info("Conversation context cleared")

    def messages(self) -> list[Message]:
        """All retained messages, including system messages."""
        context = self.read()
        return list(context.messages) if context else []

    def transcript(self) -> list[dict]:
        """Provider-facing transcript as role/content dicts."""
        return [{"role": m.role, "content": m.content} for m in self.messages()]

    def size(self) -> int:
        context = self.read()
        return len(context.messages) if context else 0

    def _save(self, context: ConversationContext) -> None:
        self.storage.save(self.key, json.dumps(context.to_dict()))
