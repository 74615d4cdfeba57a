"""
Conversation data model.

A Message is immutable once created. A ConversationContext owns the ordered
messages plus the metadata derived from what the customer has said.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

Role = Literal["user", "assistant", "system"]
ROLES = ("user", "assistant", "system")


@dataclass(frozen=True)
class Message:
    """A single chat message."""

    role: Role
    content: str
    timestamp: Optional[datetime] = None
    automated: bool = False  # Synthesized locally rather than by a provider

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    @property
    def is_visible(self) -> bool:
        """System messages are never rendered to the customer."""
        return self.role != "system"

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "automated": self.automated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        timestamp = data.get("timestamp")
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            timestamp=_parse_instant(timestamp) if timestamp else None,
            automated=bool(data.get("automated", False)),
        )


@dataclass
class ContextMetadata:
    """Facts derived from the customer's messages."""

    last_updated: datetime
    product_interests: list[str] = field(default_factory=list)
    order_references: list[str] = field(default_factory=list)
    support_topics: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "lastUpdated": self.last_updated.isoformat(),
            "productInterests": list(self.product_interests),
            "orderReferences": list(self.order_references),
            "supportTopics": list(self.support_topics),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ContextMetadata":
        return cls(
            last_updated=_parse_instant(data["lastUpdated"]),
            product_interests=list(data.get("productInterests") or []),
            order_references=list(data.get("orderReferences") or []),
            support_topics=list(data.get("supportTopics") or []),
        )


@dataclass
class ConversationContext:
    """Ordered conversation plus derived metadata."""

    messages: list[Message]
    metadata: ContextMetadata

    @property
    def last_updated(self) -> datetime:
        return self.metadata.last_updated

    def visible_messages(self) -> list[Message]:
        return [m for m in self.messages if m.is_visible]

    def to_dict(self) -> dict:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationContext":
        return cls(
            messages=[Message.from_dict(m) for m in data.get("messages", [])],
            metadata=ContextMetadata.from_dict(data["metadata"]),
        )


def _parse_instant(value: str) -> datetime:
    """Parse an ISO timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
