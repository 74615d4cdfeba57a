"""
SQLAlchemy models for Support Relay.

The only table is a key-value store. It holds provider credentials, the
provider selection, and the serialized conversation record.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Setting(Base):
    """
    Key-value settings storage.

    Stores the provider selection, API keys and the persisted conversation.
    """

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Well-known setting keys
    KEY_SELECTED_PROVIDER = "selected_ai_provider"  # "claude", "openai" or "both"
    KEY_CLAUDE_API_KEY = "claude_api_key"
    KEY_OPENAI_API_KEY = "openai_api_key"
    KEY_CHAT_CONTEXT = "chat_context"  # Serialized ConversationContext

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
