"""
Metadata extraction from customer messages.

Only user messages are scanned. Each vocabulary adds to its metadata list
without duplicates, preserving first-seen order.
"""

import re

from .models import ContextMetadata, Message

PRODUCT_CATEGORIES = [
    "smartphone",
    "laptop",
    "tablet",
    "headphones",
    "tv",
    "camera",
    "speaker",
    "smartwatch",
    "gaming",
]

SUPPORT_TOPICS = [
    "return",
    "refund",
    "shipping",
    "delivery",
    "warranty",
    "repair",
    "troubleshoot",
    "setup",
    "broken",
    "help",
]

# "order ABC-12345", "order #123456", "order number 98765"
ORDER_REFERENCE_PATTERN = re.compile(
    r"order\s+(?:number|#)?\s*(\w{2,}-\d{4,}|\d{5,})", re.IGNORECASE
)


def _merge(existing: list[str], found: list[str]) -> list[str]:
    merged = list(existing)
    for item in found:
        if item not in merged:
            merged.append(item)
    return merged


def extract_product_interests(content: str) -> list[str]:
    lowered = content.lower()
    return [p for p in PRODUCT_CATEGORIES if p in lowered]


def extract_order_references(content: str) -> list[str]:
    match = ORDER_REFERENCE_PATTERN.search(content)
    return [match.group(1)] if match else []


def extract_support_topics(content: str) -> list[str]:
    lowered = content.lower()
    return [t for t in SUPPORT_TOPICS if t in lowered]


def update_metadata(metadata: ContextMetadata, message: Message) -> None:
    """Fold whatever the new message reveals into the context metadata."""
    if message.role != "user":
        return

    metadata.product_interests = _merge(
        metadata.product_interests, extract_product_interests(message.content)
    )
    metadata.order_references = _merge(
        metadata.order_references, extract_order_references(message.content)
    )
    metadata.support_topics = _merge(
        metadata.support_topics, extract_support_topics(message.content)
    )


def summarize_metadata(metadata: ContextMetadata) -> str:
    """One sentence per non-empty category, for the provider instruction preamble."""
    parts = []

    if metadata.product_interests:
        parts.append(
            "Customer has expressed interest in: "
            f"{', '.join(metadata.product_interests)}."
        )
    if metadata.order_references:
        parts.append(f"Referenced order(s): {', '.join(metadata.order_references)}.")
    if metadata.support_topics:
        parts.append(
            f"Support topics mentioned: {', '.join(metadata.support_topics)}."
        )

    return " ".join(parts)
