"""
Anthropic Claude provider.

Anthropic takes the system prompt as a separate field and requires the
conversation to alternate roles starting with a user turn, so the stored
transcript is normalized before sending.
"""

import logging

import anthropic

from utils.errors import ErrorKind, ServiceError

from .base import MAX_TOKENS, TEMPERATURE, ChatProvider, classify_sdk_error

logger = logging.getLogger(__name__)


def to_anthropic_messages(
    system: str, messages: list[dict]
) -> tuple[str, list[dict]]:
    """
    Fold system messages into the system prompt and merge consecutive
    same-role turns.
    """
    extra_system = []
    turns: list[dict] = []
    for entry in messages:
        if entry["role"] == "system":
            extra_system.append(entry["content"])
            continue
        if turns and turns[-1]["role"] == entry["role"]:
            turns[-1]["content"] += "\n\n" + entry["content"]
        else:
            turns.append({"role": entry["role"], "content": entry["content"]})

    # Conversation must open with the customer
    while turns and turns[0]["role"] != "user":
        turns.pop(0)

    if extra_system:
        system = "\n\n".join([system, *extra_system])
    return system, turns


class AnthropicProvider(ChatProvider):
    """Provider for Anthropic Claude models."""

    name = "claude"
    display_name = "Claude"
    default_model = "claude-sonnet-4-5-20250929"

    def get_client(self) -> anthropic.Anthropic:
        """Get or create Anthropic client."""
        if self._client is None:
            # Retries are applied by call_with_retry, not the SDK
            self._client = anthropic.Anthropic(
                api_key=self.api_key, max_retries=0, timeout=self.timeout
            )
        return self._client

    def _dispatch(self, system: str, messages: list[dict]) -> str:
        system, turns = to_anthropic_messages(system, messages)
        if not turns:
            raise ServiceError(ErrorKind.VALIDATION, "No user message to send")

        try:
            response = self.get_client().messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
                system=system,
                messages=turns,
            )
        except anthropic.AnthropicError as e:
            raise classify_sdk_error(e, anthropic) from e

        content = ""
        for block in response.content:
            if hasattr(block, "text"):
                content += block.text

        if not content:
            raise ServiceError(ErrorKind.UNKNOWN, "Empty response from Claude")
        return content
