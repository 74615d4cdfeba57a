"""
OpenAI provider.

Uses the OpenAI SDK directly with the system prompt as the first message.
"""

import logging

import openai
from openai import OpenAI

from utils.errors import ErrorKind, ServiceError

from .base import MAX_TOKENS, TEMPERATURE, ChatProvider, classify_sdk_error

logger = logging.getLogger(__name__)


class OpenAIProvider(ChatProvider):
    """Provider for OpenAI GPT models."""

    name = "openai"
    display_name = "OpenAI"
    default_model = "gpt-4o-mini"

    def get_client(self) -> OpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key, max_retries=0, timeout=self.timeout
            )
        return self._client

    def _build_messages(self, messages: list[dict], system: str | None) -> list[dict]:
        """Build messages list with system prompt if provided."""
        result = []
        if system:
            result.append({"role": "system", "content": system})
        result.extend(messages)
        return result

    def _dispatch(self, system: str, messages: list[dict]) -> str:
        try:
            response = self.get_client().chat.completions.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
                messages=self._build_messages(messages, system),
            )
        except openai.OpenAIError as e:
            raise classify_sdk_error(e, openai) from e

        if not response.choices:
            raise ServiceError(ErrorKind.UNKNOWN, "Empty response from OpenAI")
        content = response.choices[0].message.content or ""
        if not content:
            raise ServiceError(ErrorKind.UNKNOWN, "Empty response from OpenAI")
        return content
