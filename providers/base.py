"""
Base classes for chat providers.

A ChatProvider turns the stored conversation into one provider request,
sends it through the shared retry discipline and reconciles the reply
back into the ConversationStore. Failures come back as ProviderResult
values carrying a typed ServiceError; nothing raises past send_message.
"""

import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import ModuleType
from typing import Callable, Optional

from chat.models import Message
from chat.store import ConversationStore
from prompts import get_system_prompt
from utils.errors import ErrorKind, ServiceError, classify_status
from utils.network import is_online as default_is_online
from utils.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15.0  # seconds
MAX_TOKENS = 1000
TEMPERATURE = 0.7
RETRIEVED_DATA_MARKER = "[RETRIEVED DATA]"


@dataclass
class ProviderResult:
    """Outcome of a provider call."""

    success: bool
    provider: str
    text: str = ""
    error: Optional[ServiceError] = None


def get_api_key(env_var: str, file_env_var: str | None = None) -> str | None:
    """
    Get API key from environment variable or file.

    Args:
        env_var: Name of environment variable containing the key
        file_env_var: Optional name of env var containing path to key file

    Returns:
        API key string or None if not configured
    """
    # Check direct environment variable
    api_key = os.environ.get(env_var)
    if api_key:
        return api_key

    # Check file-based secret (Docker Swarm secrets)
    for candidate in (file_env_var, f"{env_var}_FILE"):
        if not candidate:
            continue
        path = os.environ.get(candidate)
        if path and os.path.exists(path):
            with open(path, "r") as f:
                return f.read().strip() or None

    return None


def append_retrieved_data(content: str, retrieved: str) -> str:
    return f"{content}\n\n{RETRIEVED_DATA_MARKER}: {retrieved}"


def classify_sdk_error(exc: Exception, sdk: ModuleType) -> ServiceError:
    """
    Map an SDK exception to a typed error.

    The anthropic and openai SDKs share their exception hierarchy names,
    so one mapping serves both.
    """
    # APITimeoutError subclasses APIConnectionError, check it first
    if isinstance(exc, sdk.APITimeoutError):
        return ServiceError(ErrorKind.TIMEOUT, "Request timed out")
    if isinstance(exc, sdk.APIConnectionError):
        return ServiceError(ErrorKind.NETWORK, f"Connection error: {exc}")
    if isinstance(exc, sdk.APIStatusError):
        return classify_status(exc.status_code, getattr(exc, "message", "") or "")
    return ServiceError(ErrorKind.UNKNOWN, str(exc) or exc.__class__.__name__)


class ChatProvider(ABC):
    """Abstract base class for chat providers."""

    name: str  # Selection identifier ("claude", "openai")
    display_name: str
    default_model: str

    def __init__(
        self,
        api_key: str | None,
        store: ConversationStore,
        model: str | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float = REQUEST_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        is_online: Callable[[], bool] = default_is_online,
        client=None,
    ):
        self.api_key = api_key
        self.store = store
        self.model = model or self.default_model
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self._sleep = sleep
        self._is_online = is_online
        self._client = client

    def is_configured(self) -> bool:
        """Check if this provider has a credential."""
        return bool(self.api_key)

    @abstractmethod
    def get_client(self):
        """Get or create the SDK client."""

    @abstractmethod
    def _dispatch(self, system: str, messages: list[dict]) -> str:
        """
        Send one request.

        Returns:
            Reply text

        Raises:
            ServiceError: Classified at the point of failure
        """

    def build_request(
        self, retrieved_context: str | None = None
    ) -> tuple[str, list[dict]]:
        """
        Build the system instruction and transcript for the next request.

        Retrieved data is attached to the last user message of the
        outbound transcript only; the stored message stays as typed.
        """
        system = get_system_prompt(self.store.summarize())
        messages = self.store.transcript()
        if retrieved_context:
            for entry in reversed(messages):
                if entry["role"] == "user":
                    entry["content"] = append_retrieved_data(
                        entry["content"], retrieved_context
                    )
                    break
        return system, messages

    def send_message(
        self, message: Message | str, retrieved_context: str | None = None
    ) -> ProviderResult:
        """
        Append the user message to the store, then request a reply.

        Args:
            message: New user message
            retrieved_context: Retrieval text to attach to the request

        Returns:
            ProviderResult with the reply text or a typed error
        """
        if isinstance(message, str):
            message = Message(role="user", content=message)
        self.store.append(message)
        return self.complete(retrieved_context)

    def complete(self, retrieved_context: str | None = None) -> ProviderResult:
        """Request a reply for the conversation as currently stored."""
        if not self._is_online():
            return self._failure(
                ServiceError(ErrorKind.OFFLINE, "No network connectivity")
            )
        if not self.is_configured():
            return self._failure(
                ServiceError(
                    ErrorKind.AUTHENTICATION, f"{self.display_name} API key not configured"
                )
            )

        try:
            system, messages = self.build_request(retrieved_context)
            logger.info(
                f"Sending {len(messages)} messages to {self.display_name} ({self.model})"
            )
            text = call_with_retry(
                lambda: self._dispatch(system, messages),
                policy=self.retry_policy,
                sleep=self._sleep,
                label=f"{self.display_name} request",
            )
            self.store.append(Message(role="assistant", content=text))
        except ServiceError as e:
            return self._failure(e)
        except Exception as e:
            logger.error(f"Unexpected error from {self.display_name}: {e}")
            return self._failure(
                ServiceError(ErrorKind.UNKNOWN, str(e) or e.__class__.__name__)
            )

        return ProviderResult(success=True, provider=self.name, text=text)

    def _failure(self, error: ServiceError) -> ProviderResult:
        logger.warning(f"{self.display_name} request failed: {error.describe()}")
        return ProviderResult(success=False, provider=self.name, error=error)
