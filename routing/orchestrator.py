"""
Support orchestrator.

Drives one chat turn end to end:

1. Offline: store the message plus an offline apology, stop.
2. Resolve the provider chain from ProviderSettings; missing credentials
   produce a configuration prompt and leave the store untouched.
3. Detect retrieval intent and run retrieval; a failure becomes a note
   in the retrieved data, never an aborted turn.
4. Send through the primary provider, falling back to the secondary
   (one notice) when configured.
5. If every provider failed, store the mapped apology as the reply.

Turns are serialized; one is fully processed before the next starts.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from augmentation.query_intent import detect_retrieval_intent
from chat.models import Message
from chat.store import ConversationStore
from config.providers import (
    PROVIDER_BOTH,
    PROVIDER_CLAUDE,
    PROVIDER_OPENAI,
    ProviderSettings,
)
from providers.base import ChatProvider, ProviderResult
from providers.registry import registry as default_registry
from utils.errors import ErrorKind, ServiceError
from utils.network import is_online as default_is_online

from .replies import (
    OFFLINE_REPLY,
    apology_for,
    fallback_notice,
    missing_credentials_reply,
)

if TYPE_CHECKING:
    from augmentation.retrieval import RetrievalAugmentor, RetrievalOutcome
    from providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_OFFLINE = "offline"
STATUS_NOT_CONFIGURED = "not_configured"
STATUS_PROVIDER_ERROR = "provider_error"

ProviderFactory = Callable[[str, ProviderSettings, ConversationStore], ChatProvider]


def _connected() -> bool:
    return True


@dataclass
class TurnResult:
    """What the caller renders after a turn."""

    reply: str
    status: str
    messages: list[Message] = field(default_factory=list)
    provider: Optional[str] = None
    notice: Optional[str] = None
    error: Optional[ServiceError] = None
    retrieval: "Optional[RetrievalOutcome]" = None

    @property
    def success(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> dict:
        return {
            "reply": self.reply,
            "status": self.status,
            "provider": self.provider,
            "notice": self.notice,
            "error": self.error.kind.value if self.error else None,
            "retrieval": (
                {
                    "success": self.retrieval.success,
                    "url": self.retrieval.url,
                    "source": self.retrieval.source,
                }
                if self.retrieval
                else None
            ),
            "messages": [m.to_dict() for m in self.messages if m.is_visible],
        }


@dataclass
class ProviderChain:
    names: list[str]
    missing: Optional[str] = None  # provider whose key is missing, if any

    @property
    def configured(self) -> bool:
        return bool(self.names)


def resolve_chain(settings: ProviderSettings) -> ProviderChain:
    """
    Provider names to try, in order.

    A single selection needs its own key. "both" tries Claude then
    OpenAI, skipping whichever has no key. Unknown selections use the
    first configured provider.
    """
    selection = settings.selection
    if selection in (PROVIDER_CLAUDE, PROVIDER_OPENAI):
        if settings.has_credentials(selection):
            return ProviderChain(names=[selection])
        return ProviderChain(names=[], missing=selection)

    configured = settings.configured_providers()
    if selection == PROVIDER_BOTH:
        return ProviderChain(names=configured)
    return ProviderChain(names=configured[:1])


class SupportOrchestrator:
    """
    Selects providers, runs retrieval and reconciles replies into the store.

    Args:
        store: Conversation store (single source of truth)
        settings: Provider selection and credentials
        augmentor: Retrieval runner; retrieval is skipped when None
        provider_factory: Builds a provider by name (registry by default)
        is_online: Connectivity check, run once at the start of each turn
        provider_options: Extra keyword arguments for provider construction
    """

    def __init__(
        self,
        store: ConversationStore,
        settings: ProviderSettings,
        augmentor: "Optional[RetrievalAugmentor]" = None,
        provider_factory: Optional[ProviderFactory] = None,
        is_online: Callable[[], bool] = default_is_online,
        registry: "ProviderRegistry" = default_registry,
        provider_options: Optional[dict] = None,
    ):
        self.store = store
        self.settings = settings
        self.augmentor = augmentor
        self._is_online = is_online
        self._registry = registry
        self._provider_options = provider_options or {}
        self._provider_factory = provider_factory or self._create_provider
        self._turn_lock = threading.Lock()

    def update_settings(self, settings: ProviderSettings) -> None:
        self.settings = settings
        logger.info(f"Provider settings updated: {settings.to_dict()}")

    def _create_provider(
        self, name: str, settings: ProviderSettings, store: ConversationStore
    ) -> ChatProvider:
        return self._registry.create(
            name,
            api_key=settings.api_key_for(name),
            store=store,
            model=settings.model_for(name),
            # Connectivity was already checked at the start of the turn
            is_online=_connected,
            **self._provider_options,
        )

    def send_message(self, text: str) -> TurnResult:
        """
        Process one outgoing customer message.

        Args:
            text: Message as typed by the customer

        Returns:
            TurnResult with the reply and the canonical message list

        Raises:
            ValueError: If the message is empty
        """
        if not text or not text.strip():
            raise ValueError("Message cannot be empty")

        with self._turn_lock:
            return self._run_turn(text.strip())

    def _run_turn(self, text: str) -> TurnResult:
        user_message = Message(role="user", content=text)

        if not self._is_online():
            logger.warning("Offline; replying locally without calling a provider")
            self.store.append(user_message)
            self.store.append(
                Message(role="assistant", content=OFFLINE_REPLY, automated=True)
            )
            return TurnResult(
                reply=OFFLINE_REPLY,
                status=STATUS_OFFLINE,
                messages=self.store.messages(),
                error=ServiceError(ErrorKind.OFFLINE, "No network connectivity"),
            )

        chain = resolve_chain(self.settings)
        if not chain.configured:
            reply = missing_credentials_reply(chain.missing)
            logger.warning(f"No usable provider credentials ({self.settings.selection})")
            return TurnResult(
                reply=reply,
                status=STATUS_NOT_CONFIGURED,
                messages=self.store.messages(),
            )

        retrieval = self._retrieve(text)
        retrieved_text = retrieval.text if retrieval else None

        result: Optional[ProviderResult] = None
        notice = None
        for index, name in enumerate(chain.names):
            provider = self._provider_factory(name, self.settings, self.store)
            if index == 0:
                logger.info(f"Using provider: {name}")
                result = provider.send_message(user_message, retrieved_text)
            else:
                notice = fallback_notice(chain.names[0], name)
                logger.info(notice)
                result = provider.complete(retrieved_text)
            if result.success:
                break

        if result.success:
            return TurnResult(
                reply=result.text,
                status=STATUS_OK,
                messages=self.store.messages(),
                provider=result.provider,
                notice=notice,
                retrieval=retrieval,
            )

        apology = apology_for(result.error)
        self.store.append(Message(role="assistant", content=apology, automated=True))
        return TurnResult(
            reply=apology,
            status=STATUS_PROVIDER_ERROR,
            messages=self.store.messages(),
            provider=result.provider,
            notice=notice,
            error=result.error,
            retrieval=retrieval,
        )

    def _retrieve(self, text: str) -> "Optional[RetrievalOutcome]":
        if self.augmentor is None:
            return None
        intent = detect_retrieval_intent(text)
        if intent is None:
            return None
        logger.info(
            f"Detected {'retailer' if intent.retailer else 'browsing'} "
            f"request: '{intent.query}'"
        )
        outcome = self.augmentor.retrieve(intent)
        if not outcome.success:
            logger.warning(f"Retrieval failed for '{intent.query}'")
        return outcome
