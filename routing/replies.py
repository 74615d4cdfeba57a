"""
Locally synthesized reply text.

Every failure classification maps to its own apology so the customer
always gets a usable reply turn.
"""

from typing import Optional

from utils.errors import ErrorKind, ServiceError

OFFLINE_REPLY = (
    "It looks like you're currently offline. Please check your internet "
    "connection and try again when you're back online."
)
TIMEOUT_REPLY = (
    "I'm sorry, but the request timed out. Our AI service might be experiencing "
    "high traffic. Please try again in a few moments."
)
NETWORK_REPLY = (
    "I'm having trouble connecting to my knowledge base due to network issues. "
    "Please check your internet connection and try again in a moment. If the "
    "problem persists, our servers might be experiencing issues."
)
RATE_LIMIT_REPLY = (
    "I've reached my rate limit. Please wait a moment before sending another message."
)
AUTHENTICATION_REPLY = (
    "There seems to be an issue with my authentication. Please check your API key "
    "in settings."
)
API_ERROR_REPLY = (
    "I'm sorry, the AI service returned an error (status {status}). "
    "Please try again later."
)
GENERIC_REPLY = (
    "I'm sorry, I encountered an error processing your request. "
    "Please try again later."
)

MISSING_KEY_REPLIES = {
    "claude": "Please add your Claude API key in the settings to use this service.",
    "openai": "Please add your OpenAI API key in the settings to use this service.",
}
NO_KEYS_REPLY = "Please configure at least one AI provider API key in the settings."

DISPLAY_NAMES = {"claude": "Claude", "openai": "OpenAI"}


def apology_for(error: Optional[ServiceError]) -> str:
    """Customer-facing apology for a failed provider call."""
    if error is None:
        return GENERIC_REPLY
    if error.kind == ErrorKind.OFFLINE:
        return OFFLINE_REPLY
    if error.kind == ErrorKind.TIMEOUT:
        return TIMEOUT_REPLY
    if error.kind == ErrorKind.NETWORK:
        return NETWORK_REPLY
    if error.kind == ErrorKind.RATE_LIMITED:
        return RATE_LIMIT_REPLY
    if error.kind == ErrorKind.AUTHENTICATION:
        return AUTHENTICATION_REPLY
    if error.kind == ErrorKind.HTTP_ERROR and error.status_code is not None:
        return API_ERROR_REPLY.format(status=error.status_code)
    return GENERIC_REPLY


def missing_credentials_reply(provider: Optional[str]) -> str:
    """Configuration prompt for a missing key (any provider when None)."""
    if provider is None:
        return NO_KEYS_REPLY
    return MISSING_KEY_REPLIES.get(provider, NO_KEYS_REPLY)


def fallback_notice(primary: str, secondary: str) -> str:
    return (
        f"Falling back to {DISPLAY_NAMES.get(secondary, secondary)} as "
        f"{DISPLAY_NAMES.get(primary, primary)} is unavailable"
    )
