"""
Routing module.

Per-turn orchestration of retrieval and provider selection.
"""

from .orchestrator import SupportOrchestrator, TurnResult, resolve_chain
from .replies import apology_for, fallback_notice, missing_credentials_reply

__all__ = [
    "SupportOrchestrator",
    "TurnResult",
    "resolve_chain",
    "apology_for",
    "fallback_notice",
    "missing_credentials_reply",
]
