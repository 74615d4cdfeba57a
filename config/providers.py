"""
Provider selection and credentials.

ProviderSettings is the explicit configuration handed to the
orchestrator. It can be built from the environment or from the
settings table, with the environment filling any gaps.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from providers.base import get_api_key

logger = logging.getLogger(__name__)

PROVIDER_CLAUDE = "claude"
PROVIDER_OPENAI = "openai"
PROVIDER_BOTH = "both"
SELECTIONS = (PROVIDER_CLAUDE, PROVIDER_OPENAI, PROVIDER_BOTH)
DEFAULT_SELECTION = PROVIDER_CLAUDE

# Order used for the fallback chain and for unrecognized selections
PROVIDER_ORDER = (PROVIDER_CLAUDE, PROVIDER_OPENAI)


@dataclass(frozen=True)
class ProviderSettings:
    """Which provider(s) to use and the credential for each."""

    selection: str = DEFAULT_SELECTION
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_model: Optional[str] = None
    openai_model: Optional[str] = None

    @staticmethod
    def normalize_selection(value: Optional[str]) -> str:
        """Lower-case selection; empty means the default. Unknown values are kept."""
        if not value or not value.strip():
            return DEFAULT_SELECTION
        return value.strip().lower()

    @classmethod
    def from_env(cls) -> "ProviderSettings":
        """Read SELECTED_AI_PROVIDER, ANTHROPIC_API_KEY and OPENAI_API_KEY."""
        return cls(
            selection=cls.normalize_selection(os.environ.get("SELECTED_AI_PROVIDER")),
            anthropic_api_key=get_api_key("ANTHROPIC_API_KEY"),
            openai_api_key=get_api_key("OPENAI_API_KEY"),
            anthropic_model=os.environ.get("ANTHROPIC_MODEL") or None,
            openai_model=os.environ.get("OPENAI_MODEL") or None,
        )

    @classmethod
    def from_settings_store(cls) -> "ProviderSettings":
        """Read the settings table, falling back to the environment per value."""
        from db.models import Setting
        from db.settings import get_setting

        env = cls.from_env()
        selection = get_setting(Setting.KEY_SELECTED_PROVIDER)
        return cls(
            selection=(
                cls.normalize_selection(selection) if selection else env.selection
            ),
            anthropic_api_key=get_setting(Setting.KEY_CLAUDE_API_KEY) or env.anthropic_api_key,
            openai_api_key=get_setting(Setting.KEY_OPENAI_API_KEY) or env.openai_api_key,
            anthropic_model=env.anthropic_model,
            openai_model=env.openai_model,
        )

    def api_key_for(self, name: str) -> Optional[str]:
        if name == PROVIDER_CLAUDE:
            return self.anthropic_api_key
        if name == PROVIDER_OPENAI:
            return self.openai_api_key
        return None

    def model_for(self, name: str) -> Optional[str]:
        if name == PROVIDER_CLAUDE:
            return self.anthropic_model
        if name == PROVIDER_OPENAI:
            return self.openai_model
        return None

    def has_credentials(self, name: str) -> bool:
        return bool(self.api_key_for(name))

    def configured_providers(self) -> list[str]:
        return [name for name in PROVIDER_ORDER if self.has_credentials(name)]

    def to_dict(self) -> dict:
        """Safe summary; never includes the keys themselves."""
        return {
            "selection": self.selection,
            "configured": self.configured_providers(),
        }
