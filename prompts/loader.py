"""
Prompt Library Loader - YAML loading with Jinja2 rendering.

Loads prompt configs from defaults/, with overrides/ taking precedence.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment

logger = logging.getLogger(__name__)


class PromptLibrary:
    """
    Manages prompt templates.

    Directory structure:
        prompts/
        ├── defaults/           # Built-in prompts
        └── overrides/          # Deployment overrides (optional)
    """

    def __init__(
        self,
        defaults_dir: str | Path | None = None,
        overrides_dir: str | Path | None = None,
    ):
        base_dir = Path(__file__).parent

        self.defaults_dir = (
            Path(defaults_dir) if defaults_dir else base_dir / "defaults"
        )
        self.overrides_dir = (
            Path(overrides_dir) if overrides_dir else base_dir / "overrides"
        )
        self._cache: dict[str, dict] = {}

        self._env = Environment(
            autoescape=False,  # We're generating prompts, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
        )

        self._load_all()

    def _load_all(self):
        """Load all YAML files from defaults and overrides."""
        if self.defaults_dir.exists():
            self._load_directory(self.defaults_dir)

        if self.overrides_dir.exists():
            self._load_directory(self.overrides_dir)

        logger.info(f"Loaded {len(self._cache)} prompt configs")

    def _load_directory(self, base_dir: Path):
        for yaml_file in sorted(base_dir.glob("*.yaml")):
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to load {yaml_file}: {e}")
                continue
            self._cache[yaml_file.stem] = config
            logger.debug(f"Loaded prompt config: {yaml_file.stem}")

    def get_config(self, name: str) -> dict[str, Any]:
        """Raw config dict for a prompt, or empty dict if not found."""
        return self._cache.get(name, {})

    def render(self, name: str, template_key: str, **variables) -> str:
        """
        Render a Jinja2 template from a prompt config.

        Other config values are available to the template as variables,
        but explicitly passed variables win.
        """
        config = self.get_config(name)
        template_str = config.get(template_key, "")

        if not template_str:
            logger.warning(f"No template '{template_key}' found in {name}")
            return ""

        template = self._env.from_string(template_str)
        return template.render(**{**config, **variables}).strip()
