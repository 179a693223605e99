"""shoptalk Configuration.

Includes:
- NluConfig: Pipeline thresholds and limits with environment variable support
- IntentKeywords: Extra keywords for one intent category

Environment Variables:
    SHOPTALK_CLARIFY_THRESHOLD: Confidence below which the user is asked to rephrase
    SHOPTALK_MULTI_INTENT_THRESHOLD: Minimum confidence for secondary intents
    SHOPTALK_MAX_ALTERNATIVES: Number of runner-up intents reported
    SHOPTALK_MAX_INPUT_LENGTH: Longer utterances are truncated
    SHOPTALK_PREVIEW_LENGTH: Characters of text included in log lines
    SHOPTALK_INTENT_KEYWORDS: JSON mapping of intent to extra keywords
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.intent.registry import IntentRegistry, default_registry

CONFIG_DIR = ".shoptalk"
CONFIG_FILE = "config.yaml"

_FILE_FIELDS = (
    "clarify_threshold",
    "multi_intent_threshold",
    "max_alternatives",
    "max_input_length",
    "preview_length",
    "intent_keywords",
)


class IntentKeywords(BaseModel):
    """Extra keywords for one intent category.

    Attributes:
        keywords: Keywords appended to the category
        weight: Weight used when the category does not exist yet
    """

    keywords: list[str] = Field(default_factory=list)
    weight: Optional[float] = Field(default=None, gt=0)


class NluConfig(BaseSettings):
    """Query understanding configuration with environment variable support.

    Configuration is loaded from environment variables with SHOPTALK_ prefix.
    For example, SHOPTALK_CLARIFY_THRESHOLD sets clarify_threshold.

    Precedence (highest to lowest):
        1. Config file (.shoptalk/config.yaml) when loaded with load()
        2. Environment variables (SHOPTALK_*)
        3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="SHOPTALK_",
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    project_path: Path = Field(default_factory=Path.cwd)

    clarify_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    multi_intent_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    max_alternatives: int = Field(default=2, ge=0)
    max_input_length: int = Field(default=10_000, gt=0)
    preview_length: int = Field(default=50, ge=0)

    intent_keywords: dict[str, IntentKeywords] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "NluConfig":
        """Load configuration from .shoptalk/config.yaml if it exists.

        Args:
            path: Project path to load configuration for

        Returns:
            NluConfig with file values applied (or env/defaults if no file exists)

        Raises:
            pydantic.ValidationError: If the file holds invalid values
        """
        from ruamel.yaml import YAML

        config_file = path / CONFIG_DIR / CONFIG_FILE
        if not config_file.exists():
            return cls(project_path=path)

        yaml = YAML(typ="safe")
        with config_file.open() as f:
            data = yaml.load(f) or {}

        overrides = {key: data[key] for key in _FILE_FIELDS if key in data}
        return cls(project_path=path, **overrides)

    def save(self) -> None:
        """Save configuration to .shoptalk/config.yaml in the project path."""
        from ruamel.yaml import YAML

        config_dir = self.project_path / CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)
        config_file = config_dir / CONFIG_FILE

        yaml = YAML()
        yaml.default_flow_style = False

        data = {
            "clarify_threshold": self.clarify_threshold,
            "multi_intent_threshold": self.multi_intent_threshold,
            "max_alternatives": self.max_alternatives,
            "max_input_length": self.max_input_length,
            "preview_length": self.preview_length,
            "intent_keywords": {
                intent: entry.model_dump(exclude_none=True)
                for intent, entry in self.intent_keywords.items()
            },
        }

        with config_file.open("w") as f:
            yaml.dump(data, f)

    def build_registry(self) -> IntentRegistry:
        """Default keyword registry extended with configured keywords."""
        registry = default_registry()
        for intent, entry in self.intent_keywords.items():
            registry.add_patterns(intent, entry.keywords, weight=entry.weight)
        return registry


__all__ = ["NluConfig", "IntentKeywords"]
