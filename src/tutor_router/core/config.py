"""
Configuration management for the tutor router.

Loads settings from environment variables and provides a centralized
configuration object for all components.

Configuration precedence (highest to lowest):
1. Explicit kwargs passed to RouterConfig
2. Environment variables (TUTOR_* prefix)
3. .env file
4. pyproject.toml [tool.tutor_router] section
5. Hardcoded defaults
"""

import logging
import sys
from pathlib import Path
from typing import Any, ClassVar

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ..models.enums import LogLevel

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini/gemini-2.0-flash-exp"


def load_pyproject_defaults(path: Path | None = None) -> dict[str, Any]:
    """
    Load defaults from the [tool.tutor_router] section in pyproject.toml.

    Args:
        path: Optional explicit pyproject path (defaults to ./pyproject.toml)

    Returns:
        Dictionary of configuration overrides from pyproject.toml
    """
    pyproject_path = path or Path("pyproject.toml")

    if not pyproject_path.exists():
        return {}

    try:
        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        logger.warning(f"Could not load pyproject.toml: {e}")
        return {}
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Could not parse pyproject.toml: {e}")
        return {}

    tool_config = data.get("tool", {}).get("tutor_router", {})
    if tool_config:
        logger.debug(f"Loaded {len(tool_config)} settings from pyproject.toml")
    return tool_config


class PyProjectTomlSettingsSource(PydanticBaseSettingsSource):
    """
    A pydantic-settings source that loads the [tool.tutor_router] section
    of pyproject.toml.
    """

    def get_field_value(self, field_name: str, field_info: Any) -> tuple[Any, str, bool]:
        """Not used in this implementation."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load and return configuration from pyproject.toml."""
        return load_pyproject_defaults()


class RouterConfig(BaseSettings):
    """
    Settings for the classifier, responders and the generative backend.

    Instances are treated as immutable once the router is built; the router
    reads them but never writes back.
    """

    model_config = SettingsConfigDict(
        env_prefix="TUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    SECRET_FIELDS: ClassVar[frozenset[str]] = frozenset({"gemini_api_key"})

    # Generative backend
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "TUTOR_GEMINI_API_KEY", "GEMINI_API_KEY"),
        description="Google Gemini API key (falls back to the provider's own env var)",
    )
    model: str = Field(
        default=DEFAULT_MODEL, description="Model in LiteLLM format (provider/model)"
    )
    temperature: float = Field(default=0.7, description="Sampling temperature")
    generation_timeout: float | None = Field(
        default=60.0, description="Seconds allowed per generative call (None disables)"
    )
    max_retries: int = Field(
        default=0, description="Retry attempts around each generative call (0 disables)"
    )

    # Routing behaviour
    history_limit: int = Field(
        default=10, description="Number of most recent turns kept for classification"
    )
    constant_match_threshold: float = Field(
        default=0.3, description="Minimum fuzzy score for a constant lookup hit"
    )

    # Logging
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(
        default=None,
        description="Path to application log file (None disables file logging)",
    )
    log_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Maximum log file size before rotation"  # 10MB
    )
    log_backup_count: int = Field(default=5, description="Number of backup log files to keep")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources so pyproject.toml sits below env and .env."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            PyProjectTomlSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("history_limit")
    @classmethod
    def validate_history_limit(cls, v: int) -> int:
        """History must keep at least the active turn"""
        if v < 1:
            raise ValueError(f"history_limit must be >= 1, got {v}")
        if v > 200:
            logger.warning(f"Very high history_limit ({v}). Classification prompts will be large.")
        return v

    @field_validator("constant_match_threshold")
    @classmethod
    def validate_match_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"constant_match_threshold must be 0.0-1.0, got {v}")
        return v

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError(f"temperature must be 0.0-2.0, got {v}")
        return v

    @field_validator("generation_timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError(f"generation_timeout must be positive, got {v}")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must be >= 0, got {v}")
        if v > 10:
            logger.warning(f"Very high max_retries ({v}). Failed routes will be slow.")
        return v

    @model_validator(mode="after")
    def validate_model_name(self) -> "RouterConfig":
        """LiteLLM expects provider/model"""
        if "/" not in self.model:
            logger.warning(
                f"Model '{self.model}' has no provider prefix. "
                "LiteLLM may not resolve it (expected e.g. 'gemini/gemini-2.0-flash-exp')."
            )
        return self

    def ensure_log_directory(self) -> None:
        """Ensure the log directory exists."""
        if self.log_file and self.log_file.parent:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
_config: RouterConfig | None = None


def get_config() -> RouterConfig:
    """
    Get the global configuration instance, creating it on first use.

    Returns:
        RouterConfig instance
    """
    global _config
    if _config is None:
        _config = RouterConfig()
        _config.ensure_log_directory()
    return _config


def reset_config() -> None:
    """Reset the global configuration (mainly for testing)."""
    global _config
    _config = None
