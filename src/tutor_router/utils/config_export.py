"""Configuration export/import utilities"""
import yaml
from pathlib import Path
from typing import Optional

from ..core.config import RouterConfig
from ..exceptions import ConfigurationError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def export_config(
    config: RouterConfig,
    output_path: Optional[Path] = None,
    include_secrets: bool = False
) -> Path:
    """
    Export configuration to YAML file.

    Args:
        config: Configuration to export
        output_path: Where to save (default: .tutor_router/config.yaml)
        include_secrets: Whether to include API keys (default: False)

    Returns:
        Path to exported config file
    """
    if output_path is None:
        output_path = Path(".tutor_router/config.yaml")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    exclude_fields = set() if include_secrets else set(RouterConfig.SECRET_FIELDS)

    config_dict = config.model_dump(
        exclude=exclude_fields,
        exclude_none=True,
        mode='json'
    )

    with output_path.open("w") as f:
        yaml.dump(
            config_dict,
            f,
            default_flow_style=False,
            sort_keys=True,
            indent=2
        )

    logger.info("config_exported", path=str(output_path))
    return output_path


def import_config(config_path: Path) -> RouterConfig:
    """
    Import configuration from YAML file.

    Args:
        config_path: Path to config YAML file

    Returns:
        RouterConfig instance

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the document is not a mapping of settings
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        config_dict = yaml.safe_load(f) or {}

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Config file must contain a mapping of settings: {config_path}",
            field="config_path",
            value=str(config_path),
        )

    logger.info("config_imported", path=str(config_path))
    return RouterConfig(**config_dict)
