"""Configuration loader for the city events pipeline."""

from functools import lru_cache
from pathlib import Path

import yaml

from citycal.configs.settings import get_settings

settings = get_settings()


class Config:
    """Configuration for the city events pipeline."""

    INGESTION_CONFIG_PATH = settings.INGESTION_CONFIG_PATH

    @classmethod
    @lru_cache
    def load_ingestion_config(cls) -> dict:
        """Load the YAML configuration for the ingestion pipeline."""
        return load_yaml_config(cls.INGESTION_CONFIG_PATH)


def load_yaml_config(path: Path | str) -> dict:
    """
    Load a YAML config file, substituting ${SETTING} placeholders.

    Unset settings substitute as an empty string, so a feed whose URL is not
    configured ends up with ``url: ""`` and is skipped by the orchestrator.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing config at {path}")

    with open(path, encoding="utf-8") as f:
        content = f.read()

    # Substitute environment variables from settings
    for key, value in get_settings().model_dump().items():
        placeholder = f"${{{key}}}"
        if placeholder in content:
            # Handle SecretStr
            if value is None:
                val_str = ""
            elif hasattr(value, "get_secret_value"):
                val_str = value.get_secret_value()
            else:
                val_str = str(value)
            content = content.replace(placeholder, val_str)

    return yaml.safe_load(content) or {}
