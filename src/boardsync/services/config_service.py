"""Configuration service for loading boardsync.yml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models.boardsync_config import BoardsyncConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for loading and caching the boardsync.yml configuration."""

    CONFIG_FILE = "boardsync.yml"

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the config service.

        Args:
            config_path: Path to the YAML file, or a directory containing
                boardsync.yml. Defaults to the current directory.
        """
        path = config_path or Path()
        if path.is_dir():
            path = path / self.CONFIG_FILE
        self.config_path = path
        self._config: BoardsyncConfig | None = None
        self._config_error: str | None = None

    @property
    def has_config_error(self) -> bool:
        """Check if there was an error loading config."""
        return self._config_error is not None

    @property
    def config_error(self) -> str | None:
        return self._config_error

    def get_config(self) -> BoardsyncConfig:
        """Get configuration, loading from file if not cached."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def reload(self) -> None:
        """Clear cached configuration, forcing reload on next access."""
        self._config = None
        self._config_error = None

    def _load_config(self) -> BoardsyncConfig:
        """Load configuration from file or return default."""
        name = self.config_path.name
        self._config_error = None

        if not self.config_path.exists():
            logger.debug("No %s found, using defaults", name)
            return BoardsyncConfig.default()

        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            return self._fallback(f"Invalid YAML in {name}: {e}")
        except OSError as e:
            return self._fallback(f"Error reading {name}: {e}")

        if data is None:
            return self._fallback(f"{name} is empty")
        if not isinstance(data, dict):
            return self._fallback(f"{name} must contain a mapping")

        try:
            config = BoardsyncConfig(**data)
        except ValidationError as e:
            return self._fallback(f"Invalid {name}: {e.error_count()} error(s): {e}")

        logger.info("Loaded %s (api=%s)", name, config.api.url)
        return config

    def _fallback(self, message: str) -> BoardsyncConfig:
        self._config_error = message
        logger.warning(message)
        return BoardsyncConfig.default()
