"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from ..models.boardsync_config import BoardsyncConfig


class Settings(BaseSettings):
    """Application settings.

    Values left as None fall back to ``boardsync.yml`` and then to the
    built-in defaults.
    """

    api_url: str | None = Field(
        default=None,
        description="Remote store base URL, e.g. http://localhost:5001/api",
    )

    token: str | None = Field(
        default=None,
        description="Bearer token sent with every request",
    )

    notify_url: str | None = Field(
        default=None,
        description="Notification service base URL (defaults to api_url)",
    )

    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Remote store request timeout in seconds",
    )

    notify_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Notification request timeout in seconds",
    )

    drag_threshold: int | None = Field(
        default=None,
        ge=0,
        description="Cells the pointer must travel before a drag starts",
    )

    config_file: Path = Field(
        default=Path("boardsync.yml"),
        description="Path to the optional YAML config file",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "BOARDSYNC_",
    }

    def apply_to(self, config: BoardsyncConfig) -> BoardsyncConfig:
        """Overlay explicitly set values onto a file-loaded config."""
        api = config.api.model_copy(
            update={
                k: v
                for k, v in (("url", self.api_url and self.api_url.rstrip("/")), ("timeout", self.timeout))
                if v is not None
            }
        )
        notifications = config.notifications.model_copy(
            update={
                k: v
                for k, v in (("url", self.notify_url), ("timeout", self.notify_timeout))
                if v is not None
            }
        )
        ui = config.ui
        if self.drag_threshold is not None:
            ui = ui.model_copy(update={"drag_threshold": self.drag_threshold})
        return config.model_copy(update={"api": api, "notifications": notifications, "ui": ui})
