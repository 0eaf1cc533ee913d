"""Configuration models for boardsync.yml."""

from pydantic import BaseModel, Field, field_validator


class ApiConfig(BaseModel):
    """Remote store connection settings."""

    url: str = Field(default="http://localhost:5001/api", min_length=1)
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API url must start with http:// or https://")
        return v.rstrip("/")


class NotificationsConfig(BaseModel):
    """Assignment notification side channel settings."""

    enabled: bool = True
    url: str | None = Field(default=None, description="Defaults to the API url")
    timeout: float = Field(default=5.0, gt=0)


class UiConfig(BaseModel):
    """Terminal UI settings."""

    drag_threshold: int = Field(default=3, ge=0)


class BoardsyncConfig(BaseModel):
    """Root configuration model for boardsync.yml."""

    version: int = 1
    api: ApiConfig = Field(default_factory=ApiConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    ui: UiConfig = Field(default_factory=UiConfig)

    @classmethod
    def default(cls) -> "BoardsyncConfig":
        return cls()
