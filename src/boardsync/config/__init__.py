"""Configuration management."""

from .settings import Settings

__all__ = ["Settings"]
