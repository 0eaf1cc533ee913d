"""Textual UI components."""

from .widgets import BoardPanel, CardWidget, ListColumn

__all__ = ["BoardPanel", "CardWidget", "ListColumn"]
