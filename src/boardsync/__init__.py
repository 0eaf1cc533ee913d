"""Optimistic board synchronization engine and terminal kanban client."""

__version__ = "0.1.0"
