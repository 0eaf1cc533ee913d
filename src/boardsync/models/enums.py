"""Enums for card priority, card status and list type."""

from __future__ import annotations

from enum import Enum


class Priority(str, Enum):
    """Priority levels for cards, ordered low < medium < high < urgent."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: str | None) -> Priority:
        """Parse a priority string, falling back to MEDIUM for unknown values."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.MEDIUM


_PRIORITY_ORDER = [Priority.LOW, Priority.MEDIUM, Priority.HIGH, Priority.URGENT]


class CardStatus(str, Enum):
    """Workflow status of a card."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    BLOCKED = "blocked"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str | None) -> CardStatus:
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OPEN


class ListType(str, Enum):
    """Type tag for a list (column)."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str | None) -> ListType:
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.CUSTOM
