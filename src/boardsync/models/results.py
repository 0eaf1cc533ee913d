"""Result values returned by engine operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Category of a surfaced error, mirroring the API error taxonomy."""

    NETWORK = "network"
    VALIDATION = "validation"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    SERVER = "server"


class ErrorSurface(str, Enum):
    """How the UI should render an error."""

    BLOCKING = "blocking"  # load failure, replaces the board view
    TRANSIENT = "transient"  # mutation failure, dismissible, board reverted


@dataclass(frozen=True)
class SyncError:
    """An error surfaced to the UI layer instead of being raised."""

    kind: ErrorKind
    message: str
    operation: str
    surface: ErrorSurface = ErrorSurface.TRANSIENT
    field_errors: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.operation}: {self.message}"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of an engine operation: either a value or an error."""

    value: T | None = None
    error: SyncError | None = None
    rolled_back: bool = False
    noop: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None, *, noop: bool = False) -> OperationResult:
        return cls(value=value, noop=noop)

    @classmethod
    def failure(cls, error: SyncError, *, rolled_back: bool = False) -> OperationResult:
        return cls(error=error, rolled_back=rolled_back)


@dataclass
class NotificationReport:
    """Result of a best-effort notification fan-out."""

    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.sent)

    @property
    def has_failures(self) -> bool:
        return len(self.failed) > 0
