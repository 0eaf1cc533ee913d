"""Data models."""

from .boardsync_config import ApiConfig, BoardsyncConfig, NotificationsConfig, UiConfig
from .enums import CardStatus, ListType, Priority
from .results import ErrorKind, ErrorSurface, NotificationReport, OperationResult, SyncError
from .view import (
    DEFAULT_BOARD_COLOR,
    DEFAULT_LABEL_COLOR,
    UNKNOWN_USER,
    Attachment,
    BoardView,
    CardDraft,
    CardView,
    ChecklistItem,
    Comment,
    Label,
    ListView,
    Member,
    ProjectView,
    UserRef,
    WipLimit,
)

__all__ = [
    "DEFAULT_BOARD_COLOR",
    "DEFAULT_LABEL_COLOR",
    "UNKNOWN_USER",
    "ApiConfig",
    "Attachment",
    "BoardView",
    "BoardsyncConfig",
    "CardDraft",
    "CardStatus",
    "CardView",
    "ChecklistItem",
    "Comment",
    "ErrorKind",
    "ErrorSurface",
    "Label",
    "ListType",
    "ListView",
    "Member",
    "NotificationReport",
    "NotificationsConfig",
    "OperationResult",
    "Priority",
    "ProjectView",
    "SyncError",
    "UiConfig",
    "UserRef",
    "WipLimit",
]
