"""View-model records held by the Board Tree State.

Every record is a frozen pydantic model and every sequence is a tuple, so a
snapshot can only change by building a new one. Helpers that "modify" a
record return a copy via ``model_copy(update=...)``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..utils import now_utc
from .enums import CardStatus, ListType, Priority

UNKNOWN_USER = "Unknown User"
DEFAULT_LABEL_COLOR = "#6B7280"
DEFAULT_BOARD_COLOR = "#3B82F6"


class ViewModel(BaseModel):
    """Base for immutable view-model records."""

    model_config = ConfigDict(frozen=True)


class UserRef(ViewModel):
    """A reference to a user by id, with the display name resolved at conversion."""

    id: str
    name: str = UNKNOWN_USER
    avatar: str | None = None


class Member(ViewModel):
    """A project member and their role."""

    user: UserRef
    role: str = "member"


class ProjectView(ViewModel):
    """Project and membership cache, read (never mutated) by the engine."""

    id: str
    title: str
    description: str = ""
    owner: UserRef | None = None
    members: tuple[Member, ...] = ()

    @property
    def member_ids(self) -> frozenset[str]:
        return frozenset(member.user.id for member in self.members)

    def get_member(self, user_id: str) -> Member | None:
        for member in self.members:
            if member.user.id == user_id:
                return member
        return None

    def display_name(self, user_id: str) -> str:
        member = self.get_member(user_id)
        return member.user.name if member else UNKNOWN_USER


class Label(ViewModel):
    name: str
    color: str = DEFAULT_LABEL_COLOR


class ChecklistItem(ViewModel):
    id: str
    title: str
    completed: bool = False
    created_at: datetime | None = None
    completed_at: datetime | None = None


class Comment(ViewModel):
    id: str
    author: UserRef
    text: str
    created_at: datetime | None = None
    edited: bool = False


class Attachment(ViewModel):
    id: str
    filename: str
    size: int = 0
    mime_type: str = "application/octet-stream"
    uploader: UserRef
    url: str = ""
    uploaded_at: datetime | None = None


class CardView(ViewModel):
    """A card (task) in presentation shape."""

    id: str
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: CardStatus = CardStatus.OPEN
    position: int = 0
    due_date: datetime | None = None
    start_date: datetime | None = None
    assignees: tuple[UserRef, ...] = ()
    labels: tuple[Label, ...] = ()
    checklist: tuple[ChecklistItem, ...] = ()
    comments: tuple[Comment, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    pending: bool = False  # optimistic placeholder not yet confirmed

    @property
    def assignee_ids(self) -> tuple[str, ...]:
        return tuple(user.id for user in self.assignees)

    @property
    def label_names(self) -> tuple[str, ...]:
        return tuple(label.name for label in self.labels)

    @property
    def checklist_completion(self) -> int:
        """Percentage (0-100) of completed checklist items."""
        if not self.checklist:
            return 0
        done = sum(1 for item in self.checklist if item.completed)
        return round(done * 100 / len(self.checklist))

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status == CardStatus.COMPLETED:
            return False
        due = self.due_date
        if due.tzinfo is None:
            return due < now_utc().replace(tzinfo=None)
        return due < now_utc()


class WipLimit(ViewModel):
    enabled: bool = False
    limit: int = 0


class ListView(ViewModel):
    """A list (column) and its ordered cards."""

    id: str
    title: str
    color: str | None = None
    position: int = 0
    list_type: ListType = ListType.CUSTOM
    wip_limit: WipLimit | None = None
    cards: tuple[CardView, ...] = ()

    @property
    def card_ids(self) -> tuple[str, ...]:
        return tuple(card.id for card in self.cards)

    @property
    def is_over_wip_limit(self) -> bool:
        if self.wip_limit is None or not self.wip_limit.enabled or self.wip_limit.limit <= 0:
            return False
        return len(self.cards) > self.wip_limit.limit

    def index_of(self, card_id: str) -> int:
        """Index of a card in this list, or -1 if absent."""
        for index, card in enumerate(self.cards):
            if card.id == card_id:
                return index
        return -1


class BoardView(ViewModel):
    """A board and its ordered lists."""

    id: str
    title: str
    description: str = ""
    color: str = DEFAULT_BOARD_COLOR
    position: int = 0
    lists: tuple[ListView, ...] = ()

    @property
    def list_ids(self) -> tuple[str, ...]:
        return tuple(lst.id for lst in self.lists)

    @property
    def cards(self) -> tuple[CardView, ...]:
        return tuple(card for lst in self.lists for card in lst.cards)

    def get_list(self, list_id: str) -> ListView | None:
        for lst in self.lists:
            if lst.id == list_id:
                return lst
        return None

    def list_of(self, card_id: str) -> ListView | None:
        """The list currently holding a card."""
        for lst in self.lists:
            if lst.index_of(card_id) >= 0:
                return lst
        return None

    def get_card(self, card_id: str) -> CardView | None:
        lst = self.list_of(card_id)
        if lst is None:
            return None
        return lst.cards[lst.index_of(card_id)]


class CardDraft(BaseModel):
    """Validated input for creating or updating a card.

    Fields left as None are not sent and not patched.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    priority: Priority | None = None
    status: CardStatus | None = None
    due_date: datetime | None = None
    start_date: datetime | None = None
    assignees: list[str] | None = None
    labels: list[Label] | None = None

    def to_payload(self) -> dict:
        """Convert to the remote store's request body."""
        data: dict = {}
        if self.title is not None:
            data["title"] = self.title
        if self.description is not None:
            data["description"] = self.description
        if self.priority is not None:
            data["priority"] = self.priority.value
        if self.status is not None:
            data["status"] = self.status.value
        if self.due_date is not None:
            data["dueDate"] = self.due_date.isoformat()
        if self.start_date is not None:
            data["startDate"] = self.start_date.isoformat()
        if self.assignees is not None:
            data["assignedTo"] = list(self.assignees)
        if self.labels is not None:
            data["labels"] = [{"name": label.name, "color": label.color} for label in self.labels]
        return data
