"""Conversion from wire entities to view-model records.

The converter is the single point where wire-shape variability is absorbed.
Every function here is total: missing or deleted associations degrade to
sentinels (``UNKNOWN_USER``), missing sub-lists to empty tuples and missing
identifiers to deterministic fallbacks, so converting the same payload twice
always yields equal records.
"""

from __future__ import annotations

from ..models.enums import CardStatus, ListType, Priority
from ..models.view import (
    DEFAULT_BOARD_COLOR,
    DEFAULT_LABEL_COLOR,
    UNKNOWN_USER,
    Attachment,
    BoardView,
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
from ..models.wire import (
    WireAttachment,
    WireBoard,
    WireCard,
    WireChecklistItem,
    WireComment,
    WireLabel,
    WireList,
    WireProject,
    WireUser,
)
from ..utils import parse_optional_datetime


def convert_user(user: WireUser | str | None, project: ProjectView | None = None) -> UserRef:
    """Resolve a populated user, a bare id or a missing reference to a UserRef."""
    if user is None:
        return UserRef(id="", name=UNKNOWN_USER)
    if isinstance(user, str):
        name = project.display_name(user) if project else UNKNOWN_USER
        return UserRef(id=user, name=name)
    name = user.display_name
    if not name and project is not None:
        name = project.display_name(user.id)
    return UserRef(id=user.id, name=name or UNKNOWN_USER, avatar=user.avatar)


def convert_assignees(
    users: list[WireUser | str | None], project: ProjectView | None = None
) -> tuple[UserRef, ...]:
    """Convert assignees, dropping deleted users and duplicate ids.

    Bare ids are resolved against the membership cache.
    """
    seen: set[str] = set()
    result: list[UserRef] = []
    for user in users:
        user_id = user if isinstance(user, str) else (user.id if user else "")
        if not user_id or user_id in seen:
            continue
        seen.add(user_id)
        result.append(convert_user(user, project))
    return tuple(result)


def convert_labels(labels: list[WireLabel]) -> tuple[Label, ...]:
    """Convert labels, keeping the first occurrence of each name."""
    seen: set[str] = set()
    result: list[Label] = []
    for label in labels:
        name = label.name.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(Label(name=name, color=label.color or DEFAULT_LABEL_COLOR))
    return tuple(result)


def _convert_checklist_item(item: WireChecklistItem, fallback_id: str) -> ChecklistItem:
    return ChecklistItem(
        id=item.id or fallback_id,
        title=item.title or "",
        completed=bool(item.completed),
        created_at=parse_optional_datetime(item.created_at),
        completed_at=parse_optional_datetime(item.completed_at),
    )


def _convert_comment(
    comment: WireComment, fallback_id: str, project: ProjectView | None
) -> Comment:
    return Comment(
        id=comment.id or fallback_id,
        author=convert_user(comment.author, project),
        text=comment.text or "",
        created_at=parse_optional_datetime(comment.created_at),
        edited=bool(comment.is_edited),
    )


def _convert_attachment(
    attachment: WireAttachment,
    fallback_id: str,
    card_created: str | None,
    project: ProjectView | None,
) -> Attachment:
    return Attachment(
        id=attachment.id or fallback_id,
        filename=attachment.original_name or attachment.filename or "untitled",
        size=max(attachment.size or 0, 0),
        mime_type=attachment.mimetype or "application/octet-stream",
        uploader=convert_user(attachment.uploaded_by, project),
        url=attachment.url or "",
        uploaded_at=parse_optional_datetime(attachment.uploaded_at or card_created),
    )


def convert_card(card: WireCard, project: ProjectView | None = None) -> CardView:
    """Convert a wire card into a CardView."""
    items = [*card.subtasks, *card.checklist]
    return CardView(
        id=card.id,
        title=card.title or "",
        description=card.description or "",
        priority=Priority.parse(card.priority),
        status=CardStatus.parse(card.status),
        position=card.position or 0,
        due_date=parse_optional_datetime(card.due_date),
        start_date=parse_optional_datetime(card.start_date),
        assignees=convert_assignees(card.assigned_to, project),
        labels=convert_labels(card.labels),
        checklist=tuple(
            _convert_checklist_item(item, f"{card.id}-item-{index}") for index, item in enumerate(items)
        ),
        comments=tuple(
            _convert_comment(comment, f"{card.id}-comment-{index}", project)
            for index, comment in enumerate(card.comments)
        ),
        attachments=tuple(
            _convert_attachment(attachment, f"attachment-{index}", card.created_at, project)
            for index, attachment in enumerate(card.attachments)
        ),
    )


def convert_list(
    wire_list: WireList,
    project: ProjectView | None = None,
    exclude_card_ids: frozenset[str] = frozenset(),
) -> ListView:
    """Convert a wire list and its inlined cards into a ListView.

    Cards whose id is in ``exclude_card_ids`` (or repeated within the list)
    are skipped so a card can never appear twice on a board.
    """
    wip = wire_list.settings.wip_limit if wire_list.settings else None
    cards: list[CardView] = []
    seen = set(exclude_card_ids)
    for card in wire_list.cards or []:
        if card.id in seen:
            continue
        seen.add(card.id)
        cards.append(convert_card(card, project))
    return ListView(
        id=wire_list.id,
        title=wire_list.title or "",
        color=wire_list.color,
        position=wire_list.position or 0,
        list_type=ListType.parse(wire_list.list_type),
        wip_limit=WipLimit(enabled=bool(wip.enabled), limit=wip.limit or 0) if wip else None,
        cards=tuple(cards),
    )


def convert_board(
    board: WireBoard,
    lists: list[WireList] | None = None,
    project: ProjectView | None = None,
) -> BoardView:
    """Convert a wire board into a BoardView.

    Args:
        board: The board payload
        lists: Lists fetched separately; defaults to the board's inlined lists
        project: Membership cache used to resolve user names
    """
    source = lists if lists is not None else (board.lists or [])
    converted: list[ListView] = []
    seen_cards: set[str] = set()
    for wire_list in source:
        lst = convert_list(wire_list, project, frozenset(seen_cards))
        seen_cards.update(lst.card_ids)
        converted.append(lst)
    return BoardView(
        id=board.id,
        title=board.title or "",
        description=board.description or "",
        color=board.color or DEFAULT_BOARD_COLOR,
        position=board.position or 0,
        lists=tuple(converted),
    )


def convert_project(project: WireProject) -> ProjectView:
    """Convert a wire project and its membership into a ProjectView."""
    members: list[Member] = []
    seen: set[str] = set()
    for member in project.members:
        if member.user is None or not member.user.id or member.user.id in seen:
            continue
        seen.add(member.user.id)
        members.append(Member(user=convert_user(member.user), role=member.role))
    return ProjectView(
        id=project.id,
        title=project.title or "",
        description=project.description or "",
        owner=convert_user(project.owner) if project.owner else None,
        members=tuple(members),
    )
