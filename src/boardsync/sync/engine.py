"""Board sync engine: optimistic mutations against a remote store.

This module provides the BoardSyncEngine class which handles:
- Loading a project, its membership and its boards into the Board Tree State
- Card and board mutations as optimistic update + remote commit
- Reconciling confirmed results through the converter
- Rolling back the affected subtree when a commit fails
- Dispatching assignment notifications for newly added assignees

Conflict policy: mutations are serialized through a single asyncio.Lock,
so each one reads a fresh snapshot and its rollback restores exactly the
subtree it captured. Every load bumps a generation counter before waiting
for the lock; commits that resolve under an older generation are discarded
instead of being applied to the reloaded tree.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from ..api.errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
    ValidationError,
)
from ..models.enums import CardStatus, Priority
from ..models.results import ErrorKind, ErrorSurface, OperationResult, SyncError
from ..models.view import (
    DEFAULT_BOARD_COLOR,
    UNKNOWN_USER,
    BoardView,
    CardDraft,
    CardView,
    ListView,
    ProjectView,
    UserRef,
)
from .converter import convert_assignees, convert_board, convert_card, convert_list, convert_project
from .state import (
    BoardSnapshot,
    BoardTreeState,
    Listener,
    insert_card,
    move_card,
    remove_board,
    remove_card,
    replace_board,
    replace_card,
    replace_lists,
)

if TYPE_CHECKING:
    from ..api.protocol import BoardApiProtocol
    from ..notifications import AssignmentNotifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ERROR_KINDS: list[tuple[type[ApiError], ErrorKind]] = [
    (NetworkError, ErrorKind.NETWORK),
    (ValidationError, ErrorKind.VALIDATION),
    (PermissionDeniedError, ErrorKind.PERMISSION),
    (NotFoundError, ErrorKind.NOT_FOUND),
    (ServerError, ErrorKind.SERVER),
]

TEMP_ID_PREFIX = "tmp-"


def to_sync_error(
    error: ApiError,
    operation: str,
    surface: ErrorSurface = ErrorSurface.TRANSIENT,
) -> SyncError:
    """Map an API exception onto a surfaced error value."""
    kind = next((k for cls, k in _ERROR_KINDS if isinstance(error, cls)), ErrorKind.SERVER)
    field_errors = error.field_errors if isinstance(error, ValidationError) else {}
    return SyncError(
        kind=kind,
        message=error.message,
        operation=operation,
        surface=surface,
        field_errors=dict(field_errors),
    )


@dataclass
class PendingMutation:
    """Optimistic mutation record: what to restore if the commit fails.

    Holds the pre-mutation copy of the affected subtree only: the list pair
    for a move, the owning list for create/delete, the card for an edit, or
    the board entry for board-level changes.
    """

    operation: str
    board_id: str
    generation: int
    saved_lists: tuple[ListView, ...] = ()
    saved_card: CardView | None = None
    saved_board: BoardView | None = None
    saved_board_index: int = -1
    saved_active_board_id: str | None = None
    optimistic_active_board_id: str | None = None

    def restore(self, snapshot: BoardSnapshot) -> BoardSnapshot:
        """Put the captured subtree back into ``snapshot``."""
        if self.saved_board is not None:
            boards = [b for b in snapshot.boards if b.id != self.saved_board.id]
            index = self.saved_board_index if 0 <= self.saved_board_index <= len(boards) else len(boards)
            boards.insert(index, self.saved_board)
            active = snapshot.active_board_id
            # a selection made while the commit was in flight wins
            if active == self.optimistic_active_board_id:
                active = self.saved_active_board_id
            return snapshot.model_copy(update={"boards": tuple(boards), "active_board_id": active})
        board = snapshot.get_board(self.board_id)
        if board is None:
            return snapshot
        if self.saved_lists:
            board = replace_lists(board, *self.saved_lists)
        if self.saved_card is not None:
            board = replace_card(board, self.saved_card)
        return replace_board(snapshot, board)


class BoardSyncEngine:
    """Keeps the Board Tree State consistent with the remote store.

    Every public operation is a coroutine that resolves to an
    ``OperationResult``; recoverable ``ApiError``s never escape. Load
    failures set ``load_error`` (blocking); mutation failures roll back and
    set ``last_error`` (dismissible with ``clear_error``).
    """

    def __init__(
        self,
        api: BoardApiProtocol,
        notifier: AssignmentNotifier | None = None,
        state: BoardTreeState | None = None,
        current_user_id: str | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            api: Remote store client
            notifier: Optional assignment notification side channel
            state: Board Tree State to publish into (a fresh one by default)
            current_user_id: Reported as the assigner in notifications
        """
        self._api = api
        self._notifier = notifier
        self.state = state or BoardTreeState()
        self.current_user_id = current_user_id

        self.project: ProjectView | None = None
        self.load_error: SyncError | None = None
        self.last_error: SyncError | None = None
        self.loading = False

        self._lock = asyncio.Lock()
        self._generation = 0
        self._notification_tasks: set[asyncio.Task] = set()

    # --- Accessors ---

    @property
    def snapshot(self) -> BoardSnapshot:
        return self.state.snapshot

    @property
    def boards(self) -> tuple[BoardView, ...]:
        return self.state.snapshot.boards

    @property
    def active_board(self) -> BoardView | None:
        return self.state.snapshot.active_board

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        """Whether an operation currently holds the mutation lock."""
        return self._lock.locked()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for every published snapshot."""
        return self.state.subscribe(listener)

    def clear_error(self) -> None:
        """Dismiss the transient mutation error."""
        self.last_error = None

    def _is_live(self, generation: int) -> bool:
        return generation == self._generation

    def _fail(
        self,
        error: SyncError,
        *,
        rolled_back: bool = False,
    ) -> OperationResult:
        if error.surface == ErrorSurface.BLOCKING:
            self.load_error = error
        else:
            self.last_error = error
        logger.warning("%s failed (%s): %s", error.operation, error.kind.value, error.message)
        return OperationResult.failure(error, rolled_back=rolled_back)

    def _local_error(self, operation: str, message: str, kind: ErrorKind = ErrorKind.NOT_FOUND) -> OperationResult:
        return self._fail(SyncError(kind=kind, message=message, operation=operation))

    # --- Loading ---

    async def load_project(self, project_id: str) -> OperationResult:
        """Fetch the project, its membership and boards, and select a board.

        Keeps the current active board if it still exists, otherwise selects
        the first board. NotFound and PermissionDenied are surfaced as a
        blocking ``load_error`` and not retried.
        """
        self._generation += 1
        generation = self._generation
        async with self._lock:
            if not self._is_live(generation):
                logger.info("Superseded load of project %s skipped", project_id)
                return OperationResult.success(noop=True)

            self.loading = True
            self.load_error = None
            logger.info("Loading project %s", project_id)
            try:
                wire_project = await self._api.get_project(project_id)
                project = convert_project(wire_project)
                wire_boards = await self._api.get_project_boards(project_id)
                boards: list[BoardView] = []
                for wire_board in wire_boards:
                    lists = wire_board.lists
                    if lists is None:
                        lists = await self._api.get_board_lists(wire_board.id)
                    boards.append(convert_board(wire_board, lists, project))
            except ApiError as e:
                if not self._is_live(generation):
                    return OperationResult.success(noop=True)
                self.project = None
                self.state.reset()
                return self._fail(to_sync_error(e, "load_project", ErrorSurface.BLOCKING))
            finally:
                self.loading = False

            if not self._is_live(generation):
                logger.info("Discarding stale load of project %s", project_id)
                return OperationResult.success(noop=True)

            previous_active = self.snapshot.active_board_id
            board_ids = [board.id for board in boards]
            if previous_active in board_ids:
                active = previous_active
            else:
                active = board_ids[0] if board_ids else None

            self.project = project
            self.state.publish(BoardSnapshot(boards=tuple(boards), active_board_id=active))
            logger.info(
                "Loaded project %s: %d boards, active=%s", project_id, len(boards), active
            )
            return OperationResult.success(project)

    async def select_board(self, board_id: str) -> OperationResult:
        """Make a loaded board the active one."""
        if self.snapshot.get_board(board_id) is None:
            return self._local_error("select_board", f"Board not found: {board_id}")
        if self.snapshot.active_board_id != board_id:
            self.state.publish(self.snapshot.model_copy(update={"active_board_id": board_id}))
            logger.debug("Active board: %s", board_id)
        return OperationResult.success(self.active_board)

    async def refresh_board(self) -> OperationResult:
        """Re-fetch the active board's lists and replace the board wholesale."""
        generation = self._generation
        async with self._lock:
            board = self.active_board
            if board is None:
                return self._local_error("refresh_board", "No active board")
            try:
                lists = await self._api.get_board_lists(board.id)
            except ApiError as e:
                return self._fail(to_sync_error(e, "refresh_board"))
            if not self._is_live(generation):
                return OperationResult.success(noop=True)
            seen: set[str] = set()
            converted: list[ListView] = []
            for wire_list in lists:
                lst = convert_list(wire_list, self.project, frozenset(seen))
                seen.update(lst.card_ids)
                converted.append(lst)
            refreshed = board.model_copy(update={"lists": tuple(converted)})
            self.state.publish_board(refreshed)
            return OperationResult.success(refreshed)

    # --- Optimistic mutation core ---

    async def _commit(
        self,
        record: PendingMutation,
        optimistic: BoardSnapshot,
        commit: Callable[[], Awaitable[T]],
        reconcile: Callable[[BoardSnapshot, T], BoardSnapshot] | None = None,
    ) -> OperationResult:
        """Publish the optimistic snapshot, commit remotely, then reconcile or roll back.

        Must be called with the lock held.
        """
        record.optimistic_active_board_id = optimistic.active_board_id
        self.state.publish(optimistic)
        try:
            result = await commit()
        except ApiError as e:
            if not self._is_live(record.generation):
                logger.info("%s failed after reload, ignoring", record.operation)
                return OperationResult.failure(to_sync_error(e, record.operation))
            self.state.publish(record.restore(self.snapshot))
            logger.info("%s rolled back", record.operation)
            return self._fail(to_sync_error(e, record.operation), rolled_back=True)

        if not self._is_live(record.generation):
            logger.info("%s confirmed after reload, result discarded", record.operation)
            return OperationResult.success(result, noop=True)
        if reconcile is not None:
            self.state.publish(reconcile(self.snapshot, result))
        return OperationResult.success(result)

    # --- Boards ---

    async def create_board(
        self,
        title: str,
        description: str | None = None,
        color: str | None = None,
    ) -> OperationResult:
        """Create a board remotely, then append it (no local id exists before)."""
        generation = self._generation
        async with self._lock:
            project = self.project
            if project is None:
                return self._local_error("create_board", "No project loaded")
            try:
                wire_board = await self._api.create_board(
                    project.id, title, description, color or DEFAULT_BOARD_COLOR
                )
                lists = wire_board.lists
                if lists is None:
                    lists = await self._api.get_board_lists(wire_board.id)
            except ApiError as e:
                return self._fail(to_sync_error(e, "create_board"))
            if not self._is_live(generation):
                return OperationResult.success(noop=True)

            board = convert_board(wire_board, lists, project)
            snapshot = replace_board(self.snapshot, board)
            if snapshot.active_board_id is None:
                snapshot = snapshot.model_copy(update={"active_board_id": board.id})
            self.state.publish(snapshot)
            logger.info("Board created: %s (%s)", board.id, board.title)
            return OperationResult.success(board)

    async def update_board(
        self,
        board_id: str,
        title: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> OperationResult:
        """Optimistically patch a board's title, description or color."""
        patch = {
            key: value
            for key, value in (("title", title), ("description", description), ("color", color))
            if value is not None
        }
        async with self._lock:
            board = self.snapshot.get_board(board_id)
            if board is None:
                return self._local_error("update_board", f"Board not found: {board_id}")
            if not patch:
                return OperationResult.success(board, noop=True)
            record = self._board_record("update_board", board)

            def reconcile(snapshot: BoardSnapshot, wire_board: Any) -> BoardSnapshot:
                current = snapshot.get_board(board_id)
                if current is None:
                    return snapshot
                confirmed = convert_board(wire_board, [], self.project)
                return replace_board(
                    snapshot,
                    current.model_copy(
                        update={
                            "title": confirmed.title,
                            "description": confirmed.description,
                            "color": confirmed.color,
                        }
                    ),
                )

            return await self._commit(
                record,
                replace_board(self.snapshot, board.model_copy(update=patch)),
                lambda: self._api.update_board(board_id, patch),
                reconcile,
            )

    async def delete_board(self, board_id: str) -> OperationResult:
        """Optimistically remove a board."""
        async with self._lock:
            board = self.snapshot.get_board(board_id)
            if board is None:
                return self._local_error("delete_board", f"Board not found: {board_id}")
            record = self._board_record("delete_board", board)
            return await self._commit(
                record,
                remove_board(self.snapshot, board_id),
                lambda: self._api.delete_board(board_id),
            )

    def _board_record(self, operation: str, board: BoardView) -> PendingMutation:
        index = next(i for i, b in enumerate(self.snapshot.boards) if b.id == board.id)
        return PendingMutation(
            operation=operation,
            board_id=board.id,
            generation=self._generation,
            saved_board=board,
            saved_board_index=index,
            saved_active_board_id=self.snapshot.active_board_id,
        )

    # --- Lists ---

    async def create_list(self, board_id: str, title: str, list_type: str = "custom") -> OperationResult:
        """Create a list remotely, then append it to the board."""
        generation = self._generation
        async with self._lock:
            if self.snapshot.get_board(board_id) is None:
                return self._local_error("create_list", f"Board not found: {board_id}")
            try:
                wire_list = await self._api.create_list(board_id, title, list_type)
            except ApiError as e:
                return self._fail(to_sync_error(e, "create_list"))
            if not self._is_live(generation):
                return OperationResult.success(noop=True)
            board = self.snapshot.get_board(board_id)
            if board is None:
                return OperationResult.success(noop=True)
            lst = convert_list(wire_list, self.project, frozenset(c.id for c in board.cards))
            self.state.publish_board(board.model_copy(update={"lists": (*board.lists, lst)}))
            return OperationResult.success(lst)

    # --- Cards ---

    async def move_card(
        self,
        card_id: str,
        from_list_id: str,
        to_list_id: str,
        target_index: int = -1,
    ) -> OperationResult:
        """Move a card to another list.

        The card is removed from the source list and inserted at
        ``target_index`` in the destination (negative appends) before the
        remote call is issued. On failure both lists are restored verbatim.
        A move within the same list is a no-op with no remote call.
        """
        if from_list_id == to_list_id:
            logger.debug("move_card: %s stays in %s, no-op", card_id, from_list_id)
            return OperationResult.success(noop=True)

        async with self._lock:
            board = self.snapshot.board_of_list(from_list_id)
            source = board.get_list(from_list_id) if board else None
            dest = board.get_list(to_list_id) if board else None
            if board is None or source is None or dest is None:
                return self._local_error("move_card", f"Unknown list: {from_list_id} -> {to_list_id}")
            if source.index_of(card_id) < 0:
                return self._local_error("move_card", f"Card {card_id} is not in list {from_list_id}")

            index = target_index if 0 <= target_index <= len(dest.cards) else len(dest.cards)
            record = PendingMutation(
                operation="move_card",
                board_id=board.id,
                generation=self._generation,
                saved_lists=(source, dest),
            )

            def reconcile(snapshot: BoardSnapshot, wire_card: Any) -> BoardSnapshot:
                if wire_card is None:
                    return snapshot
                current = snapshot.get_board(board.id)
                if current is None:
                    return snapshot
                return replace_board(snapshot, replace_card(current, convert_card(wire_card, self.project)))

            result = await self._commit(
                record,
                replace_board(self.snapshot, move_card(board, card_id, from_list_id, to_list_id, index)),
                lambda: self._api.move_card(card_id, to_list_id, index),
                reconcile,
            )
            if result.ok:
                logger.info("Card moved: %s (%s -> %s @%d)", card_id, from_list_id, to_list_id, index)
            return result

    async def create_card(self, list_id: str, draft: CardDraft) -> OperationResult:
        """Insert a placeholder card, create it remotely, then swap in the real one."""
        if not draft.title:
            return self._local_error("create_card", "Card title is required", ErrorKind.VALIDATION)

        async with self._lock:
            board = self.snapshot.board_of_list(list_id)
            lst = board.get_list(list_id) if board else None
            if board is None or lst is None:
                return self._local_error("create_card", f"List not found: {list_id}")

            assignee_ids = self._member_ids(draft.assignees or [], "create_card")
            placeholder = CardView(
                id=f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}",
                title=draft.title,
                description=draft.description or "",
                priority=draft.priority or Priority.MEDIUM,
                status=draft.status or CardStatus.OPEN,
                due_date=draft.due_date,
                start_date=draft.start_date,
                assignees=self._user_refs(assignee_ids),
                labels=tuple(draft.labels or ()),
                position=len(lst.cards),
                pending=True,
            )
            record = PendingMutation(
                operation="create_card",
                board_id=board.id,
                generation=self._generation,
                saved_lists=(lst,),
            )
            payload = draft.model_copy(update={"assignees": assignee_ids} if draft.assignees is not None else {})

            def reconcile(snapshot: BoardSnapshot, wire_card: Any) -> BoardSnapshot:
                current = snapshot.get_board(board.id)
                if current is None:
                    return snapshot
                card = convert_card(wire_card, self.project)
                return replace_board(snapshot, replace_card(current, card, old_id=placeholder.id))

            result = await self._commit(
                record,
                replace_board(self.snapshot, insert_card(board, list_id, placeholder)),
                lambda: self._api.create_card(list_id, payload.to_payload()),
                reconcile,
            )
            if not result.ok or result.noop:
                return result

            card = convert_card(result.value, self.project)
            logger.info("Card created: %s in %s", card.id, list_id)
            self._notify_new_assignees(card, set(), list(card.assignee_ids))
            return OperationResult.success(card)

    async def update_card(self, card_id: str, draft: CardDraft) -> OperationResult:
        """Optimistically patch a card; on success replace it with the server copy."""
        async with self._lock:
            board = self.snapshot.board_of_card(card_id)
            card = board.get_card(card_id) if board else None
            if board is None or card is None:
                return self._local_error("update_card", f"Card not found: {card_id}")

            previous = set(card.assignee_ids)
            patch: dict[str, Any] = {
                key: getattr(draft, key)
                for key in ("title", "description", "priority", "status", "due_date", "start_date")
                if getattr(draft, key) is not None
            }
            assignee_ids: list[str] | None = None
            if draft.assignees is not None:
                assignee_ids = self._member_ids(draft.assignees, "update_card")
                patch["assignees"] = self._user_refs(assignee_ids)
            if draft.labels is not None:
                patch["labels"] = tuple(draft.labels)

            record = PendingMutation(
                operation="update_card",
                board_id=board.id,
                generation=self._generation,
                saved_card=card,
            )
            payload = draft.model_copy(update={"assignees": assignee_ids} if assignee_ids is not None else {})

            def reconcile(snapshot: BoardSnapshot, wire_card: Any) -> BoardSnapshot:
                current = snapshot.get_board(board.id)
                if current is None:
                    return snapshot
                return replace_board(snapshot, replace_card(current, convert_card(wire_card, self.project)))

            result = await self._commit(
                record,
                replace_board(self.snapshot, replace_card(board, card.model_copy(update=patch))),
                lambda: self._api.update_card(card_id, payload.to_payload()),
                reconcile,
            )
            if not result.ok or result.noop:
                return result

            updated = convert_card(result.value, self.project)
            if assignee_ids is not None:
                self._notify_new_assignees(updated, previous, list(updated.assignee_ids))
            return OperationResult.success(updated)

    async def delete_card(self, card_id: str) -> OperationResult:
        """Optimistically remove a card; restore its list on failure."""
        async with self._lock:
            board = self.snapshot.board_of_card(card_id)
            lst = board.list_of(card_id) if board else None
            if board is None or lst is None:
                return self._local_error("delete_card", f"Card not found: {card_id}")
            record = PendingMutation(
                operation="delete_card",
                board_id=board.id,
                generation=self._generation,
                saved_lists=(lst,),
            )
            result = await self._commit(
                record,
                replace_board(self.snapshot, remove_card(board, card_id)),
                lambda: self._api.delete_card(card_id),
            )
            if result.ok:
                logger.info("Card deleted: %s", card_id)
            return result

    async def assign_users(self, card_id: str, user_ids: list[str]) -> OperationResult:
        """Replace a card's assignee set and notify only newly added users.

        The delta is computed against the assignee set held immediately
        before this call, so re-assigning an already assigned user never
        re-notifies.
        """
        async with self._lock:
            board = self.snapshot.board_of_card(card_id)
            card = board.get_card(card_id) if board else None
            if board is None or card is None:
                return self._local_error("assign_users", f"Card not found: {card_id}")

            previous = set(card.assignee_ids)
            requested = self._member_ids(user_ids, "assign_users")
            record = PendingMutation(
                operation="assign_users",
                board_id=board.id,
                generation=self._generation,
                saved_card=card,
            )

            def reconcile(snapshot: BoardSnapshot, resolved: Any) -> BoardSnapshot:
                current = snapshot.get_board(board.id)
                current_card = current.get_card(card_id) if current else None
                if current is None or current_card is None:
                    return snapshot
                assignees = convert_assignees(list(resolved or []), self.project)
                return replace_board(
                    snapshot, replace_card(current, current_card.model_copy(update={"assignees": assignees}))
                )

            result = await self._commit(
                record,
                replace_board(
                    self.snapshot,
                    replace_card(board, card.model_copy(update={"assignees": self._user_refs(requested)})),
                ),
                lambda: self._api.assign_users(card_id, requested),
                reconcile,
            )
            if not result.ok or result.noop:
                return result

            confirmed = self.snapshot.board_of_card(card_id)
            updated = confirmed.get_card(card_id) if confirmed else None
            if updated is None:
                return OperationResult.success(noop=True)
            self._notify_new_assignees(updated, previous, list(updated.assignee_ids))
            logger.info("Card %s assignees: %s", card_id, ", ".join(updated.assignee_ids) or "(none)")
            return OperationResult.success(updated)

    # --- Server-generated content: commit first, then re-fetch the card ---

    async def add_comment(self, card_id: str, text: str, mentions: list[str] | None = None) -> OperationResult:
        """Post a comment, then replace the card with a fresh copy."""
        if not text.strip():
            return self._local_error("add_comment", "Comment text is required", ErrorKind.VALIDATION)
        return await self._commit_then_refetch(
            "add_comment", card_id, lambda: self._api.add_comment(card_id, text, mentions)
        )

    async def upload_attachment(
        self,
        card_id: str,
        filename: str,
        content: bytes,
        mime_type: str = "application/octet-stream",
    ) -> OperationResult:
        """Upload an attachment, then replace the card with a fresh copy."""
        return await self._commit_then_refetch(
            "upload_attachment",
            card_id,
            lambda: self._api.upload_attachment(card_id, filename, content, mime_type),
        )

    async def delete_attachment(self, card_id: str, attachment_id: str) -> OperationResult:
        """Delete an attachment, then replace the card with a fresh copy."""
        return await self._commit_then_refetch(
            "delete_attachment",
            card_id,
            lambda: self._api.delete_attachment(card_id, attachment_id),
        )

    async def _commit_then_refetch(
        self,
        operation: str,
        card_id: str,
        commit: Callable[[], Awaitable[Any]],
    ) -> OperationResult:
        generation = self._generation
        async with self._lock:
            if self.snapshot.board_of_card(card_id) is None:
                return self._local_error(operation, f"Card not found: {card_id}")
            try:
                await commit()
                wire_card = await self._api.get_card(card_id)
            except ApiError as e:
                return self._fail(to_sync_error(e, operation))
            if not self._is_live(generation):
                return OperationResult.success(noop=True)

            board = self.snapshot.board_of_card(card_id)
            if board is None:
                return OperationResult.success(noop=True)
            card = convert_card(wire_card, self.project)
            self.state.publish_board(replace_card(board, card))
            logger.info("%s: card %s refreshed", operation, card_id)
            return OperationResult.success(card)

    # --- Membership helpers ---

    def _member_ids(self, user_ids: list[str], operation: str) -> list[str]:
        """Deduplicate ids (keeping order) and drop ids that are not project members."""
        unique = list(dict.fromkeys(user_ids))
        if self.project is None or not self.project.members:
            return unique
        members = self.project.member_ids
        kept = [uid for uid in unique if uid in members]
        dropped = [uid for uid in unique if uid not in members]
        if dropped:
            logger.warning("%s: ignoring non-member assignees %s", operation, dropped)
        return kept

    def _user_refs(self, user_ids: list[str]) -> tuple[UserRef, ...]:
        refs: list[UserRef] = []
        for uid in user_ids:
            member = self.project.get_member(uid) if self.project else None
            refs.append(member.user if member else UserRef(id=uid, name=UNKNOWN_USER))
        return tuple(refs)

    # --- Notification side channel ---

    def _notify_new_assignees(self, card: CardView, previous: set[str], current: list[str]) -> None:
        """Schedule notifications for ids in ``current`` that were not in ``previous``."""
        delta = [uid for uid in current if uid not in previous]
        if not delta or self._notifier is None or self.project is None:
            return
        logger.debug("Notifying newly assigned users %s for card %s", delta, card.id)
        task = asyncio.create_task(
            self._notifier.notify_assignment(
                delta,
                card.id,
                card.title,
                self.project.id,
                self.project.title,
                self.current_user_id,
            )
        )
        self._notification_tasks.add(task)
        task.add_done_callback(self._notification_done)

    def _notification_done(self, task: asyncio.Task) -> None:
        self._notification_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Assignment notification task failed: %r", exc)

    async def drain_notifications(self) -> None:
        """Wait for all scheduled notifications to settle."""
        if self._notification_tasks:
            await asyncio.gather(*self._notification_tasks, return_exceptions=True)

    async def close(self) -> None:
        """Invalidate in-flight results and settle outstanding notifications."""
        self._generation += 1
        await self.drain_notifications()
