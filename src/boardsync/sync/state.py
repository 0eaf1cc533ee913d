"""Board Tree State: the canonical in-memory board snapshot.

A ``BoardSnapshot`` is immutable. ``BoardTreeState`` holds the current one
and replaces it wholesale on every change with a single assignment, bumping
a monotonically increasing version. The module-level functions are pure
transitions that build new boards from old ones.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from ..models.view import BoardView, CardView, ListView

logger = logging.getLogger(__name__)

Listener = Callable[["BoardSnapshot"], None]


class BoardSnapshot(BaseModel):
    """Immutable snapshot of the loaded boards and which one is active."""

    model_config = ConfigDict(frozen=True)

    version: int = 0
    boards: tuple[BoardView, ...] = ()
    active_board_id: str | None = None

    @property
    def active_board(self) -> BoardView | None:
        if self.active_board_id is None:
            return None
        return self.get_board(self.active_board_id)

    def get_board(self, board_id: str) -> BoardView | None:
        for board in self.boards:
            if board.id == board_id:
                return board
        return None

    def board_of_card(self, card_id: str) -> BoardView | None:
        for board in self.boards:
            if board.list_of(card_id) is not None:
                return board
        return None

    def board_of_list(self, list_id: str) -> BoardView | None:
        for board in self.boards:
            if board.get_list(list_id) is not None:
                return board
        return None


class BoardTreeState:
    """Holder of the current snapshot; publishes replacements to listeners."""

    def __init__(self) -> None:
        self._snapshot = BoardSnapshot()
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> BoardSnapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, snapshot: BoardSnapshot) -> BoardSnapshot:
        """Atomically replace the current snapshot with a new version of it."""
        published = snapshot.model_copy(update={"version": self._snapshot.version + 1})
        self._snapshot = published
        logger.debug(
            "Published snapshot v%d (%d boards, active=%s)",
            published.version,
            len(published.boards),
            published.active_board_id,
        )
        for listener in list(self._listeners):
            listener(published)
        return published

    def publish_board(self, board: BoardView) -> BoardSnapshot:
        """Publish a snapshot with one board replaced."""
        return self.publish(replace_board(self._snapshot, board))

    def reset(self) -> BoardSnapshot:
        return self.publish(BoardSnapshot())


# --- Pure transitions ---


def replace_board(snapshot: BoardSnapshot, board: BoardView) -> BoardSnapshot:
    """Replace the board with the same id (appending it if absent)."""
    if snapshot.get_board(board.id) is None:
        return snapshot.model_copy(update={"boards": (*snapshot.boards, board)})
    boards = tuple(board if b.id == board.id else b for b in snapshot.boards)
    return snapshot.model_copy(update={"boards": boards})


def remove_board(snapshot: BoardSnapshot, board_id: str) -> BoardSnapshot:
    """Remove a board, moving the active selection to the first remaining board."""
    boards = tuple(b for b in snapshot.boards if b.id != board_id)
    active = snapshot.active_board_id
    if active == board_id:
        active = boards[0].id if boards else None
    return snapshot.model_copy(update={"boards": boards, "active_board_id": active})


def replace_lists(board: BoardView, *lists: ListView) -> BoardView:
    """Replace lists by id, keeping board order."""
    by_id = {lst.id: lst for lst in lists}
    return board.model_copy(
        update={"lists": tuple(by_id.get(lst.id, lst) for lst in board.lists)}
    )


def insert_card(board: BoardView, list_id: str, card: CardView, index: int = -1) -> BoardView:
    """Insert a card into a list at ``index`` (negative or past-the-end appends)."""
    lst = board.get_list(list_id)
    if lst is None:
        raise KeyError(f"List not on board: {list_id}")
    cards = list(lst.cards)
    if index < 0 or index > len(cards):
        index = len(cards)
    cards.insert(index, card)
    return replace_lists(board, lst.model_copy(update={"cards": tuple(cards)}))


def remove_card(board: BoardView, card_id: str) -> BoardView:
    """Remove a card from whichever list holds it."""
    lst = board.list_of(card_id)
    if lst is None:
        return board
    cards = tuple(card for card in lst.cards if card.id != card_id)
    return replace_lists(board, lst.model_copy(update={"cards": cards}))


def replace_card(board: BoardView, card: CardView, old_id: str | None = None) -> BoardView:
    """Replace a card in place (by ``old_id`` if given, else by its own id)."""
    target = old_id or card.id
    lst = board.list_of(target)
    if lst is None:
        return board
    cards = tuple(card if c.id == target else c for c in lst.cards)
    return replace_lists(board, lst.model_copy(update={"cards": cards}))


def move_card(
    board: BoardView,
    card_id: str,
    from_list_id: str,
    to_list_id: str,
    target_index: int = -1,
) -> BoardView:
    """Move a card between lists.

    The card is removed from the source list and inserted at
    ``target_index`` in the destination (negative appends). Moving within
    the same list returns the board unchanged.
    """
    if from_list_id == to_list_id:
        return board
    source = board.get_list(from_list_id)
    dest = board.get_list(to_list_id)
    if source is None or dest is None:
        raise KeyError(f"Unknown list in move: {from_list_id} -> {to_list_id}")
    index = source.index_of(card_id)
    if index < 0:
        raise KeyError(f"Card {card_id} is not in list {from_list_id}")
    card = source.cards[index]
    new_source = source.model_copy(update={"cards": source.cards[:index] + source.cards[index + 1 :]})
    dest_cards = list(dest.cards)
    if target_index < 0 or target_index > len(dest_cards):
        target_index = len(dest_cards)
    dest_cards.insert(target_index, card)
    new_dest = dest.model_copy(update={"cards": tuple(dest_cards)})
    return replace_lists(board, new_source, new_dest)


def partition_violations(board: BoardView) -> list[str]:
    """Return card ids that appear in more than one place on the board."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for lst in board.lists:
        for card in lst.cards:
            if card.id in seen:
                duplicates.append(card.id)
            seen.add(card.id)
    return duplicates


def has_valid_partition(board: BoardView) -> bool:
    """True when every card belongs to exactly one list."""
    return not partition_violations(board)
