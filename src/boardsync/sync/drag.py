"""Drag-and-drop coordination for card moves.

The coordinator turns pointer (or keyboard) gestures into at most one
``move_card`` call on the engine. It owns no board data: source and
destination are resolved against the engine's current snapshot and the
droppable regions reported by the UI.

States: IDLE -> DRAGGING -> RESOLVING -> (COMMITTED | ROLLED_BACK) -> IDLE
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from textual.geometry import Offset, Region

from ..models.results import OperationResult

if TYPE_CHECKING:
    from .engine import BoardSyncEngine

logger = logging.getLogger(__name__)

DRAG_THRESHOLD = 3


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESOLVING = "resolving"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class DroppableKind(str, Enum):
    LIST = "list"
    CARD = "card"


@dataclass(frozen=True)
class Droppable:
    """A screen region that can receive a dropped card.

    ``list_id`` is the list itself for LIST droppables and the owning list
    for CARD droppables.
    """

    id: str
    kind: DroppableKind
    list_id: str
    region: Region

    @property
    def corners(self) -> tuple[Offset, Offset, Offset, Offset]:
        x, y, width, height = self.region
        right = x + max(width - 1, 0)
        bottom = y + max(height - 1, 0)
        return (Offset(x, y), Offset(right, y), Offset(x, bottom), Offset(right, bottom))

    def mean_corner_distance(self, point: Offset) -> float:
        return sum(point.get_distance_to(corner) for corner in self.corners) / 4


@dataclass(frozen=True)
class DragOutcome:
    """What a finished gesture did."""

    state: DragState
    card_id: str | None = None
    from_list_id: str | None = None
    to_list_id: str | None = None
    target_index: int = -1
    result: OperationResult | None = None

    @property
    def moved(self) -> bool:
        return self.state == DragState.COMMITTED and self.result is not None and not self.result.noop


class DragCoordinator:
    """Single-drag state machine in front of ``BoardSyncEngine.move_card``."""

    def __init__(self, engine: BoardSyncEngine, threshold: int = DRAG_THRESHOLD) -> None:
        self.engine = engine
        self.threshold = threshold
        self.state = DragState.IDLE
        self.card_id: str | None = None
        self.source_list_id: str | None = None
        self._press_point: Offset | None = None
        self._pending_card_id: str | None = None

    @property
    def is_dragging(self) -> bool:
        return self.state == DragState.DRAGGING

    @property
    def is_pending(self) -> bool:
        """A press has been recorded but the threshold not yet crossed."""
        return self._press_point is not None

    def _source_of(self, card_id: str) -> str | None:
        board = self.engine.active_board
        lst = board.list_of(card_id) if board else None
        return lst.id if lst else None

    def press(self, card_id: str, point: Offset) -> bool:
        """Record a pending gesture on a card. Ignored unless IDLE."""
        if self.state != DragState.IDLE or self._press_point is not None:
            return False
        if self._source_of(card_id) is None:
            return False
        self._press_point = point
        self._pending_card_id = card_id
        return True

    def motion(self, point: Offset) -> bool:
        """Track pointer movement; returns True when the drag activates."""
        if self._press_point is None or self._pending_card_id is None:
            return False
        dx = abs(point.x - self._press_point.x)
        dy = abs(point.y - self._press_point.y)
        if dx <= self.threshold and dy <= self.threshold:
            return False
        card_id = self._pending_card_id
        self._press_point = None
        self._pending_card_id = None
        return self._start(card_id)

    def release(self) -> None:
        """Forget a press that never became a drag (a click)."""
        self._press_point = None
        self._pending_card_id = None

    def keyboard_pickup(self, card_id: str) -> bool:
        """Start a drag directly, without an activation distance."""
        if self.state != DragState.IDLE or self._press_point is not None:
            return False
        return self._start(card_id)

    def _start(self, card_id: str) -> bool:
        source = self._source_of(card_id)
        if source is None:
            return False
        self.state = DragState.DRAGGING
        self.card_id = card_id
        self.source_list_id = source
        logger.debug("Drag started: %s from %s", card_id, source)
        return True

    def cancel(self) -> DragOutcome:
        """Abandon the current gesture without calling the engine."""
        self.release()
        if self.state != DragState.DRAGGING:
            return DragOutcome(state=DragState.IDLE)
        return self._finish(DragState.ROLLED_BACK)

    def resolve_destination(self, point: Offset, droppables: list[Droppable]) -> tuple[str, int] | None:
        """Find the destination list and insertion index for a drop at ``point``."""
        if not droppables:
            return None
        lists_under = [d for d in droppables if d.kind == DroppableKind.LIST and point in d.region]
        cards_under = [
            d for d in droppables if d.kind == DroppableKind.CARD and point in d.region and d.id != self.card_id
        ]
        if lists_under:
            list_id = lists_under[0].list_id
            for card in cards_under:
                if card.list_id == list_id:
                    return list_id, self._card_index(card)
            return list_id, -1
        if cards_under:
            return cards_under[0].list_id, self._card_index(cards_under[0])
        closest = min(droppables, key=lambda d: d.mean_corner_distance(point))
        if closest.kind == DroppableKind.CARD:
            return closest.list_id, self._card_index(closest)
        return closest.list_id, -1

    def _card_index(self, droppable: Droppable) -> int:
        board = self.engine.active_board
        lst = board.get_list(droppable.list_id) if board else None
        if lst is None:
            return -1
        index = lst.index_of(droppable.id)
        return index if index >= 0 else -1

    async def drop(self, point: Offset, droppables: list[Droppable]) -> DragOutcome:
        """Finish a pointer drag at ``point``."""
        if self.state != DragState.DRAGGING:
            self.release()
            return DragOutcome(state=DragState.IDLE)
        destination = self.resolve_destination(point, droppables)
        if destination is None:
            logger.debug("Drop of %s over nothing, cancelled", self.card_id)
            return self._finish(DragState.ROLLED_BACK)
        to_list_id, index = destination
        return await self._commit(to_list_id, index)

    async def keyboard_drop(self, offset: int) -> DragOutcome:
        """Finish a keyboard drag into the list ``offset`` columns away."""
        if self.state != DragState.DRAGGING:
            return DragOutcome(state=DragState.IDLE)
        board = self.engine.active_board
        if board is None or self.source_list_id not in board.list_ids:
            return self._finish(DragState.ROLLED_BACK)
        list_ids = board.list_ids
        index = list_ids.index(self.source_list_id) + offset
        index = max(0, min(index, len(list_ids) - 1))
        return await self._commit(list_ids[index], -1)

    async def _commit(self, to_list_id: str, target_index: int) -> DragOutcome:
        card_id = self.card_id
        from_list_id = self.source_list_id
        if to_list_id == from_list_id:
            logger.debug("Drop of %s in its own list, nothing to do", card_id)
            return self._finish(DragState.IDLE, to_list_id=to_list_id)

        self.state = DragState.RESOLVING
        result: OperationResult | None = None
        try:
            result = await self.engine.move_card(card_id, from_list_id, to_list_id, target_index)
        finally:
            # back to IDLE even when move_card raises
            final = DragState.COMMITTED if result is not None and result.ok else DragState.ROLLED_BACK
            outcome = self._finish(final, to_list_id=to_list_id, target_index=target_index, result=result)
        return outcome

    def _finish(
        self,
        state: DragState,
        to_list_id: str | None = None,
        target_index: int = -1,
        result: OperationResult | None = None,
    ) -> DragOutcome:
        outcome = DragOutcome(
            state=state,
            card_id=self.card_id,
            from_list_id=self.source_list_id,
            to_list_id=to_list_id,
            target_index=target_index,
            result=result,
        )
        logger.debug("Drag finished: %s", outcome)
        self.state = DragState.IDLE
        self.card_id = None
        self.source_list_id = None
        return outcome
