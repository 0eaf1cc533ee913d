"""Board, list column and card widgets."""

from __future__ import annotations

import re

from textual import events
from textual.actions import SkipAction
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Static

from ..models.enums import Priority
from ..models.view import BoardView, CardView, ListView
from ..sync.drag import DragCoordinator, DragOutcome, Droppable, DroppableKind

PRIORITY_DISPLAY: dict[Priority, tuple[str, str]] = {
    Priority.LOW: ("○", "dim"),
    Priority.MEDIUM: ("●", "yellow"),
    Priority.HIGH: ("●", "dark_orange"),
    Priority.URGENT: ("▲", "red"),
}


def css_id(raw_id: str) -> str:
    """CSS-safe version of a remote id (ids may contain any character)."""
    safe_id = re.sub(r"[^a-zA-Z0-9\-_]", "-", raw_id).strip("-").lower()
    return safe_id or "x"


class CardScroll(VerticalScroll):
    """Scroll container that lets navigation keys bubble to the App."""

    def action_scroll_up(self) -> None:
        raise SkipAction()

    def action_scroll_down(self) -> None:
        raise SkipAction()

    def action_scroll_home(self) -> None:
        raise SkipAction()

    def action_scroll_end(self) -> None:
        raise SkipAction()


class CardWidget(Widget, can_focus=True):
    """A card displayed in a list column."""

    DEFAULT_CSS = """
    CardWidget {
        height: auto;
        border: round $primary-background;
        padding: 0 1;
        margin-bottom: 1;
    }
    CardWidget:focus {
        border: round $accent;
    }
    CardWidget.pending {
        opacity: 60%;
    }
    CardWidget.picked {
        border: double $warning;
    }
    """

    def __init__(self, card: CardView, list_id: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.card = card
        self.list_id = list_id
        if card.pending:
            self.add_class("pending")

    def compose(self) -> ComposeResult:
        yield Static(self._truncate(self.card.title, 40), classes="card-title")
        yield Static(self._format_meta(), classes="card-meta")
        if self.card.labels:
            yield Static(
                " ".join(f"[{label.color}]#{label.name}[/]" for label in self.card.labels),
                classes="card-labels",
            )
        if self.card.assignees:
            yield Static(
                ", ".join(f"@{user.name}" for user in self.card.assignees),
                classes="card-assignees",
            )

    def _format_meta(self) -> str:
        symbol, color = PRIORITY_DISPLAY.get(self.card.priority, ("●", "white"))
        parts = [f"[{color}]{symbol}[/] {self.card.priority.value}"]
        if self.card.checklist:
            parts.append(f"[dim]{self.card.checklist_completion}%[/]")
        if self.card.comments:
            parts.append(f"[dim]\U0001f4ac {len(self.card.comments)}[/]")
        if self.card.is_overdue:
            parts.append("[red]overdue[/]")
        if self.card.pending:
            parts.append("[dim]saving…[/]")
        return "  ".join(parts)

    @staticmethod
    def _truncate(text: str, max_len: int) -> str:
        if len(text) <= max_len:
            return text
        return text[: max_len - 1] + "…"


class ListColumn(Widget):
    """A single list (column) of the board."""

    DEFAULT_CSS = """
    ListColumn {
        width: 1fr;
        height: 100%;
        border: solid $primary-background-lighten-2;
        padding: 0 1;
    }
    ListColumn.over-limit > .column-header {
        color: $error;
    }
    ListColumn > .column-header {
        text-style: bold;
        width: 100%;
        content-align: center middle;
    }
    """

    def __init__(self, lst: ListView, **kwargs) -> None:
        super().__init__(**kwargs)
        self.list = lst
        if lst.is_over_wip_limit:
            self.add_class("over-limit")

    def compose(self) -> ComposeResult:
        yield Static(self._header_text, classes="column-header")
        with CardScroll(classes="column-content"):
            if not self.list.cards:
                yield Static("[dim]No cards[/]", classes="column-empty")
            for card in self.list.cards:
                yield CardWidget(card, self.list.id, id=f"card-{css_id(card.id)}")

    @property
    def _header_text(self) -> str:
        count = str(len(self.list.cards))
        wip = self.list.wip_limit
        if wip and wip.enabled and wip.limit:
            count = f"{count}/{wip.limit}"
        return f"{self.list.title} [dim]({count})[/]"

    @property
    def cards(self) -> list[CardWidget]:
        return list(self.query(CardWidget))

    def focus_card(self, index: int) -> bool:
        """Focus the card at ``index`` (negative counts from the end)."""
        cards = self.cards
        if not cards:
            return False
        if index < 0:
            index = len(cards) + index
        index = max(0, min(index, len(cards) - 1))
        cards[index].focus()
        cards[index].scroll_visible()
        return True

    def focused_index(self) -> int:
        for index, card in enumerate(self.cards):
            if card.has_focus:
                return index
        return -1


class BoardPanel(Horizontal):
    """The active board as columns, plus mouse drag handling."""

    DEFAULT_CSS = """
    BoardPanel {
        height: 1fr;
    }
    BoardPanel > .board-message {
        width: 100%;
        height: 100%;
        content-align: center middle;
    }
    BoardPanel > .board-message.error {
        color: $error;
    }
    """

    class DragCompleted(Message):
        """Posted when a mouse drag finishes."""

        def __init__(self, outcome: DragOutcome) -> None:
            super().__init__()
            self.outcome = outcome

    def __init__(self, coordinator: DragCoordinator | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.coordinator = coordinator
        self.board: BoardView | None = None
        self.notice: str | None = "Loading…"
        self.is_error = False

    def compose(self) -> ComposeResult:
        if self.notice is not None:
            yield Static(self.notice, classes="board-message error" if self.is_error else "board-message")
            return
        if self.board is None or not self.board.lists:
            yield Static("This board has no lists", classes="board-message")
            return
        for lst in self.board.lists:
            yield ListColumn(lst, id=f"list-{css_id(lst.id)}")

    async def show_board(self, board: BoardView | None) -> None:
        """Re-render for a new board snapshot, keeping focus on the same card."""
        focused = self.focused_card_id
        self.board = board
        self.notice = None if board is not None else "No boards in this project"
        self.is_error = False
        await self.recompose()
        if focused is not None:
            self.focus_card_id(focused)

    async def show_message(self, message: str, error: bool = False) -> None:
        self.board = None
        self.notice = message
        self.is_error = error
        await self.recompose()

    @property
    def columns(self) -> list[ListColumn]:
        return list(self.query(ListColumn))

    @property
    def focused_card_id(self) -> str | None:
        focused = self.screen.focused if self.is_mounted else None
        if isinstance(focused, CardWidget):
            return focused.card.id
        return None

    def focus_card_id(self, card_id: str) -> bool:
        for card in self.query(CardWidget):
            if card.card.id == card_id:
                card.focus()
                card.scroll_visible()
                return True
        return False

    def droppables(self) -> list[Droppable]:
        """Screen regions of every list and card, for drop resolution."""
        targets: list[Droppable] = []
        for column in self.columns:
            targets.append(Droppable(column.list.id, DroppableKind.LIST, column.list.id, column.region))
            for card in column.cards:
                targets.append(Droppable(card.card.id, DroppableKind.CARD, column.list.id, card.region))
        return targets

    # --- Mouse drag ---

    def _card_at(self, event: events.MouseEvent) -> CardWidget | None:
        widget, _ = self.screen.get_widget_at(event.screen_x, event.screen_y)
        node = widget
        while node is not None and node is not self:
            if isinstance(node, CardWidget):
                return node
            node = node.parent
        return None

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if self.coordinator is None or event.button != 1:
            return
        card = self._card_at(event)
        if card is None:
            return
        if self.coordinator.press(card.card.id, event.screen_offset):
            event.stop()
            self.capture_mouse()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self.coordinator is None or not self.coordinator.is_pending:
            return
        if self.coordinator.motion(event.screen_offset):
            self.mark_picked(self.coordinator.card_id)

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self.coordinator is None:
            return
        self.release_mouse()
        if not self.coordinator.is_dragging:
            self.coordinator.release()
            return
        event.stop()
        self.run_worker(self._drop(event.screen_offset, self.droppables()), exclusive=True, group="drag")

    async def _drop(self, point, droppables: list[Droppable]) -> None:
        outcome = await self.coordinator.drop(point, droppables)
        self.mark_picked(None)
        self.post_message(self.DragCompleted(outcome))

    def mark_picked(self, card_id: str | None) -> None:
        for card in self.query(CardWidget):
            card.set_class(card.card.id == card_id, "picked")
