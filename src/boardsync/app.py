"""boardsync TUI Application."""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from .api.client import BoardApiClient
from .models.boardsync_config import BoardsyncConfig
from .models.results import OperationResult
from .models.view import CardDraft
from .notifications import AssignmentNotifier
from .sync.drag import DragCoordinator, DragState
from .sync.engine import BoardSyncEngine
from .sync.state import BoardSnapshot
from .ui.widgets import BoardPanel, ListColumn

logger = logging.getLogger(__name__)


class BoardsyncApp(App):
    """boardsync - terminal kanban client."""

    TITLE = "boardsync"

    BINDINGS = [
        # Core bindings
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("[", "prev_board", "Prev board", show=True),
        Binding("]", "next_board", "Next board", show=True),
        # Navigation - vim style
        Binding("h", "nav_left", "← List", show=False),
        Binding("j", "nav_down", "↓ Card", show=False),
        Binding("k", "nav_up", "↑ Card", show=False),
        Binding("l", "nav_right", "→ List", show=False),
        # Navigation - arrow keys
        Binding("left", "nav_left", "← List", show=False),
        Binding("down", "nav_down", "↓ Card", show=False),
        Binding("up", "nav_up", "↑ Card", show=False),
        Binding("right", "nav_right", "→ List", show=False),
        # Card actions
        Binding("n", "new_card", "New", show=True),
        Binding("d", "delete_card", "Delete", show=False),
        Binding("space", "pickup", "Pick up", show=True),
        Binding("H", "move_card(-1)", "Move ←", show=False),
        Binding("L", "move_card(1)", "Move →", show=False),
        Binding("shift+left", "move_card(-1)", "Move ←", show=False),
        Binding("shift+right", "move_card(1)", "Move →", show=False),
        Binding("escape", "cancel_drag", "Cancel", show=False),
    ]

    def __init__(
        self,
        config: BoardsyncConfig,
        project_id: str,
        token: str | None = None,
        board_id: str | None = None,
        config_error: str | None = None,
    ) -> None:
        super().__init__()
        self.config = config
        self.project_id = project_id
        self.initial_board_id = board_id
        self.config_error = config_error
        self._init_services(token)

    def _init_services(self, token: str | None) -> None:
        """Initialize the API client, notifier, engine and drag coordinator."""
        self.api = BoardApiClient(self.config.api.url, token=token, timeout=self.config.api.timeout)
        self.notifier = AssignmentNotifier(
            self.config.notifications.url or self.config.api.url,
            token=token,
            timeout=self.config.notifications.timeout,
            enabled=self.config.notifications.enabled,
        )
        self.engine = BoardSyncEngine(self.api, self.notifier)
        self.coordinator = DragCoordinator(self.engine, threshold=self.config.ui.drag_threshold)
        self._unsubscribe = self.engine.subscribe(self._on_snapshot)

    def compose(self) -> ComposeResult:
        yield Header()
        yield BoardPanel(self.coordinator, id="board")
        yield Footer()

    @property
    def panel(self) -> BoardPanel:
        return self.query_one("#board", BoardPanel)

    async def on_mount(self) -> None:
        if self.config_error:
            self.notify(self.config_error, severity="warning")
        self.run_worker(self._load(), exclusive=True, group="load")

    async def on_unmount(self) -> None:
        self._unsubscribe()
        await self.engine.close()
        await self.notifier.aclose()
        await self.api.aclose()

    async def _load(self) -> None:
        result = await self.engine.load_project(self.project_id)
        if not result.ok:
            await self.panel.show_message(f"{result.error.message}\n\nPress r to retry", error=True)
            return
        if self.initial_board_id is not None:
            self._report(await self.engine.select_board(self.initial_board_id))
            self.initial_board_id = None
        await self._show_active_board()

    def _on_snapshot(self, snapshot: BoardSnapshot) -> None:
        self.call_later(self._show_active_board)

    async def _show_active_board(self) -> None:
        board = self.engine.active_board
        if self.engine.project is not None:
            self.sub_title = self.engine.project.title + (f" / {board.title}" if board else "")
        if self.engine.load_error is None:
            await self.panel.show_board(board)

    def _report(self, result: OperationResult, success: str | None = None) -> None:
        """Toast an operation's error, or ``success`` if given."""
        if not result.ok:
            self.notify(result.error.message, title=result.error.operation, severity="error")
            self.engine.clear_error()
        elif success and not result.noop:
            self.notify(success, timeout=2)

    # --- Board actions ---

    def action_refresh(self) -> None:
        """Reload the project, or just the board once loaded."""
        if self.engine.project is None or self.engine.load_error is not None:
            self.run_worker(self._load(), exclusive=True, group="load")
        else:
            self.run_worker(self._refresh(), group="mutation")

    async def _refresh(self) -> None:
        self._report(await self.engine.refresh_board(), "Board refreshed")

    async def _cycle_board(self, step: int) -> None:
        boards = self.engine.boards
        if len(boards) < 2:
            return
        ids = [board.id for board in boards]
        active = self.engine.snapshot.active_board_id
        index = ids.index(active) if active in ids else 0
        self._report(await self.engine.select_board(ids[(index + step) % len(ids)]))

    def action_prev_board(self) -> None:
        self.run_worker(self._cycle_board(-1))

    def action_next_board(self) -> None:
        self.run_worker(self._cycle_board(1))

    # --- Navigation ---

    def _current_position(self) -> tuple[int, int]:
        for column_index, column in enumerate(self.panel.columns):
            card_index = column.focused_index()
            if card_index >= 0:
                return column_index, card_index
        return 0, -1

    def _focus(self, column_index: int, card_index: int) -> None:
        columns = self.panel.columns
        if not columns:
            return
        column_index = max(0, min(column_index, len(columns) - 1))
        column: ListColumn = columns[column_index]
        column.focus_card(card_index)

    def action_nav_left(self) -> None:
        column, card = self._current_position()
        self._focus(column - 1, max(card, 0))

    def action_nav_right(self) -> None:
        column, card = self._current_position()
        self._focus(column + 1, max(card, 0))

    def action_nav_up(self) -> None:
        column, card = self._current_position()
        self._focus(column, max(card - 1, 0))

    def action_nav_down(self) -> None:
        column, card = self._current_position()
        self._focus(column, card + 1)

    # --- Card actions ---

    def _focused_list_id(self) -> str | None:
        columns = self.panel.columns
        if not columns:
            return None
        column, _ = self._current_position()
        return columns[column].list.id

    def action_new_card(self) -> None:
        list_id = self._focused_list_id()
        if list_id is None:
            self.notify("No list to add a card to", severity="warning")
            return
        self.run_worker(self._create_card(list_id), group="mutation")

    async def _create_card(self, list_id: str) -> None:
        self._report(await self.engine.create_card(list_id, CardDraft(title="New card")), "Card created")

    def action_delete_card(self) -> None:
        card_id = self.panel.focused_card_id
        if card_id is not None:
            self.run_worker(self._delete_card(card_id), group="mutation")

    async def _delete_card(self, card_id: str) -> None:
        self._report(await self.engine.delete_card(card_id), "Card deleted")

    def action_pickup(self) -> None:
        """Pick up the focused card for a keyboard move."""
        if self.coordinator.state == DragState.DRAGGING:
            self.action_cancel_drag()
            return
        card_id = self.panel.focused_card_id
        if card_id is None:
            return
        if self.coordinator.keyboard_pickup(card_id):
            self.panel.mark_picked(card_id)
            self.notify("Picked up: H/L to move, escape to cancel", timeout=2)

    def action_move_card(self, offset: int) -> None:
        """Move the focused (or picked up) card ``offset`` lists over."""
        if self.coordinator.state == DragState.IDLE:
            card_id = self.panel.focused_card_id
            if card_id is None or not self.coordinator.keyboard_pickup(card_id):
                return
        self.run_worker(self._keyboard_drop(offset), group="drag")

    async def _keyboard_drop(self, offset: int) -> None:
        outcome = await self.coordinator.keyboard_drop(offset)
        self.panel.mark_picked(None)
        if outcome.result is not None:
            self._report(outcome.result)

    def action_cancel_drag(self) -> None:
        self.coordinator.cancel()
        self.panel.mark_picked(None)

    def on_board_panel_drag_completed(self, message: BoardPanel.DragCompleted) -> None:
        if message.outcome.result is not None:
            self._report(message.outcome.result)


def run(
    config: BoardsyncConfig,
    project_id: str,
    token: str | None = None,
    board_id: str | None = None,
    config_error: str | None = None,
) -> None:
    """Run the boardsync application."""
    app = BoardsyncApp(config, project_id, token=token, board_id=board_id, config_error=config_error)
    app.run()
