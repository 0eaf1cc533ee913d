"""Tests for BoardSyncEngine."""

import asyncio

import pytest

from boardsync.api.errors import NetworkError, NotFoundError, PermissionDeniedError, ServerError, ValidationError
from boardsync.models import CardDraft, CardStatus, ErrorKind, ErrorSurface, Priority
from boardsync.sync.engine import TEMP_ID_PREFIX, BoardSyncEngine, to_sync_error
from boardsync.sync.state import has_valid_partition


def card_ids(engine: BoardSyncEngine, list_id: str) -> list[str]:
    board = engine.snapshot.board_of_list(list_id)
    return list(board.get_list(list_id).card_ids)


def get_card(engine: BoardSyncEngine, card_id: str):
    board = engine.snapshot.board_of_card(card_id)
    return board.get_card(card_id) if board else None


async def wait_for_call(fake_api, name: str) -> None:
    """Yield to the loop until the fake store has received ``name``."""
    for _ in range(100):
        if name in fake_api.call_names():
            return
        await asyncio.sleep(0)
    raise AssertionError(f"{name} was never called")


class TestErrorMapping:
    """Tests for ApiError -> SyncError conversion."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (NetworkError("offline"), ErrorKind.NETWORK),
            (ValidationError("bad", 400, {"title": "required"}), ErrorKind.VALIDATION),
            (PermissionDeniedError("nope", 403), ErrorKind.PERMISSION),
            (NotFoundError("gone", 404), ErrorKind.NOT_FOUND),
            (ServerError("boom", 500), ErrorKind.SERVER),
        ],
    )
    def test_kinds(self, error, kind):
        """Every API exception maps to its error kind."""
        assert to_sync_error(error, "op").kind == kind

    def test_field_errors_carried(self):
        """Validation field errors are preserved."""
        err = to_sync_error(ValidationError("bad", 422, {"title": "required"}), "create_card")
        assert err.field_errors == {"title": "required"}
        assert err.operation == "create_card"
        assert err.surface == ErrorSurface.TRANSIENT


class TestLoadProject:
    """Tests for load_project."""

    async def _load(self, fake_api):
        engine = BoardSyncEngine(fake_api)
        return engine, await engine.load_project("p1")

    @pytest.mark.asyncio
    async def test_loads_boards_and_selects_first(self, fake_api):
        """All boards load and the first becomes active."""
        engine, result = await self._load(fake_api)
        assert result.ok
        assert engine.project.title == "Website Relaunch"
        assert [b.id for b in engine.boards] == ["b1", "b2"]
        assert engine.snapshot.active_board_id == "b1"
        assert engine.active_board.list_ids == ("l-todo", "l-progress", "l-done")
        assert card_ids(engine, "l-todo") == ["card-1", "card-2"]
        assert engine.load_error is None

    @pytest.mark.asyncio
    async def test_fetches_lists_per_board(self, fake_api):
        """Lists are fetched for every board that arrives without them."""
        await self._load(fake_api)
        assert fake_api.call_names() == [
            "get_project",
            "get_project_boards",
            "get_board_lists",
            "get_board_lists",
        ]

    @pytest.mark.asyncio
    async def test_membership_cached(self, fake_api):
        """Project members are available for name resolution."""
        engine, _ = await self._load(fake_api)
        assert engine.project.member_ids == frozenset({"u1", "u2", "u3"})
        assert engine.project.display_name("u2") == "Bob Jones"

    @pytest.mark.asyncio
    async def test_reload_keeps_active_board(self, fake_api):
        """Reloading keeps the previously active board if it still exists."""
        engine, _ = await self._load(fake_api)
        await engine.select_board("b2")
        await engine.load_project("p1")
        assert engine.snapshot.active_board_id == "b2"

    @pytest.mark.asyncio
    async def test_reload_falls_back_when_active_board_gone(self, fake_api):
        """A vanished active board is replaced by the first board."""
        engine, _ = await self._load(fake_api)
        await engine.select_board("b2")
        fake_api.boards = [b for b in fake_api.boards if b["_id"] != "b2"]
        await engine.load_project("p1")
        assert engine.snapshot.active_board_id == "b1"

    @pytest.mark.asyncio
    async def test_empty_project_has_no_active_board(self, fake_api):
        """A project without boards loads with nothing active."""
        fake_api.boards = []
        engine, result = await self._load(fake_api)
        assert result.ok
        assert engine.active_board is None

    @pytest.mark.asyncio
    async def test_not_found_is_blocking(self, fake_api):
        """An unknown project surfaces a blocking not-found error."""
        engine = BoardSyncEngine(fake_api)
        result = await engine.load_project("missing")
        assert not result.ok
        assert engine.load_error.kind == ErrorKind.NOT_FOUND
        assert engine.load_error.surface == ErrorSurface.BLOCKING
        assert engine.snapshot.boards == ()
        assert engine.project is None

    @pytest.mark.asyncio
    async def test_permission_denied_not_retried(self, fake_api):
        """Permission errors surface once and are not retried."""
        fake_api.fail("get_project", PermissionDeniedError("Forbidden", 403))
        engine, result = await self._load(fake_api)
        assert result.error.kind == ErrorKind.PERMISSION
        assert engine.load_error is not None
        assert fake_api.call_names() == ["get_project"]

    @pytest.mark.asyncio
    async def test_network_error_while_fetching_lists(self, fake_api):
        """A failing list fetch fails the whole load."""
        fake_api.fail("get_board_lists", NetworkError("offline"))
        engine, result = await self._load(fake_api)
        assert result.error.kind == ErrorKind.NETWORK
        assert engine.snapshot.boards == ()

    @pytest.mark.asyncio
    async def test_successful_reload_clears_load_error(self, fake_api):
        """A later successful load clears the blocking error."""
        fake_api.fail("get_project", NetworkError("offline"))
        engine, _ = await self._load(fake_api)
        assert engine.load_error is not None
        await engine.load_project("p1")
        assert engine.load_error is None
        assert engine.active_board is not None


class TestMoveCard:
    """Tests for move_card."""

    @pytest.mark.asyncio
    async def test_sprint_move_succeeds(self, engine, fake_api):
        """Moving Card1 to Done updates both lists locally and remotely."""
        result = await engine.move_card("card-1", "l-todo", "l-done")
        assert result.ok
        assert card_ids(engine, "l-todo") == ["card-2"]
        assert card_ids(engine, "l-done") == ["card-1"]
        assert fake_api.list_card_ids("l-done") == ["card-1"]

    @pytest.mark.asyncio
    async def test_sprint_move_server_error_reverts(self, engine, fake_api):
        """A server error restores both lists exactly and surfaces an error."""
        before = engine.active_board
        fake_api.fail("move_card", ServerError("Internal error", 500))

        result = await engine.move_card("card-1", "l-todo", "l-done")

        assert not result.ok
        assert result.rolled_back
        assert result.error.kind == ErrorKind.SERVER
        assert engine.active_board == before
        assert card_ids(engine, "l-todo") == ["card-1", "card-2"]
        assert card_ids(engine, "l-done") == []
        assert engine.last_error.operation == "move_card"

    @pytest.mark.asyncio
    async def test_same_list_is_noop(self, engine, fake_api):
        """Dropping a card on its own list changes nothing and calls nothing."""
        version = engine.snapshot.version
        result = await engine.move_card("card-1", "l-todo", "l-todo")
        assert result.ok
        assert result.noop
        assert engine.snapshot.version == version
        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_target_index_honored(self, engine, fake_api):
        """The card lands at the requested index."""
        await engine.move_card("card-1", "l-todo", "l-done", 0)
        await engine.move_card("card-2", "l-todo", "l-done", 0)
        assert card_ids(engine, "l-done") == ["card-2", "card-1"]
        assert fake_api.calls[-1] == ("move_card", ("card-2", "l-done", 0))

    @pytest.mark.asyncio
    async def test_negative_index_appends(self, engine, fake_api):
        """A negative index appends, and the resolved index is sent."""
        await engine.move_card("card-1", "l-todo", "l-done", 0)
        await engine.move_card("card-2", "l-todo", "l-done", -1)
        assert card_ids(engine, "l-done") == ["card-1", "card-2"]
        assert fake_api.calls[-1] == ("move_card", ("card-2", "l-done", 1))

    @pytest.mark.asyncio
    async def test_optimistic_before_commit(self, engine, fake_api):
        """The moved card is visible before the remote call resolves."""
        gate = fake_api.hold("move_card")
        task = asyncio.create_task(engine.move_card("card-1", "l-todo", "l-done"))
        await wait_for_call(fake_api, "move_card")

        assert card_ids(engine, "l-done") == ["card-1"]
        assert fake_api.list_card_ids("l-done") == []

        gate.set()
        assert (await task).ok

    @pytest.mark.asyncio
    async def test_unknown_card_fails_without_remote_call(self, engine, fake_api):
        """Moving a card that is not in the source list never reaches the store."""
        result = await engine.move_card("card-3", "l-todo", "l-done")
        assert result.error.kind == ErrorKind.NOT_FOUND
        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_partition_holds_through_failures(self, engine, fake_api):
        """Every card stays in exactly one list across successes and rollbacks."""
        await engine.move_card("card-1", "l-todo", "l-progress")
        fake_api.fail("move_card", NetworkError("offline"))
        await engine.move_card("card-2", "l-todo", "l-done")
        await engine.move_card("card-1", "l-progress", "l-done")

        board = engine.active_board
        assert has_valid_partition(board)
        assert sorted(c.id for c in board.cards) == ["card-1", "card-2"]
        assert card_ids(engine, "l-todo") == ["card-2"]
        assert card_ids(engine, "l-done") == ["card-1"]


class TestConcurrency:
    """Tests for serialized mutations and the liveness check."""

    @pytest.mark.asyncio
    async def test_mutations_queue_behind_each_other(self, engine, fake_api):
        """A second mutation waits for the first to settle."""
        gate = fake_api.hold("move_card")
        move = asyncio.create_task(engine.move_card("card-1", "l-todo", "l-done"))
        await wait_for_call(fake_api, "move_card")
        update = asyncio.create_task(engine.update_card("card-2", CardDraft(title="Renamed")))
        await asyncio.sleep(0)

        assert engine.busy
        assert "update_card" not in fake_api.call_names()

        gate.set()
        assert (await move).ok
        assert (await update).ok
        assert card_ids(engine, "l-done") == ["card-1"]
        assert get_card(engine, "card-2").title == "Renamed"

    @pytest.mark.asyncio
    async def test_rollback_does_not_clobber_later_mutation(self, engine, fake_api):
        """A failed move restores only its own lists."""
        fake_api.fail("move_card", ServerError("boom", 500))
        gate = fake_api.hold("move_card")
        move = asyncio.create_task(engine.move_card("card-1", "l-todo", "l-done"))
        await wait_for_call(fake_api, "move_card")
        rename = asyncio.create_task(engine.update_card("card-3", CardDraft(title="Still here")))

        gate.set()
        assert (await move).rolled_back
        assert (await rename).ok
        assert get_card(engine, "card-3").title == "Still here"
        assert card_ids(engine, "l-todo") == ["card-1", "card-2"]

    @pytest.mark.asyncio
    async def test_commit_after_reload_is_discarded(self, engine, fake_api):
        """A commit that resolves after a reload began is not applied."""
        gate = fake_api.hold("move_card")
        move = asyncio.create_task(engine.move_card("card-1", "l-todo", "l-done"))
        await wait_for_call(fake_api, "move_card")
        reload = asyncio.create_task(engine.load_project("p1"))
        await asyncio.sleep(0)

        gate.set()
        result = await move
        assert result.ok
        assert result.noop

        assert (await reload).ok
        assert card_ids(engine, "l-done") == ["card-1"]

    @pytest.mark.asyncio
    async def test_failure_after_reload_does_not_surface(self, engine, fake_api):
        """A failure for a superseded generation neither rolls back nor sets last_error."""
        fake_api.fail("move_card", ServerError("boom", 500))
        gate = fake_api.hold("move_card")
        move = asyncio.create_task(engine.move_card("card-1", "l-todo", "l-done"))
        await wait_for_call(fake_api, "move_card")
        reload = asyncio.create_task(engine.load_project("p1"))
        await asyncio.sleep(0)

        gate.set()
        result = await move
        assert not result.ok
        assert not result.rolled_back
        assert engine.last_error is None
        await reload
        assert card_ids(engine, "l-todo") == ["card-1", "card-2"]


class TestCreateCard:
    """Tests for create_card."""

    @pytest.mark.asyncio
    async def test_placeholder_replaced_by_server_card(self, engine, fake_api):
        """A pending placeholder is shown, then swapped for the real card."""
        gate = fake_api.hold("create_card")
        task = asyncio.create_task(engine.create_card("l-todo", CardDraft(title="Write docs")))
        await wait_for_call(fake_api, "create_card")

        placeholder = engine.active_board.get_list("l-todo").cards[-1]
        assert placeholder.id.startswith(TEMP_ID_PREFIX)
        assert placeholder.pending
        assert placeholder.title == "Write docs"

        gate.set()
        result = await task
        assert result.ok
        ids = card_ids(engine, "l-todo")
        assert ids[:2] == ["card-1", "card-2"]
        assert len(ids) == 3
        assert not ids[2].startswith(TEMP_ID_PREFIX)
        assert result.value.id == ids[2]
        assert not get_card(engine, ids[2]).pending

    @pytest.mark.asyncio
    async def test_failure_restores_list(self, engine, fake_api):
        """A rejected create removes the placeholder and keeps field errors."""
        before = engine.active_board.get_list("l-todo")
        fake_api.fail("create_card", ValidationError("Invalid", 400, {"title": "too long"}))

        result = await engine.create_card("l-todo", CardDraft(title="x" * 300))

        assert result.rolled_back
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.field_errors == {"title": "too long"}
        assert engine.active_board.get_list("l-todo") == before

    @pytest.mark.asyncio
    async def test_missing_title_rejected_locally(self, engine, fake_api):
        """A draft without a title never reaches the store."""
        result = await engine.create_card("l-todo", CardDraft(description="no title"))
        assert result.error.kind == ErrorKind.VALIDATION
        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_assignees_notified(self, engine, fake_api, notifier):
        """Everyone assigned at creation is notified once."""
        result = await engine.create_card("l-todo", CardDraft(title="Review", assignees=["u2", "u3"]))
        await engine.drain_notifications()

        assert result.value.assignee_ids == ("u2", "u3")
        assert notifier.notified == [["u2", "u3"]]
        assert notifier.calls[0]["project_title"] == "Website Relaunch"
        assert notifier.calls[0]["assigned_by"] == "u1"

    @pytest.mark.asyncio
    async def test_unknown_list(self, engine, fake_api):
        result = await engine.create_card("nope", CardDraft(title="x"))
        assert result.error.kind == ErrorKind.NOT_FOUND
        assert fake_api.calls == []


class TestUpdateCard:
    """Tests for update_card."""

    @pytest.mark.asyncio
    async def test_patch_applied(self, engine, fake_api):
        """Patched fields are confirmed by the server copy."""
        draft = CardDraft(title="Card1 v2", priority=Priority.URGENT, status=CardStatus.REVIEW)
        result = await engine.update_card("card-1", draft)

        assert result.ok
        card = get_card(engine, "card-1")
        assert card.title == "Card1 v2"
        assert card.priority == Priority.URGENT
        assert card.status == CardStatus.REVIEW
        assert fake_api.calls[0] == (
            "update_card",
            ("card-1", {"title": "Card1 v2", "priority": "urgent", "status": "review"}),
        )

    @pytest.mark.asyncio
    async def test_failure_restores_card(self, engine, fake_api):
        """A failed edit restores the exact pre-edit card."""
        before = get_card(engine, "card-1")
        fake_api.fail("update_card", NetworkError("offline"))

        result = await engine.update_card("card-1", CardDraft(title="Lost"))

        assert result.rolled_back
        assert get_card(engine, "card-1") == before

    @pytest.mark.asyncio
    async def test_new_assignees_notified(self, engine, notifier):
        """Only assignees added by the edit are notified."""
        await engine.assign_users("card-1", ["u1"])
        await engine.update_card("card-1", CardDraft(assignees=["u1", "u2"]))
        await engine.drain_notifications()
        assert notifier.notified == [["u1"], ["u2"]]


class TestDeleteCard:
    """Tests for delete_card."""

    @pytest.mark.asyncio
    async def test_delete(self, engine, fake_api):
        result = await engine.delete_card("card-1")
        assert result.ok
        assert card_ids(engine, "l-todo") == ["card-2"]
        assert fake_api.list_card_ids("l-todo") == ["card-2"]

    @pytest.mark.asyncio
    async def test_failure_restores_position(self, engine, fake_api):
        """A failed delete puts the card back where it was."""
        fake_api.fail("delete_card", PermissionDeniedError("Forbidden", 403))
        result = await engine.delete_card("card-1")
        assert result.error.kind == ErrorKind.PERMISSION
        assert card_ids(engine, "l-todo") == ["card-1", "card-2"]


class TestAssignUsers:
    """Tests for assign_users and the notification delta."""

    @pytest.mark.asyncio
    async def test_only_new_assignees_notified(self, engine, notifier):
        """Going from {A, B} to {A, B, C} notifies only C."""
        await engine.assign_users("card-1", ["u1", "u2"])
        await engine.assign_users("card-1", ["u1", "u2", "u3"])
        await engine.drain_notifications()
        assert notifier.notified == [["u1", "u2"], ["u3"]]

    @pytest.mark.asyncio
    async def test_reassigning_same_set_never_renotifies(self, engine, notifier):
        await engine.assign_users("card-1", ["u2"])
        await engine.assign_users("card-1", ["u2"])
        await engine.drain_notifications()
        assert notifier.notified == [["u2"]]

    @pytest.mark.asyncio
    async def test_removed_then_readded_is_notified_again(self, engine, notifier):
        await engine.assign_users("card-1", ["u2"])
        await engine.assign_users("card-1", [])
        await engine.assign_users("card-1", ["u2"])
        await engine.drain_notifications()
        assert notifier.notified == [["u2"], ["u2"]]

    @pytest.mark.asyncio
    async def test_names_resolved(self, engine):
        """Assignees carry display names from the resolved user records."""
        result = await engine.assign_users("card-1", ["u3"])
        assert [u.name for u in result.value.assignees] == ["Carol White"]
        assert get_card(engine, "card-1").assignee_ids == ("u3",)

    @pytest.mark.asyncio
    async def test_non_members_filtered(self, engine, fake_api):
        """Ids outside the project membership are dropped before committing."""
        await engine.assign_users("card-1", ["u1", "stranger", "u1"])
        assert fake_api.calls[0] == ("assign_users", ("card-1", ["u1"]))

    @pytest.mark.asyncio
    async def test_failure_restores_and_does_not_notify(self, engine, fake_api, notifier):
        await engine.assign_users("card-1", ["u1"])
        fake_api.fail("assign_users", ServerError("boom", 500))

        result = await engine.assign_users("card-1", ["u1", "u2"])
        await engine.drain_notifications()

        assert result.rolled_back
        assert get_card(engine, "card-1").assignee_ids == ("u1",)
        assert notifier.notified == [["u1"]]

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_assignment(self, fake_api):
        """A crashing notifier is logged, not propagated."""

        class ExplodingNotifier:
            async def notify_assignment(self, *args, **kwargs):
                raise RuntimeError("smtp down")

        engine = BoardSyncEngine(fake_api, ExplodingNotifier())
        await engine.load_project("p1")
        result = await engine.assign_users("card-1", ["u2"])
        await engine.drain_notifications()
        assert result.ok
        assert get_card(engine, "card-1").assignee_ids == ("u2",)


class TestServerGeneratedContent:
    """Tests for comments and attachments (commit, then re-fetch)."""

    @pytest.mark.asyncio
    async def test_add_comment_refetches_card(self, engine, fake_api):
        result = await engine.add_comment("card-1", "Looks good")
        assert result.ok
        assert fake_api.call_names() == ["add_comment", "get_card"]
        comments = get_card(engine, "card-1").comments
        assert [c.text for c in comments] == ["Looks good"]
        assert comments[0].author.name == "Alice Smith"

    @pytest.mark.asyncio
    async def test_comment_failure_leaves_card(self, engine, fake_api):
        before = get_card(engine, "card-1")
        fake_api.fail("add_comment", NetworkError("offline"))
        result = await engine.add_comment("card-1", "Lost")
        assert result.error.kind == ErrorKind.NETWORK
        assert not result.rolled_back
        assert get_card(engine, "card-1") == before
        assert "get_card" not in fake_api.call_names()

    @pytest.mark.asyncio
    async def test_blank_comment_rejected(self, engine, fake_api):
        result = await engine.add_comment("card-1", "   ")
        assert result.error.kind == ErrorKind.VALIDATION
        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_upload_and_delete_attachment(self, engine, fake_api):
        result = await engine.upload_attachment("card-2", "design.pdf", b"%PDF-1.4", "application/pdf")
        assert result.ok
        attachment = get_card(engine, "card-2").attachments[0]
        assert attachment.filename == "design.pdf"
        assert attachment.size == 8
        assert attachment.uploader.name == "Bob Jones"

        result = await engine.delete_attachment("card-2", attachment.id)
        assert result.ok
        assert get_card(engine, "card-2").attachments == ()


class TestBoards:
    """Tests for board-level operations."""

    @pytest.mark.asyncio
    async def test_select_board(self, engine):
        result = await engine.select_board("b2")
        assert result.ok
        assert engine.active_board.title == "Backlog"

    @pytest.mark.asyncio
    async def test_select_unknown_board(self, engine):
        result = await engine.select_board("nope")
        assert result.error.kind == ErrorKind.NOT_FOUND
        assert engine.snapshot.active_board_id == "b1"

    @pytest.mark.asyncio
    async def test_create_board_appends_with_lists(self, engine, fake_api):
        result = await engine.create_board("Sprint 2", "Next", "#EF4444")
        assert result.ok
        assert [b.title for b in engine.boards] == ["Sprint 1", "Backlog", "Sprint 2"]
        assert [lst.title for lst in result.value.lists] == ["To Do", "Done"]
        assert engine.snapshot.active_board_id == "b1"

    @pytest.mark.asyncio
    async def test_first_board_becomes_active(self, fake_api):
        fake_api.boards = []
        engine = BoardSyncEngine(fake_api)
        await engine.load_project("p1")
        result = await engine.create_board("Kickoff")
        assert engine.snapshot.active_board_id == result.value.id

    @pytest.mark.asyncio
    async def test_create_board_failure(self, engine, fake_api):
        fake_api.fail("create_board", ValidationError("Title required", 400))
        result = await engine.create_board("")
        assert result.error.kind == ErrorKind.VALIDATION
        assert len(engine.boards) == 2

    @pytest.mark.asyncio
    async def test_update_board_rollback(self, engine, fake_api):
        before = engine.snapshot.get_board("b1")
        fake_api.fail("update_board", ServerError("boom", 500))
        result = await engine.update_board("b1", title="Renamed")
        assert result.rolled_back
        assert engine.snapshot.get_board("b1") == before

    @pytest.mark.asyncio
    async def test_update_board_keeps_lists(self, engine):
        result = await engine.update_board("b1", title="Sprint One")
        assert result.ok
        board = engine.snapshot.get_board("b1")
        assert board.title == "Sprint One"
        assert board.list_ids == ("l-todo", "l-progress", "l-done")

    @pytest.mark.asyncio
    async def test_delete_board_rollback_restores_order_and_selection(self, engine, fake_api):
        fake_api.fail("delete_board", NetworkError("offline"))
        result = await engine.delete_board("b1")
        assert result.rolled_back
        assert [b.id for b in engine.boards] == ["b1", "b2"]
        assert engine.snapshot.active_board_id == "b1"

    @pytest.mark.asyncio
    async def test_rollback_keeps_selection_made_in_flight(self, engine, fake_api):
        """Selecting another board during a failing board commit is not undone."""
        gate = fake_api.hold("update_board")
        fake_api.fail("update_board", ServerError("boom", 500))
        task = asyncio.create_task(engine.update_board("b1", title="Renamed"))
        await wait_for_call(fake_api, "update_board")

        await engine.select_board("b2")
        gate.set()
        result = await task

        assert result.rolled_back
        assert engine.snapshot.get_board("b1").title == "Sprint 1"
        assert engine.snapshot.active_board_id == "b2"

    @pytest.mark.asyncio
    async def test_delete_active_board_selects_next(self, engine):
        await engine.delete_board("b1")
        assert [b.id for b in engine.boards] == ["b2"]
        assert engine.snapshot.active_board_id == "b2"

    @pytest.mark.asyncio
    async def test_create_list(self, engine):
        result = await engine.create_list("b1", "Blocked")
        assert result.ok
        assert engine.active_board.lists[-1].title == "Blocked"

    @pytest.mark.asyncio
    async def test_refresh_picks_up_remote_changes(self, engine, fake_api):
        fake_api.boards[0]["lists"][2]["cards"].append({"_id": "card-9", "title": "From elsewhere"})
        result = await engine.refresh_board()
        assert result.ok
        assert card_ids(engine, "l-done") == ["card-9"]


class TestSubscriptions:
    """Tests for snapshot publication."""

    @pytest.mark.asyncio
    async def test_listener_sees_every_version(self, engine):
        seen = []
        unsubscribe = engine.subscribe(lambda snap: seen.append(snap.version))
        await engine.move_card("card-1", "l-todo", "l-done")
        unsubscribe()
        await engine.move_card("card-2", "l-todo", "l-done")

        assert len(seen) == 2  # optimistic + reconciled
        assert seen == sorted(seen)

    @pytest.mark.asyncio
    async def test_clear_error(self, engine, fake_api):
        fake_api.fail("delete_card", ServerError("boom", 500))
        await engine.delete_card("card-1")
        assert engine.last_error is not None
        engine.clear_error()
        assert engine.last_error is None
