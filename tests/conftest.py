"""Shared fixtures: wire payloads, an in-memory remote store and a recording notifier."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

import pytest
import pytest_asyncio

from boardsync.api.errors import ApiError, NotFoundError
from boardsync.models.results import NotificationReport
from boardsync.models.wire import WireAttachment, WireBoard, WireCard, WireComment, WireList, WireProject, WireUser
from boardsync.sync.engine import BoardSyncEngine

PROJECT_ID = "p1"

USERS = {
    "u1": {"_id": "u1", "firstName": "Alice", "lastName": "Smith", "email": "alice@example.com"},
    "u2": {"_id": "u2", "firstName": "Bob", "lastName": "Jones", "email": "bob@example.com"},
    "u3": {"_id": "u3", "firstName": "Carol", "lastName": "White", "email": "carol@example.com"},
}


def make_card(card_id: str, title: str, **extra: Any) -> dict[str, Any]:
    card = {"_id": card_id, "title": title, "priority": "medium", "status": "open", "assignedTo": []}
    card.update(extra)
    return card


@pytest.fixture
def project_payload() -> dict[str, Any]:
    return {
        "_id": PROJECT_ID,
        "title": "Website Relaunch",
        "description": "Q3 relaunch",
        "owner": USERS["u1"],
        "members": [
            {"user": USERS["u1"], "role": "owner"},
            {"user": USERS["u2"], "role": "member"},
            {"user": USERS["u3"], "role": "member"},
        ],
    }


@pytest.fixture
def boards_payload() -> list[dict[str, Any]]:
    return [
        {
            "_id": "b1",
            "title": "Sprint 1",
            "color": "#10B981",
            "project": PROJECT_ID,
            "lists": [
                {
                    "_id": "l-todo",
                    "title": "To Do",
                    "listType": "todo",
                    "position": 0,
                    "cards": [make_card("card-1", "Card1"), make_card("card-2", "Card2")],
                },
                {"_id": "l-progress", "title": "In Progress", "listType": "in_progress", "position": 1, "cards": []},
                {"_id": "l-done", "title": "Done", "listType": "done", "position": 2, "cards": []},
            ],
        },
        {
            "_id": "b2",
            "title": "Backlog",
            "project": PROJECT_ID,
            "lists": [
                {"_id": "l-backlog", "title": "Ideas", "cards": [make_card("card-3", "Card3")]},
            ],
        },
    ]


class FakeBoardApi:
    """In-memory remote store implementing BoardApiProtocol.

    ``fail(method, error)`` makes the next call to ``method`` raise; ``hold(method)``
    blocks calls to ``method`` until the returned event is set.
    """

    def __init__(self, project: dict[str, Any], boards: list[dict[str, Any]]) -> None:
        self.project = copy.deepcopy(project)
        self.boards = copy.deepcopy(boards)
        self.calls: list[tuple[str, tuple]] = []
        self._failures: dict[str, ApiError] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self._counter = 0

    # --- test controls ---

    def fail(self, method: str, error: ApiError) -> None:
        self._failures[method] = error

    def hold(self, method: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[method] = gate
        return gate

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def list_card_ids(self, list_id: str) -> list[str]:
        return [card["_id"] for card in self._list(list_id)["cards"]]

    async def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        gate = self._gates.get(name)
        if gate is not None:
            await gate.wait()
        error = self._failures.pop(name, None)
        if error is not None:
            raise error

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def _board(self, board_id: str) -> dict[str, Any]:
        for board in self.boards:
            if board["_id"] == board_id:
                return board
        raise NotFoundError(f"Board not found: {board_id}", 404)

    def _list(self, list_id: str) -> dict[str, Any]:
        for board in self.boards:
            for lst in board.get("lists", []):
                if lst["_id"] == list_id:
                    return lst
        raise NotFoundError(f"List not found: {list_id}", 404)

    def _card(self, card_id: str) -> tuple[dict[str, Any], dict[str, Any]]:
        for board in self.boards:
            for lst in board.get("lists", []):
                for card in lst["cards"]:
                    if card["_id"] == card_id:
                        return lst, card
        raise NotFoundError(f"Card not found: {card_id}", 404)

    def _users(self, user_ids: list[str]) -> list[dict[str, Any] | None]:
        return [copy.deepcopy(USERS.get(uid)) for uid in user_ids]

    # --- BoardApiProtocol ---

    async def get_project(self, project_id: str) -> WireProject:
        await self._call("get_project", project_id)
        if project_id != self.project["_id"]:
            raise NotFoundError("Project not found", 404)
        return WireProject.model_validate(self.project)

    async def get_project_boards(self, project_id: str) -> list[WireBoard]:
        await self._call("get_project_boards", project_id)
        return [
            WireBoard.model_validate({k: v for k, v in board.items() if k != "lists"})
            for board in self.boards
        ]

    async def create_board(self, project_id, title, description=None, color=None) -> WireBoard:
        await self._call("create_board", project_id, title)
        board_id = self._next_id("board")
        board = {
            "_id": board_id,
            "title": title,
            "description": description,
            "color": color,
            "project": project_id,
            "lists": [
                {"_id": f"{board_id}-todo", "title": "To Do", "listType": "todo", "cards": []},
                {"_id": f"{board_id}-done", "title": "Done", "listType": "done", "cards": []},
            ],
        }
        self.boards.append(board)
        return WireBoard.model_validate({k: v for k, v in board.items() if k != "lists"})

    async def update_board(self, board_id: str, data: dict[str, Any]) -> WireBoard:
        await self._call("update_board", board_id, data)
        board = self._board(board_id)
        board.update(data)
        return WireBoard.model_validate(board)

    async def delete_board(self, board_id: str) -> None:
        await self._call("delete_board", board_id)
        self.boards.remove(self._board(board_id))

    async def get_board_lists(self, board_id: str) -> list[WireList]:
        await self._call("get_board_lists", board_id)
        return [WireList.model_validate(lst) for lst in self._board(board_id).get("lists", [])]

    async def create_list(self, board_id: str, title: str, list_type: str = "custom") -> WireList:
        await self._call("create_list", board_id, title, list_type)
        lst = {"_id": self._next_id("list"), "title": title, "listType": list_type, "cards": []}
        self._board(board_id)["lists"].append(lst)
        return WireList.model_validate(lst)

    async def get_card(self, card_id: str) -> WireCard:
        await self._call("get_card", card_id)
        _, card = self._card(card_id)
        return WireCard.model_validate(card)

    async def create_card(self, list_id: str, data: dict[str, Any]) -> WireCard:
        await self._call("create_card", list_id, data)
        card = make_card(self._next_id("new-card"), data["title"], list=list_id)
        for key in ("description", "priority", "status", "labels"):
            if key in data:
                card[key] = data[key]
        card["assignedTo"] = self._users(data.get("assignedTo", []))
        self._list(list_id)["cards"].append(card)
        return WireCard.model_validate(card)

    async def update_card(self, card_id: str, data: dict[str, Any]) -> WireCard:
        await self._call("update_card", card_id, data)
        _, card = self._card(card_id)
        for key in ("title", "description", "priority", "status", "labels", "dueDate"):
            if key in data:
                card[key] = data[key]
        if "assignedTo" in data:
            card["assignedTo"] = self._users(data["assignedTo"])
        return WireCard.model_validate(card)

    async def delete_card(self, card_id: str) -> None:
        await self._call("delete_card", card_id)
        lst, card = self._card(card_id)
        lst["cards"].remove(card)

    async def move_card(self, card_id: str, target_list_id: str, position: int | None = None) -> WireCard | None:
        await self._call("move_card", card_id, target_list_id, position)
        source, card = self._card(card_id)
        target = self._list(target_list_id)
        source["cards"].remove(card)
        if position is None or position < 0 or position > len(target["cards"]):
            position = len(target["cards"])
        target["cards"].insert(position, card)
        card["list"] = target_list_id
        return WireCard.model_validate(card)

    async def assign_users(self, card_id: str, user_ids: list[str]) -> list[WireUser | None]:
        await self._call("assign_users", card_id, list(user_ids))
        _, card = self._card(card_id)
        card["assignedTo"] = self._users(user_ids)
        return [None if user is None else WireUser.model_validate(user) for user in card["assignedTo"]]

    async def add_comment(self, card_id: str, text: str, mentions: list[str] | None = None) -> WireComment:
        await self._call("add_comment", card_id, text)
        _, card = self._card(card_id)
        comment = {
            "_id": self._next_id("comment"),
            "text": text,
            "author": USERS["u1"],
            "mentions": mentions or [],
            "createdAt": "2024-03-01T10:00:00Z",
        }
        card.setdefault("comments", []).append(comment)
        return WireComment.model_validate(comment)

    async def upload_attachment(self, card_id, filename, content, mime_type="application/octet-stream"):
        await self._call("upload_attachment", card_id, filename)
        _, card = self._card(card_id)
        attachment = {
            "_id": self._next_id("att"),
            "filename": filename,
            "originalName": filename,
            "mimetype": mime_type,
            "size": len(content),
            "url": f"/uploads/{filename}",
            "uploadedBy": "u2",
        }
        card.setdefault("attachments", []).append(attachment)
        return WireAttachment.model_validate(attachment)

    async def delete_attachment(self, card_id: str, attachment_id: str) -> None:
        await self._call("delete_attachment", card_id, attachment_id)
        _, card = self._card(card_id)
        card["attachments"] = [a for a in card.get("attachments", []) if a["_id"] != attachment_id]


class RecordingNotifier:
    """Notifier double that records every dispatch."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    @property
    def notified(self) -> list[list[str]]:
        return [call["user_ids"] for call in self.calls]

    async def notify_assignment(
        self, user_ids, card_id, card_title, project_id, project_title, assigned_by=None
    ) -> NotificationReport:
        self.calls.append(
            {
                "user_ids": list(user_ids),
                "card_id": card_id,
                "card_title": card_title,
                "project_id": project_id,
                "project_title": project_title,
                "assigned_by": assigned_by,
            }
        )
        return NotificationReport(sent=list(user_ids))


@pytest.fixture
def fake_api(project_payload, boards_payload) -> FakeBoardApi:
    return FakeBoardApi(project_payload, boards_payload)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def engine(fake_api, notifier) -> BoardSyncEngine:
    """Engine with project p1 loaded and "Sprint 1" active."""
    engine = BoardSyncEngine(fake_api, notifier, current_user_id="u1")
    result = await engine.load_project(PROJECT_ID)
    assert result.ok
    fake_api.calls.clear()
    yield engine
    await engine.close()
