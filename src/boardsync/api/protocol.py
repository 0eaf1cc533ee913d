"""Remote store protocol consumed by the sync engine."""

from typing import Any, Protocol

from ..models.wire import (
    WireAttachment,
    WireBoard,
    WireCard,
    WireComment,
    WireList,
    WireProject,
    WireUser,
)


class BoardApiProtocol(Protocol):
    """Interface for the remote authoritative store.

    ``BoardApiClient`` implements it over HTTP; tests provide in-memory
    fakes. Every method raises an ``ApiError`` subclass on failure.
    """

    async def get_project(self, project_id: str) -> WireProject:
        """Fetch a project with its membership."""
        ...

    async def get_project_boards(self, project_id: str) -> list[WireBoard]:
        """Fetch the boards of a project, without lists."""
        ...

    async def create_board(
        self,
        project_id: str,
        title: str,
        description: str | None = None,
        color: str | None = None,
    ) -> WireBoard: ...

    async def update_board(self, board_id: str, data: dict[str, Any]) -> WireBoard: ...

    async def delete_board(self, board_id: str) -> None: ...

    async def get_board_lists(self, board_id: str) -> list[WireList]:
        """Fetch a board's lists with cards inlined."""
        ...

    async def create_list(self, board_id: str, title: str, list_type: str = "custom") -> WireList: ...

    async def get_card(self, card_id: str) -> WireCard: ...

    async def create_card(self, list_id: str, data: dict[str, Any]) -> WireCard: ...

    async def update_card(self, card_id: str, data: dict[str, Any]) -> WireCard: ...

    async def delete_card(self, card_id: str) -> None: ...

    async def move_card(
        self, card_id: str, target_list_id: str, position: int | None = None
    ) -> WireCard | None:
        """Authoritatively move a card. May return the moved card."""
        ...

    async def assign_users(self, card_id: str, user_ids: list[str]) -> list[WireUser | None]:
        """Replace a card's assignees, returning the resolved user records."""
        ...

    async def add_comment(
        self, card_id: str, text: str, mentions: list[str] | None = None
    ) -> WireComment: ...

    async def upload_attachment(
        self,
        card_id: str,
        filename: str,
        content: bytes,
        mime_type: str = "application/octet-stream",
    ) -> WireAttachment: ...

    async def delete_attachment(self, card_id: str, attachment_id: str) -> None: ...
