"""Async REST client for the remote project store."""

from __future__ import annotations

import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..models.wire import (
    WireAttachment,
    WireBoard,
    WireCard,
    WireComment,
    WireEnvelope,
    WireList,
    WireProject,
    WireUser,
)
from .errors import (
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class BoardApiClient:
    """Async client for the project/board/card REST API.

    Provides a thin wrapper around the remote store with:
    - Bearer token authentication
    - Envelope unwrapping (``{success, data, message}``)
    - Mapping of transport and HTTP failures onto ApiError subclasses
    - Parsing of payloads into wire models
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``http://localhost:5001/api``
            token: Optional bearer token
            timeout: Request timeout in seconds
            transport: Optional custom transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> BoardApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Issue a request and return the envelope's ``data`` field.

        Raises:
            NetworkError: No response received
            PermissionDeniedError: 401/403
            NotFoundError: 404
            ValidationError: Other 4xx responses
            ServerError: 5xx, malformed body or ``success: false``
        """
        op_name = f"{method} {path}"
        logger.debug("%s: json=%s params=%s", op_name, json, params)

        start_time = time.monotonic()
        try:
            response = await self._client.request(method, path, json=json, params=params, files=files)
        except httpx.TimeoutException as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s timed out after %.0fms", op_name, elapsed_ms)
            raise NetworkError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s failed after %.0fms: %s", op_name, elapsed_ms, e)
            raise NetworkError("Network error occurred. Please check your connection.") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        envelope = self._parse_envelope(response)
        message = (envelope.message if envelope else None) or f"HTTP error! status: {response.status_code}"
        status = response.status_code

        if status in (401, 403):
            logger.error("%s: %d Permission denied (%.0fms)", op_name, status, elapsed_ms)
            raise PermissionDeniedError(message, status)
        if status == 404:
            logger.error("%s: 404 Not Found (%.0fms)", op_name, elapsed_ms)
            raise NotFoundError(message, status)
        if 400 <= status < 500:
            field_errors = {}
            if envelope and envelope.errors:
                field_errors = {
                    err.field or "non_field": err.message or "invalid" for err in envelope.errors
                }
            logger.error("%s: HTTP %d %s (%.0fms)", op_name, status, field_errors, elapsed_ms)
            raise ValidationError(message, status, field_errors)
        if status >= 400:
            logger.error("%s: HTTP %d (%.0fms)", op_name, status, elapsed_ms)
            raise ServerError(message, status)

        if status == 204 or not response.content:
            logger.info("%s: %d (%.0fms)", op_name, status, elapsed_ms)
            return None
        if envelope is None:
            logger.error("%s: Invalid JSON response (%.0fms)", op_name, elapsed_ms)
            raise ServerError("Invalid JSON response", status)
        if not envelope.success:
            logger.error("%s: success=false %s (%.0fms)", op_name, envelope.message, elapsed_ms)
            raise ServerError(envelope.message or "Request failed", status)

        logger.info("%s: %d OK (%.0fms)", op_name, status, elapsed_ms)
        return envelope.data

    @staticmethod
    def _parse_envelope(response: httpx.Response) -> WireEnvelope | None:
        """Parse the response envelope, or None if the body is not one."""
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return WireEnvelope(data=body)
        try:
            return WireEnvelope.model_validate(body)
        except PydanticValidationError:
            return None

    @staticmethod
    def _parse(model: type[M], data: Any, what: str) -> M:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ServerError(f"Malformed {what} payload: {e.error_count()} error(s)") from e

    def _parse_many(self, model: type[M], data: Any, what: str) -> list[M]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise ServerError(f"Malformed {what} payload: expected a list")
        return [self._parse(model, item, what) for item in data]

    # --- Projects & boards ---

    async def get_project(self, project_id: str) -> WireProject:
        data = await self.request("GET", f"/projects/{project_id}")
        return self._parse(WireProject, data, "project")

    async def get_project_boards(self, project_id: str) -> list[WireBoard]:
        data = await self.request("GET", f"/projects/{project_id}/boards")
        return self._parse_many(WireBoard, data, "board")

    async def create_board(
        self,
        project_id: str,
        title: str,
        description: str | None = None,
        color: str | None = None,
    ) -> WireBoard:
        payload: dict[str, Any] = {"title": title, "createDefaultLists": True}
        if description is not None:
            payload["description"] = description
        if color is not None:
            payload["color"] = color
        data = await self.request("POST", f"/projects/{project_id}/boards", json=payload)
        return self._parse(WireBoard, data, "board")

    async def update_board(self, board_id: str, data: dict[str, Any]) -> WireBoard:
        result = await self.request("PUT", f"/boards/{board_id}", json=data)
        return self._parse(WireBoard, result, "board")

    async def delete_board(self, board_id: str) -> None:
        await self.request("DELETE", f"/boards/{board_id}")

    # --- Lists ---

    async def get_board_lists(self, board_id: str) -> list[WireList]:
        data = await self.request("GET", f"/boards/{board_id}/lists", params={"includeCards": "true"})
        return self._parse_many(WireList, data, "list")

    async def create_list(self, board_id: str, title: str, list_type: str = "custom") -> WireList:
        data = await self.request(
            "POST", f"/boards/{board_id}/lists", json={"title": title, "listType": list_type}
        )
        return self._parse(WireList, data, "list")

    # --- Cards ---

    async def get_card(self, card_id: str) -> WireCard:
        data = await self.request("GET", f"/cards/{card_id}")
        return self._parse(WireCard, data, "card")

    async def create_card(self, list_id: str, data: dict[str, Any]) -> WireCard:
        result = await self.request("POST", f"/lists/{list_id}/cards", json=data)
        return self._parse(WireCard, result, "card")

    async def update_card(self, card_id: str, data: dict[str, Any]) -> WireCard:
        result = await self.request("PUT", f"/cards/{card_id}", json=data)
        return self._parse(WireCard, result, "card")

    async def delete_card(self, card_id: str) -> None:
        await self.request("DELETE", f"/cards/{card_id}")

    async def move_card(self, card_id: str, target_list_id: str, position: int | None = None) -> WireCard | None:
        data = await self.request(
            "PUT",
            f"/cards/{card_id}/move",
            json={"targetListId": target_list_id, "position": position},
        )
        if data is None:
            return None
        return self._parse(WireCard, data, "card")

    async def assign_users(self, card_id: str, user_ids: list[str]) -> list[WireUser | None]:
        data = await self.request("PUT", f"/cards/{card_id}/assign", json={"userIds": user_ids})
        if data is None:
            return []
        if not isinstance(data, list):
            raise ServerError("Malformed assignee payload: expected a list")
        return [None if item is None else self._parse(WireUser, item, "user") for item in data]

    async def add_comment(self, card_id: str, text: str, mentions: list[str] | None = None) -> WireComment:
        data = await self.request(
            "POST", f"/cards/{card_id}/comments", json={"text": text, "mentions": mentions or []}
        )
        return self._parse(WireComment, data, "comment")

    async def upload_attachment(
        self,
        card_id: str,
        filename: str,
        content: bytes,
        mime_type: str = "application/octet-stream",
    ) -> WireAttachment:
        data = await self.request(
            "POST",
            f"/cards/{card_id}/attachments",
            files={"file": (filename, content, mime_type)},
        )
        return self._parse(WireAttachment, data, "attachment")

    async def delete_attachment(self, card_id: str, attachment_id: str) -> None:
        await self.request("DELETE", f"/cards/{card_id}/attachments/{attachment_id}")
