"""Best-effort "you were assigned" notifications.

Delivery failures never propagate: non-2xx responses, timeouts and network
errors are all treated as "failed, ignore" and logged at WARNING.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .models.results import NotificationReport

logger = logging.getLogger(__name__)

ASSIGNMENT_PATH = "/notifications/task-assignment"


class AssignmentNotifier:
    """Fire-and-forget dispatcher for task assignment notifications."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 5.0,
        enabled: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.enabled = enabled
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def notify_assignment(
        self,
        user_ids: list[str],
        card_id: str,
        card_title: str,
        project_id: str,
        project_title: str,
        assigned_by: str | None = None,
    ) -> NotificationReport:
        """Notify each newly assigned user independently.

        One recipient failing does not affect the others. Never raises
        for delivery failures.
        """
        report = NotificationReport()
        if not self.enabled or not user_ids:
            return report

        results = await asyncio.gather(
            *(
                self._send_one(
                    {
                        "userId": user_id,
                        "taskId": card_id,
                        "taskTitle": card_title,
                        "projectId": project_id,
                        "projectTitle": project_title,
                        "assignedBy": assigned_by,
                    }
                )
                for user_id in user_ids
            ),
            return_exceptions=True,
        )
        for user_id, result in zip(user_ids, results, strict=True):
            if result is True:
                report.sent.append(user_id)
            else:
                report.failed.append(user_id)
                if isinstance(result, BaseException):
                    logger.warning("Assignment notification to %s failed: %r", user_id, result)

        logger.info(
            "Task assignment notifications: %d/%d sent successfully",
            report.success_count,
            len(user_ids),
        )
        return report

    async def _send_one(self, payload: dict[str, Any]) -> bool:
        try:
            response = await self._client.post(ASSIGNMENT_PATH, json=payload)
        except httpx.HTTPError as e:
            logger.warning(
                "Task assignment notification service unavailable for %s: %s",
                payload["userId"],
                type(e).__name__,
            )
            return False
        if response.is_success:
            return True
        logger.warning(
            "Task assignment notification for %s rejected: HTTP %d",
            payload["userId"],
            response.status_code,
        )
        return False
