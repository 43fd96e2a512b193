"""Due-reminder sources — where the poller gets "what is due" from.

The poller only talks to a ReminderSource, so the REST polling transport
can be replaced (e.g. by a push channel) without touching the state machine.
"""

import logging
from abc import ABC, abstractmethod

from chronostudy.api.client import ApiClient
from chronostudy.notifications.models import DueReminder

logger = logging.getLogger(__name__)


class ReminderSource(ABC):
    """Abstract source of due reminders and their acknowledgements."""

    @abstractmethod
    async def upcoming(self) -> list[DueReminder]:
        """Return the user's upcoming reminders in backend order.

        Raises:
            ApiError: On transport or backend failure.
        """

    @abstractmethod
    async def dismiss(self, task_id: str) -> None:
        """Acknowledge the reminder for ``task_id``."""

    @abstractmethod
    async def snooze(self, task_id: str, minutes: int | None = None) -> None:
        """Postpone the next reminder for ``task_id`` by ``minutes``."""


class RestReminderSource(ReminderSource):
    """Reminder source backed by the ``/notifications`` REST endpoints."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def upcoming(self) -> list[DueReminder]:
        data = await self._client.get("/notifications/upcoming")
        if not data:
            return []
        return [DueReminder.from_api(item) for item in data if isinstance(item, dict)]

    async def dismiss(self, task_id: str) -> None:
        await self._client.post(f"/notifications/dismiss/{task_id}")

    async def snooze(self, task_id: str, minutes: int | None = None) -> None:
        payload = {} if minutes is None else {"minutes": minutes}
        await self._client.post(f"/notifications/snooze/{task_id}", json=payload)
