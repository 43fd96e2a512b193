"""Task list access — the only task endpoint the terminal client reads."""

import logging

from chronostudy.api.client import ApiClient
from chronostudy.tasks.countdown import Task

logger = logging.getLogger(__name__)


async def fetch_tasks(client: ApiClient) -> list[Task]:
    """GET /tasks and parse every entry.

    Raises:
        ApiError: On transport or backend failure.
    """
    data = await client.get("/tasks") or []
    tasks = [Task.from_api(item) for item in data if isinstance(item, dict)]
    logger.debug("Loaded %d tasks", len(tasks))
    return tasks
