"""Per-task projections for the task list: reminder countdown and tracked time.

Pure functions of (task, settings, now). Nothing here talks to the backend;
the list is simply re-rendered on every tick.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from chronostudy.notifications.models import (
    NotificationSettings,
    Priority,
    parse_timestamp,
)

_CADENCE_KEYS = {
    Priority.HIGH: ("highEvery", "high_every"),
    Priority.MEDIUM: ("mediumEvery", "medium_every"),
    Priority.LOW: ("lowEvery", "low_every"),
}


@dataclass(frozen=True)
class Task:
    """The slice of a backend task the client renders."""

    id: str
    title: str
    subject: str = ""
    priority: str = Priority.MEDIUM.value
    completed: bool = False
    created_at: datetime | None = None
    last_notified: datetime | None = None
    notification_overrides: dict | None = None
    timer_start: datetime | None = None
    total_tracked_ms: int = 0

    @classmethod
    def from_api(cls, data: dict) -> "Task":
        overrides = data.get("notificationSettings")
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            title=data.get("title") or "",
            subject=data.get("subject") or "",
            priority=data.get("priority") or Priority.MEDIUM.value,
            completed=data.get("completed") is True or data.get("status") == "completed",
            created_at=parse_timestamp(data.get("createdAt")),
            last_notified=parse_timestamp(data.get("lastNotified")),
            notification_overrides=overrides if isinstance(overrides, dict) else None,
            timer_start=parse_timestamp(data.get("timerStart")),
            total_tracked_ms=int(data.get("totalTrackedMs") or 0),
        )

    @property
    def timer_running(self) -> bool:
        return self.timer_start is not None


@dataclass(frozen=True)
class Countdown:
    minutes: int
    text: str
    overdue: bool


def resolve_cadence(task: Task, settings: NotificationSettings) -> int | None:
    """Minutes between reminders for ``task``; a per-task override wins."""
    tier = Priority.parse(task.priority)
    if task.notification_overrides is not None:
        for key in _CADENCE_KEYS[tier]:
            value = task.notification_overrides.get(key)
            if value is not None:
                break
        else:
            return None
    else:
        value = settings.cadence_for(tier)
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        return None
    return minutes if minutes > 0 else None


def format_minutes(minutes: int) -> str:
    """``45`` -> "45m", ``90`` -> "1h 30m", ``120`` -> "2h"."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


def time_until_next_notification(
    task: Task,
    settings: NotificationSettings | None,
    now: datetime,
) -> Countdown | None:
    """Time left before ``task`` is next reminded, or None when not applicable.

    The anchor is ``last_notified`` when set, else ``created_at``.
    """
    if settings is None or not settings.enabled:
        return None
    if task.completed:
        return None

    cadence = resolve_cadence(task, settings)
    if not cadence:
        return None

    anchor = task.last_notified or task.created_at
    if anchor is None:
        return None

    next_fire = anchor + timedelta(minutes=cadence)
    remaining_ms = (next_fire - now).total_seconds() * 1000

    if remaining_ms <= 0:
        return Countdown(minutes=0, text="Notifying now", overdue=True)
    if remaining_ms < 60_000:
        return Countdown(minutes=0, text="< 1m", overdue=False)

    minutes = math.ceil(remaining_ms / 60_000)
    return Countdown(minutes=minutes, text=format_minutes(minutes), overdue=False)


def tracked_minutes(task: Task, now: datetime) -> int:
    """Whole minutes tracked, including a running timer."""
    running_ms = 0.0
    if task.timer_start is not None:
        running_ms = max(0.0, (now - task.timer_start).total_seconds() * 1000)
    return math.floor((task.total_tracked_ms + running_ms) / 60_000)
