"""Reminder data model — settings, server-reported due reminders, active popup."""

from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from enum import Enum


class Priority(str, Enum):
    """Task priority tiers; each tier has its own reminder cadence."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: object) -> "Priority":
        """Map a raw priority to a tier; unknown or missing means MEDIUM."""
        try:
            return cls(value)
        except ValueError:
            return cls.MEDIUM


@dataclass(frozen=True)
class NotificationSettings:
    """Per-user reminder preferences. Intervals are minutes, all >= 1."""

    enabled: bool = True
    high_every: int = 15
    medium_every: int = 30
    low_every: int = 45
    default_snooze: int = 20

    @classmethod
    def from_api(cls, data: dict) -> "NotificationSettings":
        """Build from the backend's camelCase payload; missing keys use defaults."""
        return cls(
            enabled=bool(data.get("enabled", DEFAULT_SETTINGS.enabled)),
            high_every=int(data.get("highEvery", DEFAULT_SETTINGS.high_every)),
            medium_every=int(data.get("mediumEvery", DEFAULT_SETTINGS.medium_every)),
            low_every=int(data.get("lowEvery", DEFAULT_SETTINGS.low_every)),
            default_snooze=int(data.get("defaultSnooze", DEFAULT_SETTINGS.default_snooze)),
        )

    def to_api(self) -> dict:
        return {
            "enabled": self.enabled,
            "highEvery": self.high_every,
            "mediumEvery": self.medium_every,
            "lowEvery": self.low_every,
            "defaultSnooze": self.default_snooze,
        }

    def coerced(self) -> "NotificationSettings":
        """Copy with every interval clamped to at least 1 minute."""
        return replace(
            self,
            high_every=max(1, int(self.high_every or 1)),
            medium_every=max(1, int(self.medium_every or 1)),
            low_every=max(1, int(self.low_every or 1)),
            default_snooze=max(1, int(self.default_snooze or 1)),
        )

    def cadence_for(self, priority: object) -> int:
        """Reminder interval in minutes for a priority tier."""
        tier = Priority.parse(priority)
        if tier is Priority.HIGH:
            return self.high_every
        if tier is Priority.LOW:
            return self.low_every
        return self.medium_every

    def as_dict(self) -> dict:
        return asdict(self)


# Fallback used when the settings endpoint fails
DEFAULT_SETTINGS = NotificationSettings()


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO 8601 timestamp from the API; naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class DueReminder:
    """One entry of ``GET /notifications/upcoming``."""

    task_id: str
    title: str
    subject: str
    priority: str
    minutes_until_next: float | None = None
    next_notification_time: datetime | None = None

    @classmethod
    def from_api(cls, data: dict) -> "DueReminder":
        minutes = data.get("minutesUntilNext")
        # bool is an int subclass; the backend never means True as "1 minute"
        if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
            minutes = None
        return cls(
            task_id=str(data.get("taskId", "")),
            title=data.get("title") or "",
            subject=data.get("subject") or "",
            priority=data.get("priority") or "",
            minutes_until_next=minutes,
            next_notification_time=parse_timestamp(data.get("nextNotificationTime")),
        )

    def is_due(self, now: datetime) -> bool:
        """Due when either the minutes count or the absolute time says so."""
        by_minutes = self.minutes_until_next is not None and self.minutes_until_next <= 0
        by_time = (
            self.next_notification_time is not None
            and self.next_notification_time <= now
        )
        return by_minutes or by_time


@dataclass(frozen=True)
class NotifiedTask:
    id: str
    title: str
    subject: str


@dataclass(frozen=True)
class ActiveNotification:
    """The single reminder currently shown to the user."""

    task: NotifiedTask
    priority: str

    @classmethod
    def from_reminder(cls, reminder: DueReminder) -> "ActiveNotification":
        return cls(
            task=NotifiedTask(
                id=reminder.task_id,
                title=reminder.title,
                subject=reminder.subject,
            ),
            priority=reminder.priority,
        )
