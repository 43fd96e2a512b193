"""Reminder poller — periodic due-reminder checks and the active popup.

States:
    IDLE     no authenticated user, nothing scheduled
    POLLING  checks run every ``poll_interval`` seconds
    SHOWING  polling, and an ActiveNotification is displayed

At most one notification is shown. A due reminder replaces it only when its
task id differs from the one on screen, so re-polling the same list is a
no-op. Nothing but dismiss, snooze, supersession or logout clears it; an
empty poll result leaves it in place.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from chronostudy.config import ChronoConfig, get_config
from chronostudy.notifications.desktop import DesktopNotifier
from chronostudy.notifications.models import ActiveNotification
from chronostudy.notifications.settings_store import NotificationSettingsStore
from chronostudy.notifications.source import ReminderSource
from chronostudy.session.auth import AuthSession

logger = logging.getLogger(__name__)

NotificationListener = Callable[[ActiveNotification | None], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PollerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    SHOWING = "showing"


class ReminderPoller:
    """Polls a ReminderSource and manages the single active notification."""

    def __init__(
        self,
        source: ReminderSource,
        auth: AuthSession,
        notifier: DesktopNotifier,
        settings: NotificationSettingsStore | None = None,
        config: ChronoConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the poller.

        Args:
            source: Where due reminders come from and acks go to.
            auth: Auth session; checks are skipped while logged out.
            notifier: Desktop notifier used when a new reminder appears.
            settings: Settings store, read for the default snooze length.
            config: ChronoConfig instance (uses singleton if None).
            clock: Returns the current aware datetime.
        """
        self._source = source
        self._auth = auth
        self._notifier = notifier
        self._settings = settings
        self._config = config or get_config()
        self._clock = clock

        self._current: ActiveNotification | None = None
        self._listeners: list[NotificationListener] = []
        self._loop_task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    # ── State ──────────────────────────────────────────────────────

    @property
    def current(self) -> ActiveNotification | None:
        return self._current

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def state(self) -> PollerState:
        if not self.is_running:
            return PollerState.IDLE
        if self._current is not None:
            return PollerState.SHOWING
        return PollerState.POLLING

    def on_change(self, listener: NotificationListener) -> Callable[[], None]:
        """Register a callback for active-notification changes."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set_current(self, value: ActiveNotification | None) -> None:
        if value == self._current:
            return
        self._current = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Notification listener failed")

    # ── Lifecycle ──────────────────────────────────────────────────

    def start(self) -> bool:
        """Begin polling; a no-op without an authenticated user."""
        if not self._auth.is_authenticated:
            logger.debug("Poller not started: no authenticated user")
            return False
        if self.is_running:
            logger.warning("Reminder poller already running")
            return True

        self._loop_task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Reminder poller started (interval=%ss)", self._config.poll_interval)
        return True

    async def stop(self) -> None:
        """Cancel the schedule and any in-flight checks, clear the popup."""
        tasks = list(self._inflight)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        was_running = self._loop_task is not None
        self._loop_task = None
        self._set_current(None)
        if was_running:
            logger.info("Reminder poller stopped")

    async def _run(self) -> None:
        """Fire a check immediately, then every interval until cancelled.

        Each check runs as its own task, so a slow response never delays
        the next tick; whichever response lands last wins.
        """
        while True:
            task = asyncio.create_task(self.check())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.sleep(self._config.poll_interval)

    # ── Checks ─────────────────────────────────────────────────────

    async def check(self) -> ActiveNotification | None:
        """Query the source once and update the active notification.

        Also called directly when the client regains focus. Failures are
        logged and count as "nothing due".
        """
        if not self._auth.is_authenticated:
            return self._current

        try:
            reminders = await self._source.upcoming()
        except Exception as e:
            logger.warning("Error fetching upcoming notifications: %s", e)
            return self._current

        if not self._auth.is_authenticated:
            return self._current

        now = self._clock()
        due = next((r for r in reminders if r.is_due(now)), None)
        if due is None:
            return self._current

        candidate = ActiveNotification.from_reminder(due)
        if self._current is None or self._current.task.id != candidate.task.id:
            logger.info("Reminder due: %r (task %s)", due.title, due.task_id)
            self._set_current(candidate)
            self._notifier.show(due.title, due.subject)
        return self._current

    # ── Actions ────────────────────────────────────────────────────

    async def dismiss(self) -> None:
        """Acknowledge the shown reminder; the popup clears even if the call fails."""
        active = self._current
        if active is None or not active.task.id:
            self._set_current(None)
            return
        try:
            await self._source.dismiss(active.task.id)
        except Exception as e:
            logger.warning("Error dismissing notification for task %s: %s", active.task.id, e)
        finally:
            self._set_current(None)

    async def snooze(self, minutes: int | None = None) -> None:
        """Postpone the shown reminder; defaults to the user's snooze length."""
        active = self._current
        if active is None or not active.task.id:
            self._set_current(None)
            return
        if minutes is None and self._settings is not None and self._settings.value:
            minutes = self._settings.value.default_snooze
        try:
            await self._source.snooze(active.task.id, minutes)
        except Exception as e:
            logger.warning("Error snoozing notification for task %s: %s", active.task.id, e)
        finally:
            self._set_current(None)
