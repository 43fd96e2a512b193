"""Application-session context — everything that lives for one login.

Owns the settings store, the reminder poller and the repaint ticker, and
ties their lifetime to the auth session: ``init()`` on login,
``teardown()`` on logout. Used as an async context manager so teardown
also runs when the client exits on an error.
"""

import logging
from collections.abc import Callable

from chronostudy.api.client import ApiClient
from chronostudy.config import ChronoConfig, get_config
from chronostudy.notifications.desktop import DesktopNotifier
from chronostudy.notifications.poller import ReminderPoller
from chronostudy.notifications.settings_store import NotificationSettingsStore
from chronostudy.notifications.source import ReminderSource, RestReminderSource
from chronostudy.session.auth import AuthSession
from chronostudy.tasks.ticker import Ticker

logger = logging.getLogger(__name__)


class SessionContext:
    """Per-login state shared by the poller and the task list view."""

    def __init__(
        self,
        auth: AuthSession,
        client: ApiClient,
        notifier: DesktopNotifier,
        config: ChronoConfig | None = None,
        source: ReminderSource | None = None,
    ) -> None:
        self._config = config or get_config()
        self.auth = auth
        self.client = client
        self.notifier = notifier
        self.settings = NotificationSettingsStore(client, auth)
        self.poller = ReminderPoller(
            source or RestReminderSource(client),
            auth,
            notifier,
            settings=self.settings,
            config=self._config,
        )
        self.ticker = Ticker(self._config.tick_interval)
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        return self.poller.is_running

    async def init(self) -> bool:
        """Load settings and start polling; False when nobody is logged in."""
        if not self.auth.is_authenticated:
            self.settings.clear()
            return False
        await self.settings.load()
        self.notifier.request_permission()
        self.poller.start()
        self.ticker.start()
        logger.info("Session started")
        return True

    async def teardown(self) -> None:
        """Stop timers and drop all per-login state."""
        await self.poller.stop()
        await self.ticker.stop()
        self.settings.clear()
        self.notifier.close()
        logger.info("Session ended")

    async def refocus(self) -> None:
        """Re-check immediately, e.g. after the terminal regains focus."""
        await self.poller.check()

    def attach(self) -> None:
        """Follow login/logout on the auth session."""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_change(self._on_auth_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_auth_change(self, user: dict | None) -> None:
        if user:
            await self.init()
        else:
            await self.teardown()

    async def __aenter__(self) -> "SessionContext":
        self.attach()
        await self.init()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.detach()
        await self.teardown()
