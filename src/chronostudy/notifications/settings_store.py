"""Notification settings store — the session's copy of the user's reminder prefs."""

import logging

from chronostudy.api.base import AuthRequiredError
from chronostudy.api.client import ApiClient
from chronostudy.notifications.models import DEFAULT_SETTINGS, NotificationSettings
from chronostudy.session.auth import AuthSession

logger = logging.getLogger(__name__)

SETTINGS_PATH = "/auth/notification-settings"


class NotificationSettingsStore:
    """Loads and saves NotificationSettings through the backend.

    ``value`` is None until loaded and whenever no user is logged in;
    consumers treat None as "reminders disabled".
    """

    def __init__(self, client: ApiClient, auth: AuthSession) -> None:
        self._client = client
        self._auth = auth
        self._value: NotificationSettings | None = None
        self._loading = False

    @property
    def value(self) -> NotificationSettings | None:
        return self._value

    @property
    def loading(self) -> bool:
        return self._loading

    async def load(self) -> NotificationSettings | None:
        """Fetch the user's settings, falling back to defaults on any failure."""
        if not self._auth.is_authenticated:
            self._value = None
            self._loading = False
            return None

        self._loading = True
        try:
            data = await self._client.get(SETTINGS_PATH)
            self._value = NotificationSettings.from_api(data) if data else DEFAULT_SETTINGS
        except Exception as e:
            logger.error("Notification settings load failed, using defaults: %s", e)
            self._value = DEFAULT_SETTINGS
        finally:
            self._loading = False
        return self._value

    async def save(self, new_settings: NotificationSettings) -> NotificationSettings:
        """Replace the user's settings; the server's copy becomes the store value.

        Raises:
            ApiError: On any backend failure; the store is left unchanged.
            AuthRequiredError: When no user is logged in.
        """
        if not self._auth.is_authenticated:
            raise AuthRequiredError(SETTINGS_PATH)

        try:
            data = await self._client.post(SETTINGS_PATH, json=new_settings.to_api())
        except Exception as e:
            logger.error("Notification settings save failed: %s", e)
            raise

        self._value = NotificationSettings.from_api(data) if data else new_settings
        logger.info("Notification settings saved: %s", self._value)
        return self._value

    async def reload(self) -> NotificationSettings | None:
        """Re-run load() to pick up any server-side normalization."""
        return await self.load()

    def clear(self) -> None:
        self._value = None
        self._loading = False
