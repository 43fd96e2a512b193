"""Tests for NotificationSettingsStore — load fallback, save, reload."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chronostudy.api.base import ApiError, AuthRequiredError
from chronostudy.notifications.models import DEFAULT_SETTINGS, NotificationSettings
from chronostudy.notifications.settings_store import NotificationSettingsStore

SERVER_SETTINGS = {
    "enabled": True,
    "highEvery": 10,
    "mediumEvery": 25,
    "lowEvery": 60,
    "defaultSnooze": 5,
}


@pytest.fixture
def auth():
    auth = MagicMock()
    auth.is_authenticated = True
    return auth


@pytest.fixture
def client():
    client = MagicMock()
    client.get = AsyncMock(return_value=SERVER_SETTINGS)
    client.post = AsyncMock(return_value=SERVER_SETTINGS)
    return client


@pytest.fixture
def store(client, auth):
    return NotificationSettingsStore(client, auth)


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_parses_server_settings(self, store, client):
        settings = await store.load()

        client.get.assert_awaited_once_with("/auth/notification-settings")
        assert settings == NotificationSettings(
            enabled=True, high_every=10, medium_every=25, low_every=60, default_snooze=5,
        )
        assert store.value is settings
        assert not store.loading

    @pytest.mark.asyncio
    async def test_network_failure_falls_back_to_defaults(self, store, client):
        client.get.side_effect = ApiError("/auth/notification-settings", "down", 503)

        settings = await store.load()

        assert settings == DEFAULT_SETTINGS
        assert settings.as_dict() == {
            "enabled": True,
            "high_every": 15,
            "medium_every": 30,
            "low_every": 45,
            "default_snooze": 20,
        }
        assert not store.loading

    @pytest.mark.asyncio
    async def test_empty_response_uses_defaults(self, store, client):
        client.get.return_value = None
        assert await store.load() == DEFAULT_SETTINGS

    @pytest.mark.asyncio
    async def test_malformed_response_uses_defaults(self, store, client):
        client.get.return_value = {"highEvery": "often"}
        assert await store.load() == DEFAULT_SETTINGS

    @pytest.mark.asyncio
    async def test_no_user_means_no_fetch(self, store, client, auth):
        auth.is_authenticated = False

        assert await store.load() is None
        assert store.value is None
        client.get.assert_not_awaited()


class TestSave:
    @pytest.mark.asyncio
    async def test_save_sends_full_payload_and_keeps_server_copy(self, store, client):
        normalized = {**SERVER_SETTINGS, "highEvery": 5}
        client.post.return_value = normalized
        submitted = NotificationSettings(high_every=3, medium_every=25, low_every=60)

        result = await store.save(submitted)

        client.post.assert_awaited_once_with(
            "/auth/notification-settings", json=submitted.to_api(),
        )
        assert result.high_every == 5
        assert store.value == result

    @pytest.mark.asyncio
    async def test_save_then_reload_matches_server(self, store, client):
        canonical = {**SERVER_SETTINGS, "lowEvery": 90}
        client.post.return_value = canonical
        client.get.return_value = canonical

        await store.save(NotificationSettings(low_every=90))
        reloaded = await store.reload()

        assert reloaded == NotificationSettings.from_api(canonical)
        assert store.value == reloaded

    @pytest.mark.asyncio
    async def test_save_failure_propagates_and_leaves_store(self, store, client):
        await store.load()
        before = store.value
        client.post.side_effect = ApiError("/auth/notification-settings", "bad", 400)

        with pytest.raises(ApiError):
            await store.save(NotificationSettings(high_every=1))

        assert store.value is before

    @pytest.mark.asyncio
    async def test_save_without_body_keeps_submitted(self, store, client):
        client.post.return_value = None
        submitted = NotificationSettings(enabled=False)
        assert await store.save(submitted) == submitted

    @pytest.mark.asyncio
    async def test_save_requires_login(self, store, client, auth):
        auth.is_authenticated = False
        with pytest.raises(AuthRequiredError):
            await store.save(DEFAULT_SETTINGS)
        client.post.assert_not_awaited()


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_resets_value(self, store):
        await store.load()
        store.clear()
        assert store.value is None
