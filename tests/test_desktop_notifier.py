"""Tests for DesktopNotifier — permission flow and command building."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chronostudy.config import ChronoConfig
from chronostudy.notifications import desktop
from chronostudy.notifications.desktop import (
    DesktopNotifier,
    NullNotifier,
    Permission,
    build_command,
)


@pytest.fixture
def config():
    return ChronoConfig(desktop_notifications=True, notification_icon="")


class TestPermission:
    def test_starts_undecided(self, config):
        assert DesktopNotifier(config).permission is Permission.DEFAULT

    def test_granted_when_command_available(self, config):
        with patch.object(desktop, "_platform_command", return_value="notify-send"):
            assert DesktopNotifier(config).request_permission() is Permission.GRANTED

    def test_denied_without_command(self, config):
        with patch.object(desktop, "_platform_command", return_value=None):
            assert DesktopNotifier(config).request_permission() is Permission.DENIED

    def test_denied_when_switched_off(self):
        config = ChronoConfig(desktop_notifications=False)
        with patch.object(desktop, "_platform_command", return_value="notify-send"):
            assert DesktopNotifier(config).request_permission() is Permission.DENIED

    def test_denial_is_never_retried(self, config):
        notifier = DesktopNotifier(config)
        with patch.object(desktop, "_platform_command", return_value=None):
            notifier.request_permission()
        with patch.object(desktop, "_platform_command", return_value="notify-send") as probe:
            assert notifier.request_permission() is Permission.DENIED
            probe.assert_not_called()

    def test_null_notifier_always_denied(self, config):
        assert NullNotifier(config).request_permission() is Permission.DENIED


class TestShow:
    def test_not_shown_without_permission(self, config):
        assert DesktopNotifier(config).show("Essay", "History") is False

    @pytest.mark.asyncio
    async def test_spawns_platform_command(self, config, monkeypatch):
        monkeypatch.setattr(desktop.sys, "platform", "linux")
        proc = MagicMock()
        proc.wait = AsyncMock(return_value=0)
        spawn = AsyncMock(return_value=proc)
        notifier = DesktopNotifier(config)

        with patch.object(desktop, "_platform_command", return_value="notify-send"), \
                patch.object(desktop.asyncio, "create_subprocess_exec", spawn):
            notifier.request_permission()
            assert notifier.show("Essay", "History") is True
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        argv = spawn.call_args.args
        assert argv[0] == "notify-send"
        assert argv[-2:] == ("Essay", "History")

    @pytest.mark.asyncio
    async def test_spawn_failure_is_swallowed(self, config):
        notifier = DesktopNotifier(config)
        spawn = AsyncMock(side_effect=FileNotFoundError("notify-send"))

        with patch.object(desktop, "_platform_command", return_value="notify-send"), \
                patch.object(desktop.asyncio, "create_subprocess_exec", spawn):
            notifier.request_permission()
            notifier.show("Essay")
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        spawn.assert_awaited_once()


class TestBuildCommand:
    def test_linux_default_body_and_icon(self, monkeypatch):
        monkeypatch.setattr(desktop.sys, "platform", "linux")
        argv = build_command("Essay", "You have a pending task", icon="/icon.png")
        assert argv[:3] == ["notify-send", "--app-name", "ChronoStudy"]
        assert "--icon" in argv
        assert argv[-1] == "You have a pending task"

    def test_macos_strips_quotes(self, monkeypatch):
        monkeypatch.setattr(desktop.sys, "platform", "darwin")
        argv = build_command('Say "hi"', "Body")
        assert argv[0] == "osascript"
        assert '"hi"' not in argv[2]

    def test_windows_uses_powershell(self, monkeypatch):
        monkeypatch.setattr(desktop.sys, "platform", "win32")
        argv = build_command("Tom's essay", "Body")
        assert argv[0] == "powershell"
        assert "Toms essay" in argv[2]
