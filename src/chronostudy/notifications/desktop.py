"""Desktop notifications — best-effort system popup for due reminders.

Uses the platform's own notification command (notify-send, osascript or a
PowerShell balloon tip), so no extra dependencies are needed. Any failure
degrades silently to the in-app popup.
"""

import asyncio
import logging
import shutil
import sys
from enum import Enum

from chronostudy.config import ChronoConfig, get_config

logger = logging.getLogger(__name__)

_APP_NAME = "ChronoStudy"
_DEFAULT_BODY = "You have a pending task"


class Permission(str, Enum):
    """Notification permission, mirroring the browser's three states."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


def _platform_command() -> str | None:
    """Name of the notification command for this platform, if installed."""
    if sys.platform == "win32":
        name = "powershell"
    elif sys.platform == "darwin":
        name = "osascript"
    else:
        name = "notify-send"
    return name if shutil.which(name) else None


def _quote(text: str) -> str:
    return text.replace("'", "").replace('"', "")


def build_command(title: str, body: str, icon: str = "") -> list[str]:
    """Build the argv that shows a notification on the current platform."""
    if sys.platform == "win32":
        ps_cmd = (
            "Add-Type -AssemblyName System.Windows.Forms; "
            "$notify = New-Object System.Windows.Forms.NotifyIcon; "
            "$notify.Icon = [System.Drawing.SystemIcons]::Information; "
            "$notify.Visible = $true; "
            f"$notify.ShowBalloonTip(5000, '{_quote(title)}', '{_quote(body)}', 'Info'); "
            "Start-Sleep -Seconds 6; $notify.Dispose()"
        )
        return ["powershell", "-Command", ps_cmd]
    if sys.platform == "darwin":
        script = (
            f'display notification "{_quote(body)}" '
            f'with title "{_APP_NAME}" subtitle "{_quote(title)}"'
        )
        return ["osascript", "-e", script]
    cmd = ["notify-send", "--app-name", _APP_NAME]
    if icon:
        cmd += ["--icon", icon]
    return cmd + [title, body]


class DesktopNotifier:
    """Shows system notifications once permission has been granted."""

    def __init__(self, config: ChronoConfig | None = None) -> None:
        self._config = config or get_config()
        self._permission = Permission.DEFAULT
        self._pending: set[asyncio.Task] = set()

    @property
    def permission(self) -> Permission:
        return self._permission

    def request_permission(self) -> Permission:
        """Resolve DEFAULT to GRANTED or DENIED; a decided state is never re-asked."""
        if self._permission is not Permission.DEFAULT:
            return self._permission

        if self._config.desktop_notifications and _platform_command():
            self._permission = Permission.GRANTED
        else:
            self._permission = Permission.DENIED
        logger.debug("Desktop notification permission: %s", self._permission.value)
        return self._permission

    def show(self, title: str, body: str | None = None) -> bool:
        """Schedule a system notification; returns False when not permitted."""
        if self._permission is not Permission.GRANTED:
            return False

        argv = build_command(
            title or "Pending task",
            body or _DEFAULT_BODY,
            self._config.notification_icon,
        )
        try:
            task = asyncio.get_running_loop().create_task(self._deliver(argv))
        except RuntimeError:
            logger.debug("No running loop, desktop notification skipped")
            return False
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def _deliver(self, argv: list[str]) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await proc.wait()
        except Exception:
            logger.debug("Desktop notification failed", exc_info=True)

    def close(self) -> None:
        """Cancel notifications still being delivered."""
        for task in list(self._pending):
            task.cancel()


class NullNotifier(DesktopNotifier):
    """Notifier for headless runs: permission is always denied."""

    def request_permission(self) -> Permission:
        self._permission = Permission.DENIED
        return self._permission
