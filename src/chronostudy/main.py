"""ChronoStudy entry point — CLI args, async loop, and the live reminder view."""

import argparse
import asyncio
import getpass
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone

from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from chronostudy.api.base import ApiError
from chronostudy.api.client import ApiClient
from chronostudy.config import ChronoConfig, get_config
from chronostudy.notifications.desktop import DesktopNotifier, Permission
from chronostudy.notifications.settings_store import NotificationSettingsStore
from chronostudy.session.auth import AuthSession, TokenStore, login_with_password
from chronostudy.session.context import SessionContext
from chronostudy.tasks.countdown import Task
from chronostudy.tasks.service import fetch_tasks
from chronostudy.ui.render import render_popup, render_settings, render_task_list
from chronostudy.utils.logger import setup_logging

console = Console()
logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="chronostudy",
        description="ChronoStudy — study task reminders in your terminal",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Check backend connectivity and desktop notification support",
    )

    sub = parser.add_subparsers(dest="command")

    login = sub.add_parser("login", help="Log in and store the session token")
    login.add_argument("email")

    sub.add_parser("logout", help="Forget the stored session")
    sub.add_parser("tasks", help="Show tasks with their next reminder")
    sub.add_parser("watch", help="Live task list with reminder popups (default)")

    settings = sub.add_parser("settings", help="Show or change reminder settings")
    settings.add_argument("--high", type=int, help="High priority cadence (minutes)")
    settings.add_argument("--medium", type=int, help="Medium priority cadence (minutes)")
    settings.add_argument("--low", type=int, help="Low priority cadence (minutes)")
    settings.add_argument("--snooze", type=int, help="Default snooze (minutes)")
    toggle = settings.add_mutually_exclusive_group()
    toggle.add_argument("--enable", dest="enabled", action="store_true", default=None)
    toggle.add_argument("--disable", dest="enabled", action="store_false")
    settings.set_defaults(enabled=None)

    return parser.parse_args(argv)


def _require_login(auth: AuthSession) -> bool:
    if auth.is_authenticated:
        return True
    console.print("[yellow]Not logged in.[/] Run [bold]chronostudy login EMAIL[/] first.")
    return False


async def _run_check(config: ChronoConfig, client: ApiClient, auth: AuthSession) -> None:
    """Test backend connectivity and desktop notification support."""
    console.print("\n[bold]ChronoStudy System Check[/]\n")
    console.print(f"  backend: {config.api_base_url}")

    if auth.is_authenticated:
        try:
            await client.get("/auth/notification-settings")
            console.print("  [green]✅[/] backend: reachable, session valid")
        except ApiError as e:
            console.print(f"  [red]❌[/] backend: {e}")
    else:
        console.print("  [dim]ℹ️[/]  session: not logged in")

    permission = DesktopNotifier(config).request_permission()
    if permission is Permission.GRANTED:
        console.print("  [green]✅[/] desktop notifications: available")
    else:
        console.print("  [yellow]⚠️[/] desktop notifications: unavailable (in-app popup only)")
    console.print()


async def _login(client: ApiClient, auth: AuthSession, email: str) -> None:
    password = await asyncio.get_running_loop().run_in_executor(
        None, lambda: getpass.getpass("Password: "),
    )
    try:
        user = await login_with_password(client, auth, email, password)
    except ApiError as e:
        console.print(f"[red]Could not log in.[/] {e.message}")
        return
    console.print(f"[green]Logged in as[/] {user.get('name') or user.get('email') or email}")


async def _show_tasks(client: ApiClient, auth: AuthSession) -> None:
    if not _require_login(auth):
        return
    store = NotificationSettingsStore(client, auth)
    settings = await store.load()
    try:
        tasks = await fetch_tasks(client)
    except ApiError as e:
        console.print(f"[red]Could not load tasks.[/] {e.message}")
        return
    console.print(render_task_list(tasks, settings, datetime.now(timezone.utc)))


async def _settings(args: argparse.Namespace, client: ApiClient, auth: AuthSession) -> None:
    if not _require_login(auth):
        return
    store = NotificationSettingsStore(client, auth)
    current = await store.load()

    changes = {
        "enabled": args.enabled,
        "high_every": args.high,
        "medium_every": args.medium,
        "low_every": args.low,
        "default_snooze": args.snooze,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        console.print(render_settings(current))
        return

    new_settings = replace(current, **changes).coerced()
    try:
        saved = await store.save(new_settings)
    except ApiError:
        console.print("[red]Could not save notification settings.[/]")
        return
    # A failed reload falls back to defaults; the save response is authoritative
    await store.reload()
    console.print("[green]Notification settings saved.[/]")
    console.print(render_settings(saved))


def _parse_snooze_minutes(rest: list[str]) -> int | None:
    """Minutes typed after ``s``; anything but a whole number >= 1 means default."""
    if not rest:
        return None
    try:
        minutes = int(rest[0])
    except ValueError:
        return None
    return minutes if minutes >= 1 else None


async def _reload_tasks(client: ApiClient) -> list[Task] | None:
    try:
        return await fetch_tasks(client)
    except ApiError as e:
        logger.warning("Load tasks error: %s", e)
        return None


async def _watch(
    config: ChronoConfig,
    client: ApiClient,
    auth: AuthSession,
    notifier: DesktopNotifier,
) -> None:
    """Live task list; reminder popups appear as the poller finds them."""
    if not _require_login(auth):
        return

    async with SessionContext(auth, client, notifier, config=config) as session:
        tasks = await _reload_tasks(client) or []

        def view() -> Group:
            parts = [render_task_list(tasks, session.settings.value, session.ticker.now)]
            if session.poller.current is not None:
                parts.append(render_popup(session.poller.current))
            parts.append(Text(
                "d dismiss · s [min] snooze · t tasks · r re-check · q quit",
                style="dim",
            ))
            return Group(*parts)

        loop = asyncio.get_running_loop()
        with Live(view(), console=console, auto_refresh=False) as live:
            def refresh(*_: object) -> None:
                live.update(view(), refresh=True)

            unsubscribers = [
                session.ticker.subscribe(refresh),
                session.poller.on_change(refresh),
            ]

            try:
                while session.active:
                    line = await loop.run_in_executor(None, sys.stdin.readline)
                    if not line:
                        break
                    cmd, *rest = line.strip().lower().split() or [""]

                    if cmd in ("q", "quit", "exit"):
                        break
                    if cmd == "d":
                        await session.poller.dismiss()
                    elif cmd == "s":
                        await session.poller.snooze(_parse_snooze_minutes(rest))
                    elif cmd == "t":
                        await session.poller.dismiss()
                        tasks = await _reload_tasks(client) or tasks
                    elif cmd == "r":
                        await session.refocus()
                        tasks = await _reload_tasks(client) or tasks
                    refresh()
            finally:
                for unsubscribe in unsubscribers:
                    unsubscribe()


async def _async_main(argv: list[str] | None = None) -> None:
    """Async entry point."""
    args = _parse_args(argv)

    config = get_config()
    setup_logging(verbose=args.verbose, log_level=config.log_level, console=console)

    auth = AuthSession(TokenStore(config.session_file))
    notifier = DesktopNotifier(config)

    async with ApiClient(auth.get_token, config=config) as client:
        if args.check:
            await _run_check(config, client, auth)
            return

        if args.command == "login":
            await _login(client, auth, args.email)
        elif args.command == "logout":
            auth.logout()
            console.print("Logged out.")
        elif args.command == "tasks":
            await _show_tasks(client, auth)
        elif args.command == "settings":
            await _settings(args, client, auth)
        else:
            await _watch(config, client, auth, notifier)


def main() -> None:
    """Synchronous entry point."""
    try:
        asyncio.run(_async_main())
    except KeyboardInterrupt:
        console.print("\n[bold green]Bye![/]")


if __name__ == "__main__":
    main()
