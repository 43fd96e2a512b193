"""Rich renderables for the terminal client: reminder popup, task list, settings."""

from datetime import datetime

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chronostudy.notifications.models import ActiveNotification, NotificationSettings
from chronostudy.tasks.countdown import Task, time_until_next_notification, tracked_minutes

_PRIORITY_STYLES = {
    "low": "green",
    "medium": "yellow",
    "high": "red",
}


def priority_label(priority: str) -> str:
    if priority == "high":
        return "High priority"
    if priority == "medium":
        return "Medium priority"
    return "Low priority"


def render_popup(active: ActiveNotification) -> Panel:
    """The reminder card shown for the active notification."""
    body = Text()
    body.append(active.task.title or "Pending task", style="bold")
    if active.task.subject:
        body.append(f"\n{active.task.subject}", style="dim")
    body.append(f"\n{priority_label(active.priority)} • from your task list", style="dim")
    body.append("\n\n[t] view tasks   [s] snooze   [d] dismiss", style="cyan")
    return Panel(body, title="Reminder", border_style="magenta", expand=False)


def render_task_list(
    tasks: list[Task],
    settings: NotificationSettings | None,
    now: datetime,
) -> Table:
    """Task table with tracked time and the next-reminder countdown."""
    table = Table(title="Tasks", expand=False)
    table.add_column("", width=1)
    table.add_column("Task")
    table.add_column("Subject", style="dim")
    table.add_column("Priority")
    table.add_column("Tracked", justify="right")
    table.add_column("Reminder")

    reminders_on = settings is not None and settings.enabled
    for task in tasks:
        done = task.completed
        minutes = tracked_minutes(task, now)
        tracked = ""
        if minutes > 0:
            tracked = f"{minutes}m"
            if task.timer_running:
                tracked += " (running)"

        reminder = Text()
        if not done:
            countdown = time_until_next_notification(task, settings, now)
            if not reminders_on:
                reminder.append("off", style="dim")
            elif countdown is not None:
                reminder.append(
                    f"in {countdown.text}",
                    style="red" if countdown.overdue else "",
                )

        table.add_row(
            "✓" if done else "",
            Text(task.title, style="strike" if done else ""),
            task.subject or "No subject",
            Text(task.priority, style=_PRIORITY_STYLES.get(task.priority, "")),
            tracked,
            reminder,
        )
    return table


def render_settings(settings: NotificationSettings | None) -> Table:
    table = Table(title="Notification settings", show_header=False, expand=False)
    table.add_column("Setting")
    table.add_column("Value", justify="right")
    if settings is None:
        table.add_row("Reminders", "not loaded")
        return table
    table.add_row("Reminders", "on" if settings.enabled else "off")
    table.add_row("High priority every", f"{settings.high_every} min")
    table.add_row("Medium priority every", f"{settings.medium_every} min")
    table.add_row("Low priority every", f"{settings.low_every} min")
    table.add_row("Default snooze", f"{settings.default_snooze} min")
    return table
