"""Demo: watch a repository's working-copy status

Usage: python -m gitdash.demo [repo_path]
"""

import asyncio
import contextlib
import sys

from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import config
from .asyncjob import JobKind, JobNotification
from .dashboard import RepoDashboard
from .sync import StatusItem, StatusKind
from .telemetry import configure_logging
from .timer import Timer

STATUS_STYLES = {
    StatusKind.NEW: ("+", "green"),
    StatusKind.MODIFIED: ("~", "yellow"),
    StatusKind.DELETED: ("-", "red"),
    StatusKind.RENAMED: ("»", "cyan"),
    StatusKind.TYPECHANGE: ("t", "magenta"),
    StatusKind.CONFLICTED: ("!", "bold red"),
}


def render_status(items: list[StatusItem], error: str | None = None) -> Table:
    """Status list as a rich table"""
    table = Table(
        title=f"working copy ({len(items)} changed)",
        show_header=False,
        box=None,
        expand=True,
    )
    table.add_column("status", width=2)
    table.add_column("path")
    for item in items:
        symbol, style = STATUS_STYLES[item.status]
        table.add_row(Text(symbol, style=style), Text(item.path, style=style))
    if error:
        table.caption = Text(error, style="red")
    return table


def _on_notification(
    console: Console,
    dashboard: RepoDashboard,
    notification: JobNotification,
    shown: list[StatusItem] | None,
) -> list[StatusItem] | None:
    if notification.kind is not JobKind.STATUS:
        return shown
    current = dashboard.current(JobKind.STATUS)
    items = current[1] if current else []
    if notification.ok and items == shown:
        return shown
    console.print(render_status(items, notification.error))
    return items


async def watch(repo_path: str) -> None:
    console = Console()
    dashboard = RepoDashboard(repo_path)
    timer = Timer()
    dashboard.attach(timer)
    timer_task = asyncio.create_task(timer.run())
    shown: list[StatusItem] | None = None

    console.print(f"[bold]gitdash[/bold] watching {repo_path} (Ctrl-C to quit)")
    try:
        while True:
            notification = await asyncio.to_thread(
                dashboard.notifier.receive, config.NOTIFY_RECEIVE_TIMEOUT
            )
            if notification is not None:
                shown = _on_notification(console, dashboard, notification, shown)
    finally:
        timer.stop()
        timer_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await timer_task
        dashboard.close()


def main():
    configure_logging(config.LOG_LEVEL)
    repo_path = sys.argv[1] if len(sys.argv) > 1 else "."
    try:
        asyncio.run(watch(repo_path))
    except KeyboardInterrupt:
        print("\nstopped")


if __name__ == "__main__":
    main()
