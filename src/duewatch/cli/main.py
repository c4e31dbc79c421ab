# src/duewatch/cli/main.py

"""
CLI entrypoint.

Initializes logging, loads the task list into an in-memory TaskStore, then:
- `watch`: runs the deadline scheduler until Ctrl+C (or a single pass with --once),
- `list`: prints the tasks with their countdown labels.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
import signal
from pathlib import Path

import click

from ..config import Settings, get_settings
from ..logging_setup import setup_logging
from ..notify import ConsoleAlertSink, DesktopNotifier
from ..tasks.countdown import format_countdown
from ..tasks.task_scheduler import DeadlineScheduler, SystemClock
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _load_store(path: Path) -> TaskStore:
    if not path.exists():
        raise click.ClickException(f"Task file not found: {path}")
    try:
        return TaskStore.load_json(path)
    except (ValueError, KeyError, TypeError) as e:
        raise click.ClickException(f"Invalid task file {path}: {e}") from e


async def _watch(store: TaskStore, settings: Settings, *, once: bool) -> None:
    scheduler = DeadlineScheduler.from_settings(
        settings,
        store,
        store,
        alert_sink=ConsoleAlertSink(dismiss_seconds=settings.banner_dismiss_seconds),
        os_notifier=DesktopNotifier(enabled=settings.os_notifications_enabled),
    )
    unsubscribe = store.subscribe(scheduler.rearm)

    if once:
        scheduler.refresh_permission()
        result = scheduler.run_pass()
        click.echo(f"Alerts: {len(result.fired)}; reordered: {'yes' if result.reordered else 'no'}")
        unsubscribe()
        return

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms (Windows) do not support loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    scheduler.start()
    logger.info("Watching %d tasks. Press Ctrl+C to stop.", store.count_tasks())
    try:
        await stop.wait()
    finally:
        await scheduler.aclose()
        unsubscribe()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--log-level", default=None, help="Console log level (default: DUEWATCH_LOG_LEVEL or INFO)")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """duewatch: deadline alerts and promotion for a personal task list."""
    settings = get_settings()

    level_name = (log_level or settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    ctx.obj = settings


@main.command()
@click.option("--tasks", "tasks_path", type=click.Path(path_type=Path), default=None, help="Task JSON file")
@click.option("--interval", type=float, default=None, help="Seconds between deadline checks")
@click.option("--no-os-notifications", is_flag=True, help="Only show in-app (console) alerts")
@click.option("--once", is_flag=True, help="Run a single check and exit")
@click.pass_obj
def watch(
    settings: Settings,
    tasks_path: Path | None,
    interval: float | None,
    no_os_notifications: bool,
    once: bool,
) -> None:
    """Watch the task list and alert on approaching deadlines."""
    overrides: dict[str, object] = {}
    if interval is not None:
        if interval <= 0:
            raise click.BadParameter("must be positive", param_hint="--interval")
        overrides["check_interval_seconds"] = interval
    if no_os_notifications:
        overrides["os_notifications_enabled"] = False
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    store = _load_store(tasks_path or settings.tasks_path)
    logger.info("Starting %s...", settings.app_name)
    asyncio.run(_watch(store, settings, once=once))


@main.command("list")
@click.option("--tasks", "tasks_path", type=click.Path(path_type=Path), default=None, help="Task JSON file")
@click.pass_obj
def list_tasks(settings: Settings, tasks_path: Path | None) -> None:
    """Print tasks in order with their countdowns."""
    store = _load_store(tasks_path or settings.tasks_path)
    now = SystemClock().now_ms()
    for task in store.list_tasks():
        mark = "x" if task.completed else " "
        countdown = format_countdown(task.due_date, now) if not task.completed else None
        suffix = f"  ({countdown})" if countdown else ""
        click.echo(f"[{mark}] {task.text or task.id}{suffix}")


if __name__ == "__main__":
    main()
