# src/duewatch/tasks/deadline.py

from __future__ import annotations

"""
Deadline evaluation.

Pure helpers that decide whether a task has entered its alert window, plus the
per-engine registry of tasks that already alerted.

Alert window for a task: (due_date - threshold, due_date], where threshold is the
resolved offset in minutes. Overdue tasks never alert.
"""

from collections.abc import Iterator
from datetime import datetime

from .task_models import OFFSET_DISABLED, NotificationContent, Task

MS_PER_MINUTE = 60_000

# Auto lead times (minutes) when notification_offset is not set.
DEFAULT_TIME_OFFSET_MINUTES = 30
DEFAULT_DATE_OFFSET_MINUTES = 1440

DEFAULT_TITLE = "Deadline approaching"
DEFAULT_BODY_TEMPLATE = "{name} is due at {time}"
DEFAULT_TIME_FORMAT = "%H:%M"


class AlertRegistry:
    """
    Task ids that already fired an alert during one engine lifetime.

    Entries are never removed individually: a task whose due date is edited after
    alerting will not alert again until the registry is reset.
    """

    def __init__(self) -> None:
        self._ids: set[str] = set()

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def mark(self, task_id: str) -> None:
        self._ids.add(task_id)

    def clear(self) -> None:
        self._ids.clear()


def resolve_offset_minutes(
    task: Task,
    *,
    default_time_offset: int = DEFAULT_TIME_OFFSET_MINUTES,
    default_date_offset: int = DEFAULT_DATE_OFFSET_MINUTES,
) -> int | None:
    """Effective lead time in minutes, or None when alerts are disabled for the task."""
    offset = task.notification_offset
    if offset == OFFSET_DISABLED:
        return None
    if offset is not None:
        return offset
    return default_time_offset if task.include_time else default_date_offset


def is_in_alert_window(
    task: Task,
    now_ms: int,
    registry: AlertRegistry,
    *,
    default_time_offset: int = DEFAULT_TIME_OFFSET_MINUTES,
    default_date_offset: int = DEFAULT_DATE_OFFSET_MINUTES,
) -> bool:
    """
    True if the task should alert now.

    Requires: incomplete, has a due date, not yet alerted, alerts enabled and
    0 < due_date - now <= offset.
    """
    if task.completed or task.due_date is None:
        return False
    if task.id in registry:
        return False

    offset = resolve_offset_minutes(
        task,
        default_time_offset=default_time_offset,
        default_date_offset=default_date_offset,
    )
    if offset is None:
        return False

    threshold = offset * MS_PER_MINUTE
    time_left = task.due_date - now_ms
    return 0 < time_left <= threshold


def format_due_time(due_date_ms: int, time_format: str = DEFAULT_TIME_FORMAT) -> str:
    return datetime.fromtimestamp(due_date_ms / 1000).strftime(time_format)


def build_notification(
    task: Task,
    *,
    title: str = DEFAULT_TITLE,
    body_template: str = DEFAULT_BODY_TEMPLATE,
    time_format: str = DEFAULT_TIME_FORMAT,
) -> NotificationContent:
    due = format_due_time(task.due_date, time_format) if task.due_date is not None else ""
    return NotificationContent(title=title, body=body_template.format(name=task.text, time=due))
