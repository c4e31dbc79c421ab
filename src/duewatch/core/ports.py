# src/duewatch/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the deadline engine.

The engine depends on Protocols instead of concrete implementations.
This keeps the task store and notification channels swappable and lets tests
drive the engine with in-memory fakes and a fixed clock.
"""

from collections.abc import Sequence
from typing import Protocol

from ..tasks.task_models import NotificationContent, Task


class Clock(Protocol):
    """Current time as epoch milliseconds."""
    def now_ms(self) -> int: ...


class TaskSource(Protocol):
    """Read side of the task store. Must return the latest ordered snapshot."""
    def list_tasks(self) -> list[Task]: ...


class TaskReorderer(Protocol):
    """
    Write side used by promotion.

    Receives a full replacement order. The collaborator is responsible for
    persisting/broadcasting it; exceptions propagate to the caller.
    """

    def reorder(self, tasks: Sequence[Task]) -> None: ...


class AlertSink(Protocol):
    """In-app channel: shows a banner payload. Banner lifetime belongs to the sink."""
    def show(self, content: NotificationContent) -> None: ...


class OsNotifier(Protocol):
    """
    Platform notification facility.

    send() is fire-and-forget: it must not block on the platform and gives no
    delivery guarantee.
    """

    def is_permission_granted(self) -> bool: ...
    def request_permission(self) -> bool: ...
    def send(self, content: NotificationContent) -> None: ...
