# src/duewatch/tasks/task_scheduler.py

from __future__ import annotations

"""
Deadline scheduler.

A small polling loop that, on every tick:
- re-reads the latest task list from the injected TaskSource,
- alerts (once per activation) every incomplete task that entered its alert window,
- promotes the most urgent of the newly alerted tasks to the front of the list.

One pass runs immediately on start and whenever the loop is re-armed; after that
the pass repeats every interval_seconds. Passes are synchronous and never overlap.
"""

import asyncio
import logging
import time
from typing import Any

from ..core.ports import AlertSink, Clock, OsNotifier, TaskReorderer, TaskSource
from .deadline import (
    DEFAULT_BODY_TEMPLATE,
    DEFAULT_DATE_OFFSET_MINUTES,
    DEFAULT_TIME_FORMAT,
    DEFAULT_TIME_OFFSET_MINUTES,
    DEFAULT_TITLE,
    AlertRegistry,
    build_notification,
    is_in_alert_window,
)
from .promotion import select_promotion
from .task_models import PassResult, Task

logger = logging.getLogger(__name__)


class SystemClock:
    def now_ms(self) -> int:
        return int(time.time() * 1000)


class DeadlineScheduler:
    """
    Deadline notification and promotion engine.

    Owns the alert registry, the OS permission flag and the background loop task.
    Every start() begins a new activation with an empty registry; stop() tears
    the loop down.
    """

    def __init__(
        self,
        tasks: TaskSource,
        reorderer: TaskReorderer,
        *,
        alert_sink: AlertSink | None = None,
        os_notifier: OsNotifier | None = None,
        clock: Clock | None = None,
        interval_seconds: float = 30.0,
        default_time_offset: int = DEFAULT_TIME_OFFSET_MINUTES,
        default_date_offset: int = DEFAULT_DATE_OFFSET_MINUTES,
        title: str = DEFAULT_TITLE,
        body_template: str = DEFAULT_BODY_TEMPLATE,
        time_format: str = DEFAULT_TIME_FORMAT,
    ) -> None:
        self._tasks = tasks
        self._reorderer = reorderer
        self._alert_sink = alert_sink
        self._os_notifier = os_notifier
        self._clock: Clock = clock or SystemClock()

        self._interval = max(0.01, float(interval_seconds))
        self._default_time_offset = default_time_offset
        self._default_date_offset = default_date_offset
        self._title = title
        self._body_template = body_template
        self._time_format = time_format

        self._registry = AlertRegistry()
        self._os_permission = False
        self._runner: asyncio.Task[None] | None = None
        self._wake: asyncio.Event | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        tasks: TaskSource,
        reorderer: TaskReorderer,
        **kwargs: Any,
    ) -> DeadlineScheduler:
        return cls(
            tasks,
            reorderer,
            interval_seconds=settings.check_interval_seconds,
            default_time_offset=settings.default_time_offset_minutes,
            default_date_offset=settings.default_date_offset_minutes,
            title=settings.notification_title,
            body_template=settings.notification_body_template,
            time_format=settings.time_format,
            **kwargs,
        )

    # ---- state ----

    @property
    def registry(self) -> AlertRegistry:
        return self._registry

    @property
    def os_permission(self) -> bool:
        return self._os_permission

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    # ---- lifecycle ----

    def start(self) -> None:
        """
        Begin an activation: reset the registry, check OS permission, start the loop.

        Must be called from a running event loop. No-op while already running.
        """
        if self.running:
            return
        self._registry.clear()
        self.refresh_permission()
        self._wake = asyncio.Event()
        self._runner = asyncio.create_task(self._run(self._wake), name="deadline-scheduler")
        logger.info("Deadline scheduler started interval=%.1fs", self._interval)

    def stop(self) -> None:
        """Cancel the cadence. In-flight OS notifications are left to finish on their own."""
        runner, self._runner = self._runner, None
        self._wake = None
        if runner is not None and not runner.done():
            runner.cancel()
            logger.info("Deadline scheduler stopped")

    async def aclose(self) -> None:
        runner = self._runner
        self.stop()
        if runner is None:
            return
        try:
            await runner
        except asyncio.CancelledError:
            pass

    def rearm(self) -> None:
        """Run a pass right away and restart the cadence (no-op when not running)."""
        if self._wake is not None:
            self._wake.set()

    def set_task_source(self, tasks: TaskSource) -> None:
        self._tasks = tasks
        self.rearm()

    def set_reorderer(self, reorderer: TaskReorderer) -> None:
        self._reorderer = reorderer
        self.rearm()

    def set_alert_sink(self, alert_sink: AlertSink | None) -> None:
        self._alert_sink = alert_sink
        self.rearm()

    def refresh_permission(self) -> bool:
        """
        Query (and if needed request) OS notification permission.

        Any failure counts as "not authorized"; in-app alerts are unaffected.
        """
        notifier = self._os_notifier
        if notifier is None:
            self._os_permission = False
            return False

        try:
            granted = notifier.is_permission_granted()
            if not granted:
                granted = notifier.request_permission()
        except Exception:
            logger.warning("OS notification permission check failed; OS alerts disabled", exc_info=True)
            granted = False

        self._os_permission = bool(granted)
        if self._os_permission:
            logger.info("OS notifications authorized")
        else:
            logger.warning("OS notifications not authorized; using in-app alerts only")
        return self._os_permission

    async def _run(self, wake: asyncio.Event) -> None:
        while True:
            wake.clear()
            try:
                self.run_pass()
            except Exception:
                # A failing reorder (or sink) aborts this pass only.
                logger.exception("Deadline pass failed")

            try:
                await asyncio.wait_for(wake.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

    # ---- evaluation ----

    def run_pass(self, now: int | None = None) -> PassResult:
        """
        Evaluate every incomplete task once, then promote at most one.

        Exceptions from the reorderer or the in-app sink propagate to the caller.
        """
        now_ms = self._clock.now_ms() if now is None else now
        tasks = self._tasks.list_tasks()
        result = PassResult()

        for task in tasks:
            if task.completed:
                continue
            if not is_in_alert_window(
                task,
                now_ms,
                self._registry,
                default_time_offset=self._default_time_offset,
                default_date_offset=self._default_date_offset,
            ):
                continue
            self._dispatch(task)
            self._registry.mark(task.id)
            result.fired.append(task)

        new_order = select_promotion(tasks, result.fired)
        if new_order is not None:
            logger.info("Promoting task %s to the front", new_order[0].id)
            result.reordered = True
            self._reorderer.reorder(new_order)

        return result

    def _dispatch(self, task: Task) -> None:
        content = build_notification(
            task,
            title=self._title,
            body_template=self._body_template,
            time_format=self._time_format,
        )
        logger.info("Deadline alert task=%s due=%s", task.id, task.due_date)

        if self._os_permission and self._os_notifier is not None:
            try:
                self._os_notifier.send(content)
            except Exception:
                # At most once: a failed OS notification is not retried.
                logger.debug("OS notification failed task=%s", task.id, exc_info=True)

        if self._alert_sink is not None:
            self._alert_sink.show(content)
