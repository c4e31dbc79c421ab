# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from duewatch.config import Settings
from duewatch.tasks.task_scheduler import DeadlineScheduler

from .fakes import FakeAlertSink, FakeClock, FakeOsNotifier, FakeTaskList


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Deterministic settings with paths under tmp.

    Built directly rather than from the environment so a developer's .env
    cannot leak into tests.
    """
    return Settings(
        app_name="duewatch-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        check_interval_seconds=30.0,
        default_time_offset_minutes=30,
        default_date_offset_minutes=1440,
        os_notifications_enabled=False,
        banner_dismiss_seconds=6.0,
        notification_title="Deadline approaching",
        notification_body_template="{name} is due at {time}",
        time_format="%H:%M",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sink() -> FakeAlertSink:
    return FakeAlertSink()


@pytest.fixture()
def os_notifier() -> FakeOsNotifier:
    return FakeOsNotifier()


@pytest.fixture()
def make_engine(clock: FakeClock, sink: FakeAlertSink):
    """Factory: engine over a FakeTaskList wired to the shared clock and sink."""

    def _make(task_list: FakeTaskList, **kwargs) -> DeadlineScheduler:
        kwargs.setdefault("alert_sink", sink)
        kwargs.setdefault("clock", clock)
        return DeadlineScheduler(task_list, task_list, **kwargs)

    return _make
