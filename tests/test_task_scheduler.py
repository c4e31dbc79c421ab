# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio

import pytest

from duewatch.tasks.task_models import OFFSET_DISABLED, Task
from duewatch.tasks.task_scheduler import DeadlineScheduler
from duewatch.tasks.task_store import TaskStore

from .fakes import FakeAlertSink, FakeClock, FakeOsNotifier, FakeTaskList

MIN = 60_000


def test_timed_task_alerts_once_inside_auto_window(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="t", text="Call Bob", due_date=clock.now + 40 * MIN)])
    engine = make_engine(tasks)

    assert engine.run_pass().fired == []
    assert sink.shown == []

    clock.advance(minutes=11)  # 29 minutes left
    result = engine.run_pass()
    assert [t.id for t in result.fired] == ["t"]
    assert len(sink.shown) == 1
    assert "Call Bob" in sink.shown[0].body

    for _ in range(5):
        clock.advance(minutes=1)
        assert engine.run_pass().fired == []
    assert len(sink.shown) == 1
    assert "t" in engine.registry


def test_ten_minutes_out_alerts_on_next_evaluation(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + 10 * MIN)])
    engine = make_engine(tasks)

    clock.advance(minutes=1)
    assert len(engine.run_pass().fired) == 1
    clock.advance(minutes=1)
    assert engine.run_pass().fired == []
    assert len(sink.shown) == 1


def test_disabled_task_never_alerts(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + 5 * MIN, notification_offset=OFFSET_DISABLED)])
    engine = make_engine(tasks)
    for _ in range(10):
        engine.run_pass()
        clock.advance(seconds=30)
    assert sink.shown == []
    assert tasks.reorders == []


def test_earliest_fired_task_is_promoted(make_engine, clock: FakeClock) -> None:
    tasks = FakeTaskList(
        [
            Task(id="first", due_date=clock.now + 300 * MIN),
            Task(id="A", due_date=clock.now + 5 * MIN),
            Task(id="B", due_date=clock.now + 2 * MIN),
        ]
    )
    engine = make_engine(tasks)

    result = engine.run_pass()
    assert [t.id for t in result.fired] == ["A", "B"]
    assert result.reordered
    assert tasks.ids() == ["B", "first", "A"]


def test_concrete_scenario(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    t0 = clock.now
    tasks = FakeTaskList(
        [
            Task(id="a", due_date=t0 + 1_000_000),
            Task(id="b", due_date=t0 + 60_000),
            Task(id="c", completed=True),
        ]
    )
    engine = make_engine(tasks)

    # "a" is 16.7 minutes out, inside the 30 minute auto window, so it alerts too;
    # "b" is due earlier and wins the promotion.
    result = engine.run_pass(now=t0)
    assert [t.id for t in result.fired] == ["a", "b"]
    assert len(sink.shown) == 2
    assert tasks.ids() == ["b", "a", "c"]


def test_task_outside_window_is_not_alerted_but_urgent_one_promoted(
    make_engine, clock: FakeClock, sink: FakeAlertSink
) -> None:
    t0 = clock.now
    tasks = FakeTaskList(
        [
            Task(id="a", due_date=t0 + 31 * MIN),
            Task(id="b", due_date=t0 + 60_000),
            Task(id="c", completed=True),
        ]
    )
    engine = make_engine(tasks)

    result = engine.run_pass(now=t0)
    assert [t.id for t in result.fired] == ["b"]
    assert len(sink.shown) == 1
    assert "a" not in engine.registry
    assert tasks.ids() == ["b", "a", "c"]


def test_second_pass_is_idempotent(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="a"), Task(id="b", due_date=clock.now + MIN)])
    engine = make_engine(tasks)

    engine.run_pass()
    engine.run_pass()
    assert len(sink.shown) == 1
    assert tasks.reorders == [["b", "a"]]


def test_no_reorder_when_urgent_task_already_first(make_engine, clock: FakeClock) -> None:
    tasks = FakeTaskList([Task(id="b", due_date=clock.now + MIN), Task(id="a")])
    engine = make_engine(tasks)
    result = engine.run_pass()
    assert len(result.fired) == 1
    assert not result.reordered
    assert tasks.reorders == []


def test_skipped_promotion_is_not_reconsidered(make_engine, clock: FakeClock) -> None:
    # "b" fires while already on top; later a user moves it down. It is not promoted
    # again because promotion only looks at tasks fired in the current pass.
    tasks = FakeTaskList([Task(id="b", due_date=clock.now + MIN), Task(id="a")])
    engine = make_engine(tasks)
    engine.run_pass()

    tasks.tasks.reverse()
    clock.advance(seconds=30)
    engine.run_pass()
    assert tasks.ids() == ["a", "b"]
    assert tasks.reorders == []


def test_edited_due_date_does_not_realert(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    store = TaskStore([Task(id="t", due_date=clock.now + MIN)])
    engine = DeadlineScheduler(store, store, alert_sink=sink, clock=clock)
    engine.run_pass()
    store.update_task_fields("t", due_date=clock.now + 2 * MIN)
    engine.run_pass()
    assert len(sink.shown) == 1


def test_new_engine_starts_with_empty_registry(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + MIN)])
    make_engine(tasks).run_pass()
    make_engine(tasks).run_pass()
    assert len(sink.shown) == 2


def test_reads_latest_task_list_every_pass(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([])
    engine = make_engine(tasks)
    assert engine.run_pass().fired == []

    tasks.tasks.append(Task(id="late", due_date=clock.now + MIN))
    assert [t.id for t in engine.run_pass().fired] == ["late"]


def test_reorder_failure_propagates_after_alerting(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="a"), Task(id="b", due_date=clock.now + MIN)], fail_reorder=True)
    engine = make_engine(tasks)

    with pytest.raises(RuntimeError):
        engine.run_pass()
    assert len(sink.shown) == 1
    assert "b" in engine.registry

    # No retry: the alert already fired, so nothing is promoted next time.
    engine.run_pass()
    assert tasks.reorders == [["b", "a"]]


def test_os_channel_requires_permission(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    notifier = FakeOsNotifier(granted=False, grant_on_request=False)
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + MIN)])
    engine = make_engine(tasks, os_notifier=notifier)

    assert engine.refresh_permission() is False
    assert notifier.requests == 1
    engine.run_pass()
    assert notifier.sent == []
    assert len(sink.shown) == 1


def test_os_channel_permission_granted_on_request(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    notifier = FakeOsNotifier(granted=False, grant_on_request=True)
    tasks = FakeTaskList([Task(id="t", text="Gym", due_date=clock.now + MIN)])
    engine = make_engine(tasks, os_notifier=notifier)

    assert engine.refresh_permission() is True
    engine.run_pass()
    assert [c.body for c in notifier.sent] == [sink.shown[0].body]


def test_permission_query_failure_means_not_authorized(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    notifier = FakeOsNotifier(raise_on_query=True)
    engine = make_engine(FakeTaskList([Task(id="t", due_date=clock.now + MIN)]), os_notifier=notifier)
    assert engine.refresh_permission() is False
    engine.run_pass()
    assert notifier.sent == []
    assert len(sink.shown) == 1


def test_os_send_failure_still_marks_alerted(make_engine, clock: FakeClock, sink: FakeAlertSink) -> None:
    notifier = FakeOsNotifier(raise_on_send=True)
    engine = make_engine(FakeTaskList([Task(id="t", due_date=clock.now + MIN)]), os_notifier=notifier)
    engine.refresh_permission()

    assert len(engine.run_pass().fired) == 1
    assert "t" in engine.registry
    assert engine.run_pass().fired == []
    assert len(sink.shown) == 1


def test_without_alert_sink_still_registers(clock: FakeClock) -> None:
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + MIN)])
    engine = DeadlineScheduler(tasks, tasks, clock=clock)
    assert len(engine.run_pass().fired) == 1
    assert "t" in engine.registry


def test_from_settings_applies_offsets_and_text(settings, clock: FakeClock, sink: FakeAlertSink) -> None:
    from dataclasses import replace

    custom = replace(settings, default_time_offset_minutes=5, notification_title="Soon")
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + 10 * MIN)])
    engine = DeadlineScheduler.from_settings(custom, tasks, tasks, alert_sink=sink, clock=clock)

    assert engine.run_pass().fired == []
    clock.advance(minutes=6)
    assert len(engine.run_pass().fired) == 1
    assert sink.shown[0].title == "Soon"


@pytest.mark.asyncio
async def test_loop_runs_immediately_and_stops(clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="a"), Task(id="b", due_date=clock.now + MIN)])
    engine = DeadlineScheduler(tasks, tasks, alert_sink=sink, clock=clock, interval_seconds=30.0)

    engine.start()
    assert engine.running
    await asyncio.sleep(0.05)

    assert len(sink.shown) == 1
    assert tasks.ids() == ["b", "a"]

    await engine.aclose()
    assert not engine.running


@pytest.mark.asyncio
async def test_loop_repeats_on_interval(clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + 40 * MIN)])
    engine = DeadlineScheduler(tasks, tasks, alert_sink=sink, clock=clock, interval_seconds=0.01)

    engine.start()
    await asyncio.sleep(0.03)
    assert sink.shown == []

    clock.advance(minutes=15)
    await asyncio.sleep(0.05)
    assert len(sink.shown) == 1
    await engine.aclose()


@pytest.mark.asyncio
async def test_rearm_on_store_change_runs_pass_without_waiting(clock: FakeClock, sink: FakeAlertSink) -> None:
    store = TaskStore([Task(id="a")])
    engine = DeadlineScheduler(store, store, alert_sink=sink, clock=clock, interval_seconds=3600.0)
    unsubscribe = store.subscribe(engine.rearm)

    engine.start()
    await asyncio.sleep(0.02)
    assert sink.shown == []

    store.add_task(Task(id="b", text="Dentist", due_date=clock.now + 10 * MIN))
    await asyncio.sleep(0.02)

    assert len(sink.shown) == 1
    assert [t.id for t in store.list_tasks()] == ["b", "a"]

    unsubscribe()
    await engine.aclose()


@pytest.mark.asyncio
async def test_swapping_alert_sink_rearms(clock: FakeClock) -> None:
    tasks = FakeTaskList([])
    engine = DeadlineScheduler(tasks, tasks, clock=clock, interval_seconds=3600.0)
    engine.start()
    await asyncio.sleep(0.01)

    tasks.tasks.append(Task(id="t", due_date=clock.now + MIN))
    new_sink = FakeAlertSink()
    engine.set_alert_sink(new_sink)
    await asyncio.sleep(0.02)

    assert len(new_sink.shown) == 1
    await engine.aclose()


@pytest.mark.asyncio
async def test_loop_survives_reorder_failure(clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="a"), Task(id="b", due_date=clock.now + MIN)], fail_reorder=True)
    engine = DeadlineScheduler(tasks, tasks, alert_sink=sink, clock=clock, interval_seconds=0.01)

    engine.start()
    await asyncio.sleep(0.05)
    assert engine.running
    assert len(tasks.reorders) == 1
    await engine.aclose()


@pytest.mark.asyncio
async def test_start_checks_permission_once(clock: FakeClock, sink: FakeAlertSink) -> None:
    notifier = FakeOsNotifier(granted=True)
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + MIN)])
    engine = DeadlineScheduler(tasks, tasks, alert_sink=sink, os_notifier=notifier, clock=clock)

    engine.start()
    engine.start()  # already running: no-op
    await asyncio.sleep(0.02)
    assert engine.os_permission
    assert len(notifier.sent) == 1
    await engine.aclose()
    engine.stop()


@pytest.mark.asyncio
async def test_restart_begins_with_empty_registry(clock: FakeClock, sink: FakeAlertSink) -> None:
    tasks = FakeTaskList([Task(id="t", due_date=clock.now + 10 * MIN)])
    engine = DeadlineScheduler(tasks, tasks, alert_sink=sink, clock=clock, interval_seconds=3600.0)

    engine.start()
    await asyncio.sleep(0.02)
    await engine.aclose()
    assert len(sink.shown) == 1

    engine.start()
    await asyncio.sleep(0.02)
    await engine.aclose()
    assert len(sink.shown) == 2
