# src/duewatch/tasks/task_store.py

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

from .task_models import Task

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class TaskStore:
    """
    In-memory ordered task list.

    This is the reference collaborator the engine reads from (TaskSource) and
    reorders through (TaskReorderer). The surrounding application owns saving it.

    Change listeners are called synchronously after every mutation; the engine
    subscribes to re-arm its loop when the list changes.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: list[Task] = []
        self._listeners: list[ChangeListener] = []
        for task in tasks:
            self._check_new_id(task.id)
            self._tasks.append(task)
        logger.info("TaskStore ready total=%s", len(self._tasks))

    @classmethod
    def load_json(cls, path: str | Path) -> TaskStore:
        """Seed a store from a JSON array of tasks in the tracker's camelCase shape."""
        path = Path(path)
        data = json.loads(path.read_text("utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON array of tasks")
        tasks = [Task.from_dict(item) for item in data]
        logger.info("Loaded %d tasks from %s", len(tasks), path)
        return cls(tasks)

    # ---- change notifications ----

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ---- read API ----

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def count_tasks(self) -> int:
        return len(self._tasks)

    # ---- write API ----

    def _check_new_id(self, task_id: str) -> None:
        if any(t.id == task_id for t in self._tasks):
            raise ValueError(f"duplicate task id: {task_id}")

    def _index(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise KeyError(task_id)

    def add_task(self, task: Task, *, at_front: bool = False) -> None:
        self._check_new_id(task.id)
        if at_front:
            self._tasks.insert(0, task)
        else:
            self._tasks.append(task)
        logger.debug("Task added id=%s due=%s", task.id, task.due_date)
        self._changed()

    def update_task_fields(self, task_id: str, **fields: Any) -> Task:
        """Replace selected fields of a task. The id itself cannot change."""
        if "id" in fields:
            raise ValueError("task id cannot be changed")
        idx = self._index(task_id)
        updated = dataclasses.replace(self._tasks[idx], **fields)
        self._tasks[idx] = updated
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
        self._changed()
        return updated

    def remove_task(self, task_id: str) -> Task:
        idx = self._index(task_id)
        task = self._tasks.pop(idx)
        logger.debug("Task removed id=%s", task_id)
        self._changed()
        return task

    def reorder(self, tasks: Sequence[Task]) -> None:
        """Replace the whole order. `tasks` must be a permutation of the stored ids."""
        new_ids = [t.id for t in tasks]
        if len(set(new_ids)) != len(new_ids) or set(new_ids) != {t.id for t in self._tasks}:
            raise ValueError("reorder must contain exactly the stored task ids")
        self._tasks = list(tasks)
        logger.debug("Tasks reordered head=%s", new_ids[0] if new_ids else None)
        self._changed()
