# src/duewatch/tasks/promotion.py

from __future__ import annotations

from collections.abc import Sequence

from .task_models import Task


def pick_most_urgent(fired: Sequence[Task]) -> Task | None:
    """Earliest due date wins; on ties the first one encountered is kept."""
    best: Task | None = None
    for task in fired:
        if task.due_date is None:
            continue
        if best is None or task.due_date < best.due_date:  # type: ignore[operator]
            best = task
    return best


def select_promotion(tasks: Sequence[Task], fired: Sequence[Task]) -> list[Task] | None:
    """
    New full order with the most urgent fired task first, or None if nothing moves.

    Only reorders: every task in `tasks` appears exactly once in the result and the
    others keep their relative order. Nothing moves when the chosen task already
    heads the incomplete sub-list.
    """
    target = pick_most_urgent(fired)
    if target is None:
        return None

    incomplete = [t for t in tasks if not t.completed]
    if incomplete and incomplete[0].id == target.id:
        return None

    # Use the store's instance of the task, not the one captured during evaluation.
    head = next((t for t in tasks if t.id == target.id), target)
    return [head, *(t for t in tasks if t.id != target.id)]
