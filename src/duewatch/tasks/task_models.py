# src/duewatch/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

# notification_offset sentinel: alerts switched off for the task.
OFFSET_DISABLED = -1


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority | None:
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(f"unknown priority: {raw!r}") from None


class RecurrenceFreq(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(slots=True, frozen=True)
class RecurrenceRule:
    """
    Recurrence settings stored with a task.

    Nothing in duewatch materializes future occurrences from a rule; it is
    validated and carried along so the owning application can round-trip it.
    """

    freq: RecurrenceFreq
    interval: int = 1
    week_days: frozenset[int] | None = None  # 0 = Sunday
    month_days: frozenset[int] | None = None

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValueError(f"recurrence interval must be positive, got {self.interval}")
        if self.week_days is not None and any(d < 0 or d > 6 for d in self.week_days):
            raise ValueError(f"week days must be in 0..6, got {sorted(self.week_days)}")
        if self.month_days is not None and any(d < 1 or d > 31 for d in self.month_days):
            raise ValueError(f"month days must be in 1..31, got {sorted(self.month_days)}")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RecurrenceRule:
        week_days = raw.get("weekDays")
        month_days = raw.get("monthDays")
        return cls(
            freq=RecurrenceFreq(raw["freq"]),
            interval=int(raw.get("interval", 1)),
            week_days=frozenset(int(d) for d in week_days) if week_days is not None else None,
            month_days=frozenset(int(d) for d in month_days) if month_days is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"freq": self.freq.value, "interval": self.interval}
        if self.week_days is not None:
            out["weekDays"] = sorted(self.week_days)
        if self.month_days is not None:
            out["monthDays"] = sorted(self.month_days)
        return out


@dataclass(slots=True, frozen=True)
class Subtask:
    id: str
    text: str
    completed: bool = False


@dataclass(slots=True, frozen=True)
class Task:
    """
    A tracked task.

    Times are epoch milliseconds. When include_time is False, due_date is the
    (implicit) midnight of the deadline day.

    notification_offset:
    - None -> auto lead time (depends on include_time)
    - OFFSET_DISABLED (-1) -> never alert
    - N >= 0 -> alert N minutes before due_date
    """

    id: str
    text: str = ""
    completed: bool = False
    created_at: int = 0
    completed_at: int | None = None

    due_date: int | None = None
    include_time: bool = True
    notification_offset: int | None = None

    priority: Priority | None = None
    tags: tuple[str, ...] = ()
    subtasks: tuple[Subtask, ...] = ()
    notes: str | None = None
    attachments: tuple[str, ...] = ()
    recurrence_rule: RecurrenceRule | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("task id is required")
        if self.notification_offset is not None and self.notification_offset < OFFSET_DISABLED:
            raise ValueError(f"invalid notification offset: {self.notification_offset}")
        if self.priority is not None and not isinstance(self.priority, Priority):
            object.__setattr__(self, "priority", Priority.from_raw(self.priority))

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """Build a Task from the tracker's camelCase JSON shape."""
        due = raw.get("dueDate")
        offset = raw.get("notificationOffset")
        completed_at = raw.get("completedAt")
        rule = raw.get("recurrenceRule")
        return cls(
            id=str(raw["id"]),
            text=str(raw.get("text", "")),
            completed=bool(raw.get("completed", False)),
            created_at=int(raw.get("createdAt", 0)),
            completed_at=int(completed_at) if completed_at is not None else None,
            due_date=int(due) if due is not None else None,
            # Missing includeTime is treated as a timed deadline.
            include_time=raw.get("includeTime") is not False,
            notification_offset=int(offset) if offset is not None else None,
            priority=Priority.from_raw(raw.get("priority")),
            tags=tuple(raw.get("tags") or ()),
            subtasks=tuple(
                Subtask(id=str(s["id"]), text=str(s.get("text", "")), completed=bool(s.get("completed")))
                for s in raw.get("subtasks") or ()
            ),
            notes=raw.get("notes"),
            attachments=tuple(raw.get("attachments") or ()),
            recurrence_rule=RecurrenceRule.from_dict(rule) if rule else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdAt": self.created_at,
            "includeTime": self.include_time,
        }
        if self.completed_at is not None:
            out["completedAt"] = self.completed_at
        if self.due_date is not None:
            out["dueDate"] = self.due_date
        if self.notification_offset is not None:
            out["notificationOffset"] = self.notification_offset
        if self.priority is not None:
            out["priority"] = self.priority.value
        if self.tags:
            out["tags"] = list(self.tags)
        if self.subtasks:
            out["subtasks"] = [
                {"id": s.id, "text": s.text, "completed": s.completed} for s in self.subtasks
            ]
        if self.notes is not None:
            out["notes"] = self.notes
        if self.attachments:
            out["attachments"] = list(self.attachments)
        if self.recurrence_rule is not None:
            out["recurrenceRule"] = self.recurrence_rule.to_dict()
        return out


@dataclass(slots=True, frozen=True)
class NotificationContent:
    title: str
    body: str


@dataclass(slots=True)
class PassResult:
    """Outcome of one evaluation pass."""

    fired: list[Task] = field(default_factory=list)
    reordered: bool = False
