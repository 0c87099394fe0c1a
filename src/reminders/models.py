# remindboard - Discord Reminder Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Remind Task Model

The RemindTask entity, its factory, validation, and the pure state
transitions applied by user actions and by the scheduler. Transitions never
mutate their input; they return a new task with ``updated_at`` refreshed.
"""

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from .errors import ValidationError
from .time_utils import (
    MAX_REMIND_BEFORE_MINUTES,
    advance_after_completion,
    calculate_next_due_at,
    calculate_start_at,
    ensure_aware,
    normalize_time_of_day,
)

DEFAULT_REMIND_BEFORE_MINUTES = 1440
DEFAULT_OVERDUE_NOTIFY_LIMIT = 1

_STRICT_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass
class InventoryItem:
    """A consumable tracked by a task."""

    name: str
    stock: int  # units on hand
    consume: int  # units used per completion


@dataclass
class RemindTask:
    """One recurring obligation rendered as one Discord message."""

    id: str
    title: str
    interval_days: int
    time_of_day: str  # "HH:MM", Tokyo time
    remind_before_minutes: int
    start_at: datetime
    next_due_at: datetime
    created_at: datetime
    updated_at: datetime
    message_id: Optional[str] = None
    description: Optional[str] = None
    inventory_items: list[InventoryItem] = field(default_factory=list)
    last_done_at: Optional[datetime] = None
    last_remind_due_at: Optional[datetime] = None  # next_due_at of the cycle already pre-reminded
    overdue_notify_count: int = 0
    overdue_notify_limit: Optional[int] = None
    last_overdue_notified_at: Optional[datetime] = None
    is_paused: bool = False

    def effective_overdue_limit(self, default: int = DEFAULT_OVERDUE_NOTIFY_LIMIT) -> int:
        if self.overdue_notify_limit is None:
            return default
        return self.overdue_notify_limit


def consume_inventory(items: list[InventoryItem]) -> list[InventoryItem]:
    """Subtract one completion's consumption, never going below zero."""
    return [
        InventoryItem(name=item.name, stock=max(0, item.stock - item.consume), consume=item.consume)
        for item in items
    ]


def generate_task_id() -> str:
    return f"task-{uuid.uuid4().hex[:12]}"


def validate_remind_task(task: RemindTask) -> None:
    """
    Check every invariant of a task.

    Raises:
        ValidationError: With a user-facing message for the first violation
    """
    if not task.id or not task.id.strip():
        raise ValidationError("idは必須です")
    if not task.title or not task.title.strip():
        raise ValidationError("タスク名を入力してください")
    if task.interval_days < 1:
        raise ValidationError("周期は1以上を指定してください")
    if not _STRICT_TIME_OF_DAY.match(task.time_of_day):
        raise ValidationError("時刻の形式が無効です")
    if task.remind_before_minutes < 0 or task.remind_before_minutes > MAX_REMIND_BEFORE_MINUTES:
        raise ValidationError("事前通知の範囲が無効です")

    for item in task.inventory_items:
        if not item.name or not item.name.strip():
            raise ValidationError("在庫の名称が無効です")
        if item.stock < 0:
            raise ValidationError("在庫数は0以上で指定してください")
        if item.consume < 1:
            raise ValidationError("消費数は1以上で指定してください")

    if task.next_due_at is None:
        raise ValidationError("次回期限が無効です")
    if task.overdue_notify_count < 0:
        raise ValidationError("期限超過通知の回数が無効です")
    if task.overdue_notify_limit is not None and task.overdue_notify_limit < 0:
        raise ValidationError("期限超過通知の上限回数が無効です")


def create_remind_task(
    title: str,
    interval_days: int,
    time_of_day: str,
    now: datetime,
    remind_before_minutes: Optional[int] = None,
    description: Optional[str] = None,
    inventory_items: Optional[list[InventoryItem]] = None,
    overdue_notify_limit: Optional[int] = None,
    task_id: Optional[str] = None,
    default_remind_before_minutes: int = DEFAULT_REMIND_BEFORE_MINUTES,
) -> RemindTask:
    """
    Build a new validated task.

    ``start_at`` is the first due moment on the interval grid anchored at
    the creation day's ``time_of_day``; ``next_due_at`` starts equal to it.

    Raises:
        ValidationError: On a bad interval, time of day or offset
    """
    now = ensure_aware(now)
    if interval_days < 1:
        raise ValidationError("周期は1以上を指定してください")
    normalized_time = normalize_time_of_day(time_of_day)

    if remind_before_minutes is None:
        remind_before_minutes = default_remind_before_minutes

    start_at = calculate_start_at(now, normalized_time, interval_days)
    task = RemindTask(
        id=task_id or generate_task_id(),
        title=title.strip(),
        description=(description or "").strip() or None,
        interval_days=interval_days,
        time_of_day=normalized_time,
        remind_before_minutes=remind_before_minutes,
        inventory_items=list(inventory_items or []),
        start_at=start_at,
        next_due_at=start_at,
        overdue_notify_limit=overdue_notify_limit,
        created_at=now,
        updated_at=now,
    )
    validate_remind_task(task)
    return task


# =========================================================================
# User transitions
# =========================================================================


def complete_task(task: RemindTask, now: datetime) -> RemindTask:
    """Record a manual completion and move to the next cycle."""
    return replace(
        task,
        last_done_at=now,
        next_due_at=advance_after_completion(task.next_due_at, task.interval_days, now),
        inventory_items=consume_inventory(task.inventory_items),
        last_remind_due_at=None,
        overdue_notify_count=0,
        last_overdue_notified_at=None,
        updated_at=now,
    )


def apply_basic_update(
    task: RemindTask,
    now: datetime,
    title: str,
    interval_days: int,
    time_of_day: str,
    remind_before_minutes: int,
    description: Optional[str] = None,
) -> RemindTask:
    """
    Apply an edit of the schedule fields.

    The grid is rebuilt from the creation day so the task keeps its
    original anchor; notification state is reset for the new cycle.
    """
    if interval_days < 1:
        raise ValidationError("周期は1以上を指定してください")
    normalized_time = normalize_time_of_day(time_of_day)
    start_at = calculate_start_at(task.created_at, normalized_time, interval_days)
    next_due_at = calculate_next_due_at(
        interval_days, normalized_time, start_at, now, last_done_at=task.last_done_at
    )

    updated = replace(
        task,
        title=title.strip(),
        description=(description or "").strip() or None,
        interval_days=interval_days,
        time_of_day=normalized_time,
        remind_before_minutes=remind_before_minutes,
        start_at=start_at,
        next_due_at=next_due_at,
        last_remind_due_at=None,
        overdue_notify_count=0,
        last_overdue_notified_at=None,
        updated_at=now,
    )
    validate_remind_task(updated)
    return updated


def apply_override(
    task: RemindTask,
    now: datetime,
    last_done_at: Optional[datetime] = None,
    next_due_at: Optional[datetime] = None,
    overdue_notify_limit: Optional[int] = None,
) -> RemindTask:
    """
    Overwrite due dates and the overdue limit directly.

    Only supplied (non-None) values are written. Notification counters are
    reset only when a date was supplied.

    Raises:
        ValidationError: If nothing was supplied, the limit is negative, or
            the completion date falls after the due date
    """
    if last_done_at is None and next_due_at is None and overdue_notify_limit is None:
        raise ValidationError("前回完了日、次回期限、上限回数のいずれかを入力してください")
    if overdue_notify_limit is not None and overdue_notify_limit < 0:
        raise ValidationError("期限超過通知の上限回数が無効です")

    resolved_last_done = last_done_at if last_done_at is not None else task.last_done_at
    resolved_next_due = next_due_at if next_due_at is not None else task.next_due_at
    if resolved_last_done is not None and resolved_last_done > resolved_next_due:
        raise ValidationError("前回完了日は次回期限より前の日付を指定してください")

    dates_changed = last_done_at is not None or next_due_at is not None
    updated = replace(
        task,
        last_done_at=resolved_last_done,
        next_due_at=resolved_next_due,
        updated_at=now,
    )
    if overdue_notify_limit is not None:
        updated = replace(updated, overdue_notify_limit=overdue_notify_limit)
    if dates_changed:
        updated = replace(
            updated,
            last_remind_due_at=None,
            overdue_notify_count=0,
            last_overdue_notified_at=None,
        )
    return updated


def update_inventory(task: RemindTask, items: list[InventoryItem], now: datetime) -> RemindTask:
    updated = replace(task, inventory_items=list(items), updated_at=now)
    validate_remind_task(updated)
    return updated


def set_paused(task: RemindTask, paused: bool, now: datetime) -> RemindTask:
    return replace(task, is_paused=paused, updated_at=now)


def with_message_id(task: RemindTask, message_id: str, now: datetime) -> RemindTask:
    return replace(task, message_id=message_id, updated_at=now)


# =========================================================================
# Scheduler transitions
# =========================================================================


def mark_pre_reminded(task: RemindTask, now: datetime) -> RemindTask:
    return replace(task, last_remind_due_at=task.next_due_at, updated_at=now)


def mark_overdue_notified(task: RemindTask, now: datetime) -> RemindTask:
    return replace(
        task,
        overdue_notify_count=task.overdue_notify_count + 1,
        last_overdue_notified_at=now,
        updated_at=now,
    )
