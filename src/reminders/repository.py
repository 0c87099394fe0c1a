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
Remind Task Repository

Database operations for remind tasks. One row per task, keyed by
(channel_id, id). Timestamps are stored as TIMESTAMPTZ and the inventory as
JSONB so a task survives a write/read cycle unchanged.
"""

import json
import logging
from datetime import datetime
from typing import Any, Mapping, Optional

import asyncpg

from .errors import NotFoundError, PersistenceError, StaleTaskError
from .models import InventoryItem, RemindTask

logger = logging.getLogger("remindboard.reminders.repository")

_COLUMNS = """
    id, channel_id, message_id, title, description, interval_days,
    time_of_day, remind_before_minutes, inventory_items, start_at,
    next_due_at, last_done_at, last_remind_due_at, overdue_notify_count,
    overdue_notify_limit, last_overdue_notified_at, is_paused,
    created_at, updated_at
"""

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _affected_rows(status: str) -> int:
    """Parse the row count out of an asyncpg status string like ``UPDATE 1``."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


def serialize_inventory(items: list[InventoryItem]) -> str:
    return json.dumps(
        [{"name": item.name, "stock": item.stock, "consume": item.consume} for item in items],
        ensure_ascii=False,
    )


def deserialize_inventory(raw: Any) -> list[InventoryItem]:
    if raw is None or raw == "":
        return []
    data = json.loads(raw) if isinstance(raw, str) else raw
    return [
        InventoryItem(name=entry["name"], stock=int(entry["stock"]), consume=int(entry["consume"]))
        for entry in data
    ]


def row_to_task(row: Mapping[str, Any]) -> RemindTask:
    """Map a database row to a RemindTask."""
    return RemindTask(
        id=row["id"],
        message_id=row["message_id"],
        title=row["title"],
        description=row["description"],
        interval_days=row["interval_days"],
        time_of_day=row["time_of_day"],
        remind_before_minutes=row["remind_before_minutes"],
        inventory_items=deserialize_inventory(row["inventory_items"]),
        start_at=row["start_at"],
        next_due_at=row["next_due_at"],
        last_done_at=row["last_done_at"],
        last_remind_due_at=row["last_remind_due_at"],
        overdue_notify_count=row["overdue_notify_count"],
        overdue_notify_limit=row["overdue_notify_limit"],
        last_overdue_notified_at=row["last_overdue_notified_at"],
        is_paused=row["is_paused"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def task_to_params(channel_id: str, task: RemindTask) -> tuple:
    """Positional parameters matching ``_COLUMNS`` order."""
    return (
        task.id,
        channel_id,
        task.message_id,
        task.title,
        task.description,
        task.interval_days,
        task.time_of_day,
        task.remind_before_minutes,
        serialize_inventory(task.inventory_items),
        task.start_at,
        task.next_due_at,
        task.last_done_at,
        task.last_remind_due_at,
        task.overdue_notify_count,
        task.overdue_notify_limit,
        task.last_overdue_notified_at,
        task.is_paused,
        task.created_at,
        task.updated_at,
    )


class RemindTaskRepository:
    """
    Manages database operations for remind tasks.

    Every method raises PersistenceError when the database is unreachable or
    rejects the statement.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        """
        Initialize the repository.

        Args:
            db_pool: asyncpg connection pool
        """
        self.db = db_pool

    async def fetch_tasks(self, channel_id: str) -> list[RemindTask]:
        """
        List all tasks of a channel in creation order.

        Args:
            channel_id: Discord channel ID

        Returns:
            List of tasks (empty if the channel has none)
        """
        try:
            rows = await self.db.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM remind_tasks
                WHERE channel_id = $1
                ORDER BY created_at, id
                """,
                channel_id,
            )
        except _DB_ERRORS as e:
            logger.error(f"Failed to fetch tasks for channel {channel_id}: {e}", exc_info=True)
            raise PersistenceError() from e

        return [row_to_task(row) for row in rows]

    async def find_task_by_message_id(
        self, channel_id: str, message_id: str
    ) -> Optional[RemindTask]:
        """Find the task rendered by a given message, or None."""
        try:
            row = await self.db.fetchrow(
                f"""
                SELECT {_COLUMNS}
                FROM remind_tasks
                WHERE channel_id = $1 AND message_id = $2
                """,
                channel_id,
                message_id,
            )
        except _DB_ERRORS as e:
            logger.error(
                f"Failed to look up task for message {message_id} in {channel_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError() from e

        return row_to_task(row) if row else None

    async def find_task_by_id(self, channel_id: str, task_id: str) -> Optional[RemindTask]:
        """Re-read a single task, or None if it was deleted."""
        try:
            row = await self.db.fetchrow(
                f"""
                SELECT {_COLUMNS}
                FROM remind_tasks
                WHERE channel_id = $1 AND id = $2
                """,
                channel_id,
                task_id,
            )
        except _DB_ERRORS as e:
            logger.error(f"Failed to load task {task_id} in {channel_id}: {e}", exc_info=True)
            raise PersistenceError() from e

        return row_to_task(row) if row else None

    async def append_task(self, channel_id: str, task: RemindTask) -> None:
        """Insert a new task row."""
        try:
            await self.db.execute(
                f"""
                INSERT INTO remind_tasks ({_COLUMNS})
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb, $10,
                        $11, $12, $13, $14, $15, $16, $17, $18, $19)
                """,
                *task_to_params(channel_id, task),
            )
        except _DB_ERRORS as e:
            logger.error(f"Failed to append task {task.id} to {channel_id}: {e}", exc_info=True)
            raise PersistenceError() from e

        logger.info(f"Appended task {task.id} ({task.title}) to channel {channel_id}")

    async def update_task(
        self,
        channel_id: str,
        task: RemindTask,
        expected_updated_at: Optional[datetime] = None,
    ) -> None:
        """
        Overwrite every column of an existing task row.

        Writing the same task twice leaves the row unchanged. The row must
        already exist; new tasks go through ``append_task``.

        Args:
            channel_id: Discord channel ID
            task: Full task state to store
            expected_updated_at: When given, only write if the stored row
                still carries this ``updated_at``

        Raises:
            NotFoundError: If no row matches (channel_id, task.id)
            StaleTaskError: If the row exists but was changed since
                ``expected_updated_at``
        """
        params = task_to_params(channel_id, task)
        condition = "WHERE id = $1 AND channel_id = $2"
        if expected_updated_at is not None:
            condition += " AND updated_at = $20"
            params = params + (expected_updated_at,)

        try:
            status = await self.db.execute(
                f"""
                UPDATE remind_tasks SET
                    message_id = $3,
                    title = $4,
                    description = $5,
                    interval_days = $6,
                    time_of_day = $7,
                    remind_before_minutes = $8,
                    inventory_items = $9::jsonb,
                    start_at = $10,
                    next_due_at = $11,
                    last_done_at = $12,
                    last_remind_due_at = $13,
                    overdue_notify_count = $14,
                    overdue_notify_limit = $15,
                    last_overdue_notified_at = $16,
                    is_paused = $17,
                    created_at = $18,
                    updated_at = $19
                {condition}
                """,
                *params,
            )
        except _DB_ERRORS as e:
            logger.error(f"Failed to update task {task.id} in {channel_id}: {e}", exc_info=True)
            raise PersistenceError() from e

        if _affected_rows(status) > 0:
            return
        if expected_updated_at is not None and await self.find_task_by_id(channel_id, task.id):
            raise StaleTaskError()
        raise NotFoundError()

    async def delete_task(self, channel_id: str, task_id: str) -> None:
        """
        Delete a task row.

        Raises:
            NotFoundError: If no row matches
        """
        try:
            status = await self.db.execute(
                "DELETE FROM remind_tasks WHERE id = $1 AND channel_id = $2",
                task_id,
                channel_id,
            )
        except _DB_ERRORS as e:
            logger.error(f"Failed to delete task {task_id} in {channel_id}: {e}", exc_info=True)
            raise PersistenceError() from e

        if _affected_rows(status) == 0:
            raise NotFoundError()

        logger.info(f"Deleted task {task_id} from channel {channel_id}")
