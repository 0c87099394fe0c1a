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
Remind Task Service

Orchestrates user operations on remind tasks: every operation loads the
task, applies a pure transition from ``models``, persists it, and then
re-renders the task message.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .errors import NotFoundError, TransportError
from .message_manager import RemindMessageManager
from .metadata import ChannelReminderMetadata, RemindMetadataManager
from .models import (
    DEFAULT_REMIND_BEFORE_MINUTES,
    InventoryItem,
    RemindTask,
    apply_basic_update,
    apply_override,
    complete_task,
    create_remind_task,
    set_paused,
    update_inventory,
    with_message_id,
)
from .repository import RemindTaskRepository

if TYPE_CHECKING:
    from operation_log import OperationLog

logger = logging.getLogger("remindboard.reminders.service")


class RemindTaskService:
    """Entry point used by interaction handlers and slash commands."""

    def __init__(
        self,
        repository: RemindTaskRepository,
        message_manager: RemindMessageManager,
        metadata_manager: RemindMetadataManager,
        operation_log: Optional["OperationLog"] = None,
        default_remind_before_minutes: int = DEFAULT_REMIND_BEFORE_MINUTES,
    ):
        self.repository = repository
        self.message_manager = message_manager
        self.metadata_manager = metadata_manager
        self.operation_log = operation_log
        self.default_remind_before_minutes = default_remind_before_minutes

    # =========================================================================
    # Helpers
    # =========================================================================

    async def get_task(self, channel_id: str, message_id: str) -> RemindTask:
        """
        Load the task rendered by a message.

        Raises:
            NotFoundError: If no task is attached to the message
        """
        task = await self.repository.find_task_by_message_id(channel_id, message_id)
        if task is None:
            raise NotFoundError()
        return task

    async def _render(self, channel_id: str, task: RemindTask, now: datetime) -> RemindTask:
        """Re-render the task message, reposting it if it was deleted."""
        if task.message_id:
            try:
                await self.message_manager.update_task_message(
                    channel_id, task.message_id, task, now
                )
                return task
            except NotFoundError:
                logger.info(f"Message for task {task.id} is gone, reposting")

        message_id = await self.message_manager.create_task_message(channel_id, task, now)
        reposted = with_message_id(task, message_id, now)
        await self.repository.update_task(channel_id, reposted)
        return reposted

    def _record(
        self,
        operation: str,
        channel_id: str,
        task: RemindTask,
        user_id: Optional[int],
    ) -> None:
        if self.operation_log is not None:
            self.operation_log.record(
                operation,
                channel_id=channel_id,
                task_id=task.id,
                user_id=user_id,
                details={"title": task.title},
            )

    # =========================================================================
    # Operations
    # =========================================================================

    async def add_task(
        self,
        channel_id: str,
        title: str,
        interval_days: int,
        time_of_day: str,
        now: datetime,
        remind_before_minutes: Optional[int] = None,
        description: Optional[str] = None,
        inventory_items: Optional[list[InventoryItem]] = None,
        user_id: Optional[int] = None,
    ) -> RemindTask:
        """
        Create a task, store it, and post its message.

        If the message cannot be posted the stored row is removed again so
        no task exists without a message.
        """
        task = create_remind_task(
            title=title,
            interval_days=interval_days,
            time_of_day=time_of_day,
            now=now,
            remind_before_minutes=remind_before_minutes,
            description=description,
            inventory_items=inventory_items,
            default_remind_before_minutes=self.default_remind_before_minutes,
        )
        await self.repository.append_task(channel_id, task)

        try:
            message_id = await self.message_manager.create_task_message(channel_id, task, now)
        except (TransportError, NotFoundError):
            await self.repository.delete_task(channel_id, task.id)
            raise

        task = with_message_id(task, message_id, now)
        await self.repository.update_task(channel_id, task)
        self._record("task_added", channel_id, task, user_id)
        return task

    async def complete_task(
        self, channel_id: str, message_id: str, now: datetime, user_id: Optional[int] = None
    ) -> RemindTask:
        task = complete_task(await self.get_task(channel_id, message_id), now)
        await self.repository.update_task(channel_id, task)
        task = await self._render(channel_id, task, now)
        self._record("task_completed", channel_id, task, user_id)
        return task

    async def update_basic(
        self,
        channel_id: str,
        message_id: str,
        now: datetime,
        title: str,
        interval_days: int,
        time_of_day: str,
        remind_before_minutes: int,
        description: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> RemindTask:
        current = await self.get_task(channel_id, message_id)
        task = apply_basic_update(
            current,
            now,
            title=title,
            interval_days=interval_days,
            time_of_day=time_of_day,
            remind_before_minutes=remind_before_minutes,
            description=description,
        )
        await self.repository.update_task(channel_id, task)
        task = await self._render(channel_id, task, now)
        self._record("task_updated", channel_id, task, user_id)
        return task

    async def override_schedule(
        self,
        channel_id: str,
        message_id: str,
        now: datetime,
        last_done_at: Optional[datetime] = None,
        next_due_at: Optional[datetime] = None,
        overdue_notify_limit: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> RemindTask:
        current = await self.get_task(channel_id, message_id)
        task = apply_override(
            current,
            now,
            last_done_at=last_done_at,
            next_due_at=next_due_at,
            overdue_notify_limit=overdue_notify_limit,
        )
        await self.repository.update_task(channel_id, task)
        task = await self._render(channel_id, task, now)
        self._record("task_overridden", channel_id, task, user_id)
        return task

    async def update_inventory(
        self,
        channel_id: str,
        message_id: str,
        items: list[InventoryItem],
        now: datetime,
        user_id: Optional[int] = None,
    ) -> RemindTask:
        task = update_inventory(await self.get_task(channel_id, message_id), items, now)
        await self.repository.update_task(channel_id, task)
        task = await self._render(channel_id, task, now)
        self._record("inventory_updated", channel_id, task, user_id)
        return task

    async def toggle_pause(
        self, channel_id: str, message_id: str, now: datetime, user_id: Optional[int] = None
    ) -> RemindTask:
        current = await self.get_task(channel_id, message_id)
        task = set_paused(current, not current.is_paused, now)
        await self.repository.update_task(channel_id, task)
        task = await self._render(channel_id, task, now)
        self._record("task_paused" if task.is_paused else "task_resumed", channel_id, task, user_id)
        return task

    async def delete_task(
        self, channel_id: str, message_id: str, user_id: Optional[int] = None
    ) -> RemindTask:
        task = await self.get_task(channel_id, message_id)
        await self.repository.delete_task(channel_id, task.id)
        await self.message_manager.delete_task_message(channel_id, message_id)
        self._record("task_deleted", channel_id, task, user_id)
        return task

    async def initialize_channel(self, channel_id: str, now: datetime) -> ChannelReminderMetadata:
        """
        Prepare a channel for reminders.

        Creates (or reuses) the notice thread, stores the channel metadata,
        and re-renders every task, reposting messages that were deleted.
        """
        metadata = await self.metadata_manager.get_channel(channel_id)
        if metadata is None:
            metadata = ChannelReminderMetadata(channel_id=channel_id)

        target = await self.message_manager.ensure_reminder_thread(
            channel_id,
            metadata.remind_notice_thread_id,
            metadata.remind_notice_message_id,
        )
        metadata.remind_notice_thread_id = target.thread_id
        metadata.remind_notice_message_id = target.parent_message_id
        metadata.last_sync_time = now
        await self.metadata_manager.save_channel(metadata)

        synced = 0
        for task in await self.repository.fetch_tasks(channel_id):
            await self._render(channel_id, task, now)
            synced += 1

        logger.info(f"Initialized reminder channel {channel_id} ({synced} task(s) synced)")
        return metadata
