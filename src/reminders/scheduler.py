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
Remind Scheduler Module

Background loop that scans every reminder channel once a minute and, per
task, sends at most one of: a pre-reminder, an overdue notice, or a plain
refresh of the task message. Uses discord.ext.tasks for scheduling.
"""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

import discord
import pytz
from discord.ext import tasks

from .errors import NotFoundError, RemindError, StaleTaskError
from .inventory import format_shortage_message, get_insufficient_items
from .metadata import ChannelReminderMetadata, RemindMetadataManager
from .message_manager import RemindMessageManager, ThreadResult
from .models import (
    DEFAULT_OVERDUE_NOTIFY_LIMIT,
    RemindTask,
    mark_overdue_notified,
    mark_pre_reminded,
)
from .repository import RemindTaskRepository
from .time_utils import (
    ensure_aware,
    format_remaining_duration,
    minutes_since_tokyo_midnight,
    to_tokyo,
)

if TYPE_CHECKING:
    from operation_log import OperationLog

logger = logging.getLogger("remindboard.reminders.scheduler")

DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_REFRESH_INTERVAL_MINUTES = 60

MENTION = "@everyone"


# =========================================================================
# Decision rules
# =========================================================================


def should_send_pre_reminder(task: RemindTask, now: datetime) -> bool:
    """True when ``now`` is inside the lead window and this cycle was not yet reminded."""
    if task.is_paused or task.remind_before_minutes <= 0:
        return False
    now = ensure_aware(now)
    window_start = task.next_due_at - timedelta(minutes=task.remind_before_minutes)
    if not (window_start <= now < task.next_due_at):
        return False
    return task.last_remind_due_at != task.next_due_at


def should_send_overdue(
    task: RemindTask, now: datetime, default_limit: int = DEFAULT_OVERDUE_NOTIFY_LIMIT
) -> bool:
    """
    Decide whether an overdue notice is due.

    At most ``effective_overdue_limit`` notices per cycle, and at most one
    per Tokyo calendar day.
    """
    if task.is_paused:
        return False
    now = ensure_aware(now)
    if now < task.next_due_at:
        return False
    if task.overdue_notify_count >= task.effective_overdue_limit(default_limit):
        return False

    last = task.last_overdue_notified_at
    if last is None or last < task.next_due_at:
        return True
    return to_tokyo(last).date() < to_tokyo(now).date()


def should_refresh_progress(
    now: datetime, refresh_interval_minutes: int = DEFAULT_REFRESH_INTERVAL_MINUTES
) -> bool:
    """True on Tokyo clock boundaries that are multiples of the refresh interval."""
    if refresh_interval_minutes <= 0:
        return True
    return minutes_since_tokyo_midnight(now) % refresh_interval_minutes == 0


def build_pre_reminder_messages(task: RemindTask) -> list[str]:
    messages = [
        f"{MENTION} {task.title}の期限まであと"
        f"{format_remaining_duration(task.remind_before_minutes)}になりました。"
    ]
    for item in get_insufficient_items(task.inventory_items):
        messages.append(f"{MENTION} {format_shortage_message(item)}")
    return messages


def build_overdue_message(task: RemindTask) -> str:
    return f"{MENTION} {task.title}の期限が切れています。"


# =========================================================================
# Scheduler
# =========================================================================


class RemindScheduler:
    """
    Background scheduler for remind tasks.

    Channels and tasks are processed one at a time. A failure on one task or
    channel is logged and the run moves on.
    """

    def __init__(
        self,
        bot: discord.Client,
        repository: RemindTaskRepository,
        metadata_manager: RemindMetadataManager,
        message_manager: RemindMessageManager,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        refresh_interval_minutes: int = DEFAULT_REFRESH_INTERVAL_MINUTES,
        overdue_notify_limit: int = DEFAULT_OVERDUE_NOTIFY_LIMIT,
        operation_log: Optional["OperationLog"] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            bot: Discord client, used to wait for readiness
            repository: Task store
            metadata_manager: Per-channel notice thread bookkeeping
            message_manager: Discord rendering and notice delivery
            interval_seconds: Loop period
            refresh_interval_minutes: Routine refresh boundary
            overdue_notify_limit: Limit for tasks without their own
            operation_log: Optional recorder for sent notices
        """
        self.bot = bot
        self.repository = repository
        self.metadata_manager = metadata_manager
        self.message_manager = message_manager
        self.interval_seconds = interval_seconds
        self.refresh_interval_minutes = refresh_interval_minutes
        self.overdue_notify_limit = overdue_notify_limit
        self.operation_log = operation_log
        self.is_running = False
        self._started = False

    def start(self) -> None:
        """Start the scheduler loop."""
        if not self._started:
            self._tick.change_interval(seconds=self.interval_seconds)
            self._tick.start()
            self._started = True
            logger.info(f"Remind scheduler started (every {self.interval_seconds}s)")

    def stop(self) -> None:
        """Stop the scheduler loop."""
        if self._started:
            self._tick.cancel()
            self._started = False
            logger.info("Remind scheduler stopped")

    @tasks.loop(seconds=DEFAULT_INTERVAL_SECONDS)
    async def _tick(self) -> None:
        await self.run_once(datetime.now(pytz.UTC))

    @_tick.before_loop
    async def _before_tick(self) -> None:
        """Wait for the bot to be ready before starting the loop."""
        await self.bot.wait_until_ready()
        logger.info("Remind scheduler ready, starting loop")

    async def run_once(self, now: datetime) -> None:
        """
        Process every channel once.

        Returns immediately if a previous run is still in progress.
        """
        if self.is_running:
            logger.debug("Previous scheduler run still in progress, skipping")
            return

        self.is_running = True
        try:
            now = ensure_aware(now)
            try:
                channels = await self.metadata_manager.list_channels()
            except Exception as e:
                logger.error(f"Failed to list reminder channels: {e}", exc_info=True)
                return

            for channel in channels:
                try:
                    await self._process_channel(channel, now)
                except Exception as e:
                    logger.error(
                        f"Error processing reminder channel {channel.channel_id}: {e}",
                        exc_info=True,
                    )
        finally:
            self.is_running = False

    async def _process_channel(self, channel: ChannelReminderMetadata, now: datetime) -> None:
        if not channel.remind_notice_thread_id:
            logger.debug(f"Channel {channel.channel_id} has no notice thread, skipping")
            return

        channel_tasks = await self.repository.fetch_tasks(channel.channel_id)
        refresh = should_refresh_progress(now, self.refresh_interval_minutes)

        for task in channel_tasks:
            try:
                await self._process_task(channel, task, now, refresh)
            except Exception as e:
                logger.error(
                    f"Error processing task {task.id} in channel {channel.channel_id}: {e}",
                    exc_info=not isinstance(e, RemindError),
                )

    async def _process_task(
        self,
        channel: ChannelReminderMetadata,
        task: RemindTask,
        now: datetime,
        refresh: bool,
    ) -> None:
        # The batch snapshot may be stale by now
        task = await self.repository.find_task_by_id(channel.channel_id, task.id)
        if task is None or task.is_paused:
            return

        if should_send_pre_reminder(task, now):
            for text in build_pre_reminder_messages(task):
                await self._send_notice(channel, text, now)
            updated = mark_pre_reminded(task, now)
            if not await self._persist(channel.channel_id, task, updated):
                return
            await self._render(channel.channel_id, updated, now)
            logger.info(f"Sent pre-reminder for task {task.id} in {channel.channel_id}")
            self._record("pre_reminder_sent", channel.channel_id, task)
            return

        if should_send_overdue(task, now, self.overdue_notify_limit):
            await self._send_notice(channel, build_overdue_message(task), now)
            updated = mark_overdue_notified(task, now)
            if not await self._persist(channel.channel_id, task, updated):
                return
            await self._render(channel.channel_id, updated, now)
            logger.info(
                f"Sent overdue notice {updated.overdue_notify_count} for task {task.id} "
                f"in {channel.channel_id}"
            )
            self._record("overdue_notice_sent", channel.channel_id, task)
            return

        if refresh:
            await self._render(channel.channel_id, task, now)

    async def _persist(self, channel_id: str, read: RemindTask, updated: RemindTask) -> bool:
        """Store ``updated`` unless the row changed since ``read`` was loaded."""
        try:
            await self.repository.update_task(
                channel_id, updated, expected_updated_at=read.updated_at
            )
        except (StaleTaskError, NotFoundError):
            logger.info(
                f"Task {read.id} in {channel_id} changed while its notice was sent, "
                f"keeping the stored version"
            )
            return False
        return True

    async def _send_notice(self, channel: ChannelReminderMetadata, text: str, now: datetime) -> None:
        result: ThreadResult = await self.message_manager.send_reminder_to_thread(
            channel.channel_id,
            channel.remind_notice_thread_id,
            channel.remind_notice_message_id,
            text,
        )
        if (
            result.thread_id != channel.remind_notice_thread_id
            or result.parent_message_id != channel.remind_notice_message_id
        ):
            await self.metadata_manager.update_notice_target(
                channel.channel_id, result.thread_id, result.parent_message_id, now
            )
            channel.remind_notice_thread_id = result.thread_id
            channel.remind_notice_message_id = result.parent_message_id

    async def _render(self, channel_id: str, task: RemindTask, now: datetime) -> None:
        if not task.message_id:
            return
        try:
            await self.message_manager.update_task_message(channel_id, task.message_id, task, now)
        except NotFoundError:
            logger.warning(f"Message {task.message_id} for task {task.id} no longer exists")

    def _record(self, operation: str, channel_id: str, task: RemindTask) -> None:
        if self.operation_log is not None:
            self.operation_log.record(
                operation, channel_id=channel_id, task_id=task.id, details={"title": task.title}
            )
