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
Remind Message Manager

Renders tasks into Discord messages and delivers notices into the channel's
notice thread. Channel lookups are resolved once, at the edge, into either a
text channel or a thread; everything else fails with TransportError.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import discord

from .errors import NotFoundError, TransportError
from .formatter import RemindTaskFormatter
from .models import RemindTask

logger = logging.getLogger("remindboard.reminders.message_manager")

NOTICE_THREAD_NAME = "通知用スレッド"
NOTICE_THREAD_ARCHIVE_MINUTES = 1440
NOTICE_MESSAGE_TEXT = "リマインドの通知はこのスレッドに届きます。"

# Custom IDs shared with the interaction handlers
ADD_BUTTON_ID = "remind-task-add"
DETAIL_BUTTON_ID = "remind-task-detail"
UPDATE_BUTTON_ID = "remind-task-update"
COMPLETE_BUTTON_ID = "remind-task-complete"
DELETE_BUTTON_ID = "remind-task-delete"

MessageChannel = Union[discord.TextChannel, discord.Thread]


@dataclass
class ThreadResult:
    """Where a notice was delivered."""

    thread_id: str
    parent_message_id: str


def build_task_view() -> discord.ui.View:
    """Buttons attached to every task message."""
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(label="詳細", style=discord.ButtonStyle.secondary, custom_id=DETAIL_BUTTON_ID)
    )
    view.add_item(
        discord.ui.Button(label="更新", style=discord.ButtonStyle.primary, custom_id=UPDATE_BUTTON_ID)
    )
    view.add_item(
        discord.ui.Button(label="完了", style=discord.ButtonStyle.success, custom_id=COMPLETE_BUTTON_ID)
    )
    view.add_item(
        discord.ui.Button(label="削除", style=discord.ButtonStyle.danger, custom_id=DELETE_BUTTON_ID)
    )
    return view


def build_notice_view() -> discord.ui.View:
    """Button attached to the channel's notice message."""
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(label="新規作成", style=discord.ButtonStyle.primary, custom_id=ADD_BUTTON_ID)
    )
    return view


class RemindMessageManager:
    """
    Creates, edits and deletes task messages and posts notices.

    Discord HTTP failures are logged and re-raised as TransportError.
    """

    def __init__(self, client: discord.Client, formatter: Optional[RemindTaskFormatter] = None):
        """
        Initialize the message manager.

        Args:
            client: Connected discord.py client
            formatter: Renderer for task embeds
        """
        self.client = client
        self.formatter = formatter or RemindTaskFormatter()

    # =========================================================================
    # Channel resolution
    # =========================================================================

    async def _resolve(self, channel_id: str) -> Optional[MessageChannel]:
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            try:
                channel = await self.client.fetch_channel(int(channel_id))
            except discord.NotFound:
                return None
            except discord.HTTPException as e:
                logger.warning(f"Failed to fetch channel {channel_id}: {e}")
                raise TransportError() from e

        if isinstance(channel, (discord.TextChannel, discord.Thread)):
            return channel
        return None

    async def resolve_text_channel(self, channel_id: str) -> discord.TextChannel:
        """
        Resolve a channel that can hold task messages.

        Raises:
            NotFoundError: If the channel is missing or not a text channel
        """
        channel = await self._resolve(channel_id)
        if not isinstance(channel, discord.TextChannel):
            raise NotFoundError("チャンネルが見つかりません")
        return channel

    async def resolve_thread(self, thread_id: str) -> Optional[discord.Thread]:
        channel = await self._resolve(thread_id)
        return channel if isinstance(channel, discord.Thread) else None

    # =========================================================================
    # Task messages
    # =========================================================================

    async def create_task_message(self, channel_id: str, task: RemindTask, now: datetime) -> str:
        """
        Post a new message rendering the task.

        Returns:
            The new message ID
        """
        channel = await self.resolve_text_channel(channel_id)
        try:
            message = await channel.send(
                embed=self.formatter.build_task_embed(task, now),
                view=build_task_view(),
            )
        except discord.HTTPException as e:
            logger.warning(f"Failed to create message for task {task.id} in {channel_id}: {e}")
            raise TransportError() from e

        logger.info(f"Created message {message.id} for task {task.id}")
        return str(message.id)

    async def update_task_message(
        self, channel_id: str, message_id: str, task: RemindTask, now: datetime
    ) -> None:
        """
        Re-render an existing task message.

        Raises:
            NotFoundError: If the message no longer exists
            TransportError: On any other Discord failure
        """
        channel = await self.resolve_text_channel(channel_id)
        message = channel.get_partial_message(int(message_id))
        try:
            await message.edit(
                embed=self.formatter.build_task_embed(task, now),
                view=build_task_view(),
            )
        except discord.NotFound as e:
            raise NotFoundError("メッセージが見つかりません") from e
        except discord.HTTPException as e:
            logger.warning(f"Failed to update message {message_id} for task {task.id}: {e}")
            raise TransportError() from e

    async def delete_task_message(self, channel_id: str, message_id: str) -> None:
        """Delete a task message. A message that is already gone is ignored."""
        channel = await self.resolve_text_channel(channel_id)
        try:
            await channel.get_partial_message(int(message_id)).delete()
        except discord.NotFound:
            logger.info(f"Message {message_id} in {channel_id} was already deleted")
        except discord.HTTPException as e:
            logger.warning(f"Failed to delete message {message_id} in {channel_id}: {e}")
            raise TransportError() from e

    # =========================================================================
    # Notice thread
    # =========================================================================

    @staticmethod
    async def _unarchive(thread: discord.Thread) -> None:
        if not thread.archived:
            return
        try:
            await thread.edit(archived=False)
        except discord.HTTPException as e:
            # Sending still revives most archived threads
            logger.debug(f"Failed to unarchive thread {thread.id}: {e}")

    async def _notice_message_exists(self, channel: discord.TextChannel, message_id: str) -> bool:
        try:
            await channel.fetch_message(int(message_id))
            return True
        except discord.NotFound:
            return False
        except discord.HTTPException as e:
            logger.warning(f"Failed to fetch notice message {message_id}: {e}")
            raise TransportError() from e

    async def ensure_reminder_thread(
        self,
        channel_id: str,
        thread_id: Optional[str] = None,
        notice_message_id: Optional[str] = None,
    ) -> ThreadResult:
        """
        Return a usable notice thread, recreating it when it is gone.

        A thread is reused only while both the thread and its parent notice
        message still exist. Otherwise a new notice message is posted, pinned,
        and a thread is started from it.
        """
        channel = await self.resolve_text_channel(channel_id)

        if thread_id and notice_message_id:
            thread = await self.resolve_thread(thread_id)
            if thread is not None and await self._notice_message_exists(channel, notice_message_id):
                await self._unarchive(thread)
                return ThreadResult(thread_id=str(thread.id), parent_message_id=notice_message_id)

        try:
            parent = await channel.send(NOTICE_MESSAGE_TEXT, view=build_notice_view())
        except discord.HTTPException as e:
            logger.warning(f"Failed to post notice message in {channel_id}: {e}")
            raise TransportError() from e

        try:
            await parent.pin()
        except discord.HTTPException as e:
            logger.debug(f"Failed to pin notice message {parent.id}: {e}")

        try:
            thread = await parent.create_thread(
                name=NOTICE_THREAD_NAME,
                auto_archive_duration=NOTICE_THREAD_ARCHIVE_MINUTES,
            )
        except discord.HTTPException as e:
            logger.warning(f"Failed to start notice thread in {channel_id}: {e}")
            raise TransportError() from e

        logger.info(f"Created notice thread {thread.id} in channel {channel_id}")
        return ThreadResult(thread_id=str(thread.id), parent_message_id=str(parent.id))

    async def send_reminder_to_thread(
        self,
        channel_id: str,
        thread_id: Optional[str],
        notice_message_id: Optional[str],
        text: str,
    ) -> ThreadResult:
        """
        Post a notice into the channel's notice thread.

        Returns:
            The thread actually used; differs from the input when the thread
            had to be recreated.
        """
        target = await self.ensure_reminder_thread(channel_id, thread_id, notice_message_id)
        thread = await self.resolve_thread(target.thread_id)
        if thread is None:
            raise TransportError("通知用スレッドが見つかりません")

        try:
            await thread.send(text, allowed_mentions=discord.AllowedMentions(everyone=True))
        except discord.HTTPException as e:
            logger.warning(f"Failed to send notice to thread {target.thread_id}: {e}")
            raise TransportError() from e

        return target
