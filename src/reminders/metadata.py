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
Channel Metadata Module

Per-channel bookkeeping: which thread receives notices, and which message
in the channel is the thread's parent.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

import asyncpg

from .errors import PersistenceError

logger = logging.getLogger("remindboard.reminders.metadata")

DEFAULT_LIST_TITLE = "リマインド"

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


@dataclass
class ChannelReminderMetadata:
    """Reminder settings tracked for one channel."""

    channel_id: str
    list_title: str = DEFAULT_LIST_TITLE
    last_sync_time: Optional[datetime] = None
    remind_notice_thread_id: Optional[str] = None
    remind_notice_message_id: Optional[str] = None


def row_to_metadata(row: Mapping[str, Any]) -> ChannelReminderMetadata:
    return ChannelReminderMetadata(
        channel_id=row["channel_id"],
        list_title=row["list_title"],
        last_sync_time=row["last_sync_time"],
        remind_notice_thread_id=row["remind_notice_thread_id"],
        remind_notice_message_id=row["remind_notice_message_id"],
    )


class RemindMetadataManager:
    """Reads and writes the remind_channels table."""

    def __init__(self, db_pool: asyncpg.Pool):
        self.db = db_pool

    async def list_channels(self) -> list[ChannelReminderMetadata]:
        """All channels that have been initialized for reminders."""
        try:
            rows = await self.db.fetch(
                """
                SELECT channel_id, list_title, last_sync_time,
                       remind_notice_thread_id, remind_notice_message_id
                FROM remind_channels
                ORDER BY channel_id
                """
            )
        except _DB_ERRORS as e:
            logger.error(f"Failed to list reminder channels: {e}", exc_info=True)
            raise PersistenceError() from e
        return [row_to_metadata(row) for row in rows]

    async def get_channel(self, channel_id: str) -> Optional[ChannelReminderMetadata]:
        try:
            row = await self.db.fetchrow(
                """
                SELECT channel_id, list_title, last_sync_time,
                       remind_notice_thread_id, remind_notice_message_id
                FROM remind_channels
                WHERE channel_id = $1
                """,
                channel_id,
            )
        except _DB_ERRORS as e:
            logger.error(f"Failed to load metadata for channel {channel_id}: {e}", exc_info=True)
            raise PersistenceError() from e
        return row_to_metadata(row) if row else None

    async def save_channel(self, metadata: ChannelReminderMetadata) -> None:
        """
        Insert or overwrite a channel's metadata.

        Args:
            metadata: Full metadata row to store
        """
        try:
            await self.db.execute(
                """
                INSERT INTO remind_channels (
                    channel_id, list_title, last_sync_time,
                    remind_notice_thread_id, remind_notice_message_id
                ) VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (channel_id) DO UPDATE SET
                    list_title = EXCLUDED.list_title,
                    last_sync_time = EXCLUDED.last_sync_time,
                    remind_notice_thread_id = EXCLUDED.remind_notice_thread_id,
                    remind_notice_message_id = EXCLUDED.remind_notice_message_id
                """,
                metadata.channel_id,
                metadata.list_title,
                metadata.last_sync_time,
                metadata.remind_notice_thread_id,
                metadata.remind_notice_message_id,
            )
        except _DB_ERRORS as e:
            logger.error(
                f"Failed to save metadata for channel {metadata.channel_id}: {e}", exc_info=True
            )
            raise PersistenceError() from e

    async def update_notice_target(
        self,
        channel_id: str,
        thread_id: str,
        notice_message_id: Optional[str],
        now: datetime,
    ) -> ChannelReminderMetadata:
        """Record a (re)created notice thread for a channel."""
        current = await self.get_channel(channel_id) or ChannelReminderMetadata(channel_id=channel_id)
        current.remind_notice_thread_id = thread_id
        if notice_message_id is not None:
            current.remind_notice_message_id = notice_message_id
        current.last_sync_time = now
        await self.save_channel(current)
        logger.info(f"Updated notice thread for channel {channel_id}: thread={thread_id}")
        return current
