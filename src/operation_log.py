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
Lightweight operation log for remindboard.

Usage:
    log = OperationLog(db_pool, enabled=True)

    # Fire-and-forget, uses a background task
    log.record("task_completed", channel_id="123", task_id="task-ab12", user_id=456)

    # Async, when the caller needs to await completion
    await log.record_async("task_deleted", channel_id="123", task_id="task-ab12")
"""

import asyncio
import json
import logging
from typing import Any, Optional

import asyncpg

logger = logging.getLogger("remindboard.operation_log")


class OperationLog:
    """Records user and scheduler operations; never raises."""

    def __init__(self, db_pool: Optional[asyncpg.Pool], enabled: bool = True):
        self.db = db_pool
        self.enabled = enabled and db_pool is not None

    async def record_async(
        self,
        operation: str,
        channel_id: Optional[str] = None,
        task_id: Optional[str] = None,
        user_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Record an operation.

        Args:
            operation: Operation name (e.g., "task_added")
            channel_id: Discord channel ID (optional)
            task_id: Remind task ID (optional)
            user_id: Discord user ID (optional)
            details: Additional data as key-value pairs

        Returns:
            True if the operation was recorded, False otherwise
        """
        if not self.enabled:
            return False

        try:
            await self.db.execute(
                """
                INSERT INTO remind_operation_log
                    (operation, channel_id, task_id, user_id, details)
                VALUES ($1, $2, $3, $4, $5::jsonb)
                """,
                operation,
                channel_id,
                task_id,
                user_id,
                json.dumps(details or {}, ensure_ascii=False),
            )
            return True
        except Exception as e:
            logger.debug(f"Operation log write failed: {e}")
            return False

    def record(
        self,
        operation: str,
        channel_id: Optional[str] = None,
        task_id: Optional[str] = None,
        user_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Record an operation (fire-and-forget).

        Safe to call from sync or async contexts.
        """
        if not self.enabled:
            return

        try:
            loop = asyncio.get_running_loop()
            loop.create_task(self.record_async(operation, channel_id, task_id, user_id, details))
        except RuntimeError:
            # No running loop - skip recording
            pass
