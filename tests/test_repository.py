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

"""Tests for the asyncpg-backed task repository and channel metadata."""

import json
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.errors import NotFoundError, PersistenceError, StaleTaskError
from reminders.metadata import ChannelReminderMetadata, RemindMetadataManager
from reminders.models import InventoryItem, create_remind_task
from reminders.repository import (
    _COLUMNS,
    RemindTaskRepository,
    deserialize_inventory,
    row_to_task,
    serialize_inventory,
    task_to_params,
)
from reminders.time_utils import TOKYO_TZ


def jst(*args) -> datetime:
    return TOKYO_TZ.localize(datetime(*args))


def make_task(**overrides):
    task = create_remind_task(
        "掃除",
        7,
        "09:00",
        now=jst(2025, 12, 29, 9, 0),
        description="風呂",
        inventory_items=[InventoryItem("牛乳", 0, 1)],
        overdue_notify_limit=2,
        task_id="task-abc",
    )
    return replace(task, **overrides)


def as_row(channel_id, task):
    """Build a row mapping the way asyncpg would return it."""
    names = [name.strip() for name in _COLUMNS.split(",")]
    return dict(zip(names, task_to_params(channel_id, task)))


@pytest.fixture
def pool():
    mock_pool = MagicMock()
    mock_pool.fetch = AsyncMock(return_value=[])
    mock_pool.fetchrow = AsyncMock(return_value=None)
    mock_pool.execute = AsyncMock(return_value="UPDATE 1")
    return mock_pool


class TestRowMapping:
    """Test that a task survives a write/read cycle unchanged."""

    def test_all_fields_preserved(self):
        task = make_task(
            message_id="555",
            last_done_at=jst(2026, 1, 1, 8, 0),
            last_remind_due_at=jst(2026, 1, 5, 9, 0),
            overdue_notify_count=1,
            last_overdue_notified_at=jst(2026, 1, 5, 9, 1),
            is_paused=True,
        )
        assert row_to_task(as_row("100", task)) == task

    def test_unset_optionals_preserved(self):
        task = make_task(description=None, inventory_items=[], overdue_notify_limit=None)
        assert row_to_task(as_row("100", task)) == task

    def test_inventory_json(self):
        raw = serialize_inventory([InventoryItem("牛乳", 2, 1)])
        assert json.loads(raw) == [{"name": "牛乳", "stock": 2, "consume": 1}]
        assert "牛乳" in raw

    def test_inventory_from_decoded_jsonb(self):
        assert deserialize_inventory([{"name": "卵", "stock": "3", "consume": 1}]) == [
            InventoryItem("卵", 3, 1)
        ]

    def test_inventory_empty(self):
        assert deserialize_inventory(None) == []
        assert deserialize_inventory("") == []


class TestRemindTaskRepository:
    @pytest.mark.asyncio
    async def test_fetch_tasks(self, pool):
        task = make_task()
        pool.fetch.return_value = [as_row("100", task)]

        tasks = await RemindTaskRepository(pool).fetch_tasks("100")

        assert tasks == [task]
        assert pool.fetch.await_args.args[1] == "100"

    @pytest.mark.asyncio
    async def test_find_by_message_id(self, pool):
        task = make_task(message_id="555")
        pool.fetchrow.return_value = as_row("100", task)

        found = await RemindTaskRepository(pool).find_task_by_message_id("100", "555")

        assert found == task
        assert pool.fetchrow.await_args.args[1:] == ("100", "555")

    @pytest.mark.asyncio
    async def test_find_missing(self, pool):
        assert await RemindTaskRepository(pool).find_task_by_message_id("100", "404") is None

    @pytest.mark.asyncio
    async def test_append(self, pool):
        task = make_task()
        pool.execute.return_value = "INSERT 0 1"

        await RemindTaskRepository(pool).append_task("100", task)

        args = pool.execute.await_args.args
        assert "INSERT INTO remind_tasks" in args[0]
        assert args[1:] == task_to_params("100", task)

    @pytest.mark.asyncio
    async def test_update_is_repeatable(self, pool):
        repository = RemindTaskRepository(pool)
        task = make_task()

        await repository.update_task("100", task)
        await repository.update_task("100", task)

        first, second = pool.execute.await_args_list
        assert first.args == second.args

    @pytest.mark.asyncio
    async def test_update_missing_row(self, pool):
        pool.execute.return_value = "UPDATE 0"
        with pytest.raises(NotFoundError):
            await RemindTaskRepository(pool).update_task("100", make_task())

    @pytest.mark.asyncio
    async def test_find_by_id(self, pool):
        task = make_task()
        pool.fetchrow.return_value = as_row("100", task)

        found = await RemindTaskRepository(pool).find_task_by_id("100", "task-abc")

        assert found == task
        assert pool.fetchrow.await_args.args[1:] == ("100", "task-abc")

    @pytest.mark.asyncio
    async def test_conditional_update_checks_updated_at(self, pool):
        task = make_task()
        read_at = jst(2026, 1, 1, 8, 0)

        await RemindTaskRepository(pool).update_task("100", task, expected_updated_at=read_at)

        args = pool.execute.await_args.args
        assert "updated_at = $20" in args[0]
        assert args[1:] == task_to_params("100", task) + (read_at,)

    @pytest.mark.asyncio
    async def test_conditional_update_on_changed_row(self, pool):
        pool.execute.return_value = "UPDATE 0"
        pool.fetchrow.return_value = as_row("100", make_task())

        with pytest.raises(StaleTaskError):
            await RemindTaskRepository(pool).update_task(
                "100", make_task(), expected_updated_at=jst(2026, 1, 1, 8, 0)
            )

    @pytest.mark.asyncio
    async def test_conditional_update_on_deleted_row(self, pool):
        pool.execute.return_value = "UPDATE 0"

        with pytest.raises(NotFoundError):
            await RemindTaskRepository(pool).update_task(
                "100", make_task(), expected_updated_at=jst(2026, 1, 1, 8, 0)
            )

    @pytest.mark.asyncio
    async def test_delete(self, pool):
        pool.execute.return_value = "DELETE 1"
        await RemindTaskRepository(pool).delete_task("100", "task-abc")
        assert pool.execute.await_args.args[1:] == ("task-abc", "100")

    @pytest.mark.asyncio
    async def test_delete_missing_row(self, pool):
        pool.execute.return_value = "DELETE 0"
        with pytest.raises(NotFoundError):
            await RemindTaskRepository(pool).delete_task("100", "task-abc")

    @pytest.mark.asyncio
    async def test_database_failure(self, pool):
        pool.fetch.side_effect = OSError("connection refused")
        with pytest.raises(PersistenceError):
            await RemindTaskRepository(pool).fetch_tasks("100")


class TestRemindMetadataManager:
    @pytest.mark.asyncio
    async def test_list_channels(self, pool):
        pool.fetch.return_value = [
            {
                "channel_id": "100",
                "list_title": "リマインド",
                "last_sync_time": None,
                "remind_notice_thread_id": "thread-1",
                "remind_notice_message_id": "notice-1",
            }
        ]

        channels = await RemindMetadataManager(pool).list_channels()

        assert channels == [
            ChannelReminderMetadata(
                channel_id="100",
                remind_notice_thread_id="thread-1",
                remind_notice_message_id="notice-1",
            )
        ]

    @pytest.mark.asyncio
    async def test_update_notice_target_creates_row(self, pool):
        now = jst(2026, 1, 5, 9, 0)

        metadata = await RemindMetadataManager(pool).update_notice_target(
            "100", "thread-2", "notice-2", now
        )

        assert metadata.remind_notice_thread_id == "thread-2"
        assert metadata.remind_notice_message_id == "notice-2"
        args = pool.execute.await_args.args
        assert "ON CONFLICT (channel_id)" in args[0]
        assert args[1:] == ("100", "リマインド", now, "thread-2", "notice-2")

    @pytest.mark.asyncio
    async def test_failure(self, pool):
        pool.fetch.side_effect = OSError("connection refused")
        with pytest.raises(PersistenceError):
            await RemindMetadataManager(pool).list_channels()
