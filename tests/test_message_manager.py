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

"""Tests for rendering task messages and delivering notices with discord.py."""

import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.errors import NotFoundError, TransportError
from reminders.message_manager import (
    COMPLETE_BUTTON_ID,
    NOTICE_THREAD_NAME,
    RemindMessageManager,
    ThreadResult,
)
from reminders.models import create_remind_task
from reminders.time_utils import TOKYO_TZ


def jst(*args) -> datetime:
    return TOKYO_TZ.localize(datetime(*args))


NOW = jst(2026, 1, 3, 9, 0)


def make_task():
    task = create_remind_task("掃除", 7, "09:00", now=jst(2025, 12, 29, 9, 0), task_id="task-abc")
    return replace(task, message_id="555")


def http_error(cls, status):
    response = MagicMock(status=status, reason="error")
    return cls(response, "error")


def make_thread(thread_id: int, archived: bool = False):
    thread = MagicMock(spec=discord.Thread)
    thread.id = thread_id
    thread.archived = archived
    thread.edit = AsyncMock()
    thread.send = AsyncMock()
    return thread


@pytest.fixture
def channel():
    text_channel = MagicMock(spec=discord.TextChannel)
    text_channel.id = 100
    text_channel.send = AsyncMock(return_value=MagicMock(id=777))
    text_channel.fetch_message = AsyncMock(return_value=MagicMock(id=888))
    partial = MagicMock()
    partial.edit = AsyncMock()
    partial.delete = AsyncMock()
    text_channel.get_partial_message = MagicMock(return_value=partial)
    return text_channel


def make_client(channels):
    client = MagicMock()
    client.get_channel = MagicMock(side_effect=lambda channel_id: channels.get(channel_id))
    client.fetch_channel = AsyncMock(side_effect=http_error(discord.NotFound, 404))
    return client


class TestTaskMessages:
    """Test creating, editing and deleting task messages."""

    @pytest.mark.asyncio
    async def test_create(self, channel):
        manager = RemindMessageManager(make_client({100: channel}))

        message_id = await manager.create_task_message("100", make_task(), NOW)

        assert message_id == "777"
        kwargs = channel.send.await_args.kwargs
        assert kwargs["embed"].title == "掃除"
        custom_ids = [item.custom_id for item in kwargs["view"].children]
        assert COMPLETE_BUTTON_ID in custom_ids
        assert len(custom_ids) == 4

    @pytest.mark.asyncio
    async def test_update(self, channel):
        manager = RemindMessageManager(make_client({100: channel}))

        await manager.update_task_message("100", "555", make_task(), NOW)

        channel.get_partial_message.assert_called_once_with(555)
        channel.get_partial_message.return_value.edit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_deleted_message(self, channel):
        channel.get_partial_message.return_value.edit.side_effect = http_error(discord.NotFound, 404)
        manager = RemindMessageManager(make_client({100: channel}))

        with pytest.raises(NotFoundError):
            await manager.update_task_message("100", "555", make_task(), NOW)

    @pytest.mark.asyncio
    async def test_create_failure(self, channel):
        channel.send.side_effect = http_error(discord.Forbidden, 403)
        manager = RemindMessageManager(make_client({100: channel}))

        with pytest.raises(TransportError):
            await manager.create_task_message("100", make_task(), NOW)

    @pytest.mark.asyncio
    async def test_delete_already_gone(self, channel):
        channel.get_partial_message.return_value.delete.side_effect = http_error(discord.NotFound, 404)
        manager = RemindMessageManager(make_client({100: channel}))

        await manager.delete_task_message("100", "555")

    @pytest.mark.asyncio
    async def test_unknown_channel(self):
        manager = RemindMessageManager(make_client({}))

        with pytest.raises(NotFoundError):
            await manager.create_task_message("100", make_task(), NOW)


class TestNoticeThread:
    """Test delivery into the notice thread."""

    @pytest.mark.asyncio
    async def test_existing_thread_is_reused_and_unarchived(self, channel):
        thread = make_thread(200, archived=True)
        manager = RemindMessageManager(make_client({100: channel, 200: thread}))

        result = await manager.send_reminder_to_thread("100", "200", "888", "@everyone hello")

        assert result == ThreadResult(thread_id="200", parent_message_id="888")
        thread.edit.assert_awaited_with(archived=False)
        assert thread.send.await_args.args[0] == "@everyone hello"
        assert thread.send.await_args.kwargs["allowed_mentions"].everyone is True
        channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_thread_recreated_when_notice_message_is_gone(self, channel):
        old_thread = make_thread(200)
        new_thread = make_thread(300)
        parent = MagicMock(id=999)
        parent.pin = AsyncMock()
        parent.create_thread = AsyncMock(return_value=new_thread)
        channel.send.return_value = parent
        channel.fetch_message.side_effect = http_error(discord.NotFound, 404)
        manager = RemindMessageManager(
            make_client({100: channel, 200: old_thread, 300: new_thread})
        )

        result = await manager.send_reminder_to_thread("100", "200", "888", "@everyone hello")

        assert result == ThreadResult(thread_id="300", parent_message_id="999")
        parent.create_thread.assert_awaited_once_with(
            name=NOTICE_THREAD_NAME, auto_archive_duration=1440
        )
        new_thread.send.assert_awaited_once()
        old_thread.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_thread_is_created(self, channel):
        new_thread = make_thread(300)
        parent = MagicMock(id=999)
        parent.pin = AsyncMock(side_effect=http_error(discord.Forbidden, 403))
        parent.create_thread = AsyncMock(return_value=new_thread)
        channel.send.return_value = parent
        manager = RemindMessageManager(make_client({100: channel, 300: new_thread}))

        result = await manager.ensure_reminder_thread("100", None, None)

        assert result == ThreadResult(thread_id="300", parent_message_id="999")

    @pytest.mark.asyncio
    async def test_send_failure(self, channel):
        thread = make_thread(200)
        thread.send.side_effect = http_error(discord.HTTPException, 500)
        manager = RemindMessageManager(make_client({100: channel, 200: thread}))

        with pytest.raises(TransportError):
            await manager.send_reminder_to_thread("100", "200", "888", "@everyone hello")
