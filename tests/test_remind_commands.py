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

"""Tests for the /remind slash commands."""

import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commands.remind_commands import RemindCommands
from interactions.registry import GENERIC_ERROR_MESSAGE
from reminders.errors import TransportError, ValidationError
from reminders.metadata import ChannelReminderMetadata
from reminders.models import create_remind_task
from reminders.time_utils import TOKYO_TZ


def make_interaction():
    interaction = MagicMock()
    interaction.channel_id = 100
    interaction.channel = MagicMock(spec=discord.TextChannel)
    interaction.channel.id = 100
    interaction.user.id = 42
    interaction.response.defer = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


@pytest.fixture
def service():
    mock_service = MagicMock()
    task = create_remind_task(
        "掃除", 7, "09:00", now=TOKYO_TZ.localize(datetime(2025, 12, 29, 9, 0))
    )
    mock_service.add_task = AsyncMock(return_value=task)
    mock_service.initialize_channel = AsyncMock(
        return_value=ChannelReminderMetadata(
            channel_id="100", remind_notice_thread_id="200", remind_notice_message_id="300"
        )
    )
    return mock_service


def followup_text(interaction):
    return interaction.followup.send.await_args.args[0]


class TestRemindAdd:
    """Test /remind add."""

    @pytest.mark.asyncio
    async def test_add_with_defaults(self, service):
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()

        await RemindCommands.add_task.callback(cog, interaction, "掃除", 7)

        kwargs = service.add_task.await_args.kwargs
        assert kwargs["channel_id"] == "100"
        assert kwargs["title"] == "掃除"
        assert kwargs["interval_days"] == 7
        assert kwargs["time_of_day"] == "00:00"
        assert kwargs["remind_before_minutes"] is None
        assert kwargs["description"] is None
        assert kwargs["user_id"] == 42
        assert "「掃除」を追加しました" in followup_text(interaction)
        assert interaction.followup.send.await_args.kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_add_parses_remind_before(self, service):
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()

        await RemindCommands.add_task.callback(
            cog,
            interaction,
            "掃除",
            7,
            time_of_day="9:30",
            description="風呂",
            remind_before="2:00",
        )

        kwargs = service.add_task.await_args.kwargs
        assert kwargs["time_of_day"] == "9:30"
        assert kwargs["remind_before_minutes"] == 120
        assert kwargs["description"] == "風呂"

    @pytest.mark.asyncio
    async def test_bad_remind_before_is_reported(self, service):
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()

        await RemindCommands.add_task.callback(
            cog, interaction, "掃除", 7, remind_before="25:00:00"
        )

        service.add_task.assert_not_awaited()
        interaction.followup.send.assert_awaited_once()
        assert interaction.followup.send.await_args.kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_validation_error_is_shown(self, service):
        service.add_task.side_effect = ValidationError("時刻の形式が無効です")
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()

        await RemindCommands.add_task.callback(cog, interaction, "掃除", 7, time_of_day="25:00")

        assert followup_text(interaction) == "時刻の形式が無効です"

    @pytest.mark.asyncio
    async def test_send_failure_is_shown(self, service):
        service.add_task.side_effect = TransportError()
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()

        await RemindCommands.add_task.callback(cog, interaction, "掃除", 7)

        assert followup_text(interaction) == TransportError().user_message

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, service):
        service.add_task.side_effect = RuntimeError("boom")
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()

        await RemindCommands.add_task.callback(cog, interaction, "掃除", 7)

        assert followup_text(interaction) == GENERIC_ERROR_MESSAGE


class TestRemindInit:
    """Test /remind init."""

    @pytest.mark.asyncio
    async def test_init(self, service):
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()

        await RemindCommands.init_channel.callback(cog, interaction)

        assert service.initialize_channel.await_args.args[0] == "100"
        assert "<#200>" in followup_text(interaction)

    @pytest.mark.asyncio
    async def test_init_requires_text_channel(self, service):
        cog = RemindCommands(MagicMock(), service)
        interaction = make_interaction()
        interaction.channel = MagicMock(spec=discord.Thread)

        await RemindCommands.init_channel.callback(cog, interaction)

        service.initialize_channel.assert_not_awaited()
