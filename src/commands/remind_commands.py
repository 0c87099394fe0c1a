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
Remind Slash Commands

Discord slash commands for setting up reminder channels and adding tasks.
"""

import logging
from datetime import datetime
from typing import Optional

import discord
import pytz
from discord import app_commands
from discord.ext import commands

from interactions.modals import DEFAULT_TIME_OF_DAY
from interactions.registry import GENERIC_ERROR_MESSAGE
from reminders import RemindError, RemindTaskService
from reminders.time_utils import format_tokyo_datetime, parse_remind_before

logger = logging.getLogger("remindboard.commands.remind")


class RemindCommands(commands.Cog):
    """
    Slash commands for remind channels.

    Commands:
    - /remind init - Create the notice thread and re-render all task messages
    - /remind add - Add a task without going through the notice button
    """

    remind_group = app_commands.Group(
        name="remind",
        description="Manage recurring reminders for this channel",
        default_permissions=discord.Permissions(manage_channels=True),
        guild_only=True,
    )

    def __init__(self, bot: commands.Bot, service: RemindTaskService):
        self.bot = bot
        self.service = service

    # =========================================================================
    # /remind init
    # =========================================================================

    @remind_group.command(name="init")
    async def init_channel(self, interaction: discord.Interaction):
        """Set up this channel for reminders."""
        await interaction.response.defer(ephemeral=True)

        if not isinstance(interaction.channel, discord.TextChannel):
            await interaction.followup.send(
                "テキストチャンネルで実行してください。", ephemeral=True
            )
            return

        channel_id = str(interaction.channel.id)
        try:
            metadata = await self.service.initialize_channel(channel_id, datetime.now(pytz.UTC))
        except RemindError as e:
            logger.warning(f"Failed to initialize channel {channel_id}: {e}")
            await interaction.followup.send(e.user_message, ephemeral=True)
            return
        except Exception as e:
            logger.error(f"Error initializing channel {channel_id}: {e}", exc_info=True)
            await interaction.followup.send(GENERIC_ERROR_MESSAGE, ephemeral=True)
            return

        await interaction.followup.send(
            f"リマインドを初期化しました。通知は <#{metadata.remind_notice_thread_id}> に届きます。",
            ephemeral=True,
        )
        logger.info(f"Channel {channel_id} initialized by {interaction.user.id}")

    # =========================================================================
    # /remind add
    # =========================================================================

    @remind_group.command(name="add")
    @app_commands.rename(
        interval_days="interval-days",
        time_of_day="time-of-day",
        remind_before="remind-before",
    )
    @app_commands.describe(
        title="タスク名",
        interval_days="完了から次回期限までの日数",
        time_of_day="期限時刻（時:分、未指定は00:00）",
        description="説明（任意）",
        remind_before="事前通知（日:時:分 もしくは 時:分）",
    )
    async def add_task(
        self,
        interaction: discord.Interaction,
        title: str,
        interval_days: app_commands.Range[int, 1],
        time_of_day: Optional[str] = None,
        description: Optional[str] = None,
        remind_before: Optional[str] = None,
    ):
        """Add a remind task to this channel."""
        await interaction.response.defer(ephemeral=True)

        channel_id = str(interaction.channel_id)
        try:
            remind_before_minutes = (
                parse_remind_before(remind_before) if remind_before is not None else None
            )
            task = await self.service.add_task(
                channel_id=channel_id,
                title=title,
                interval_days=interval_days,
                time_of_day=time_of_day or DEFAULT_TIME_OF_DAY,
                now=datetime.now(pytz.UTC),
                remind_before_minutes=remind_before_minutes,
                description=description or None,
                user_id=interaction.user.id,
            )
        except RemindError as e:
            logger.info(f"Rejected /remind add in {channel_id}: {e}")
            await interaction.followup.send(e.user_message, ephemeral=True)
            return
        except Exception as e:
            logger.error(f"Error adding task in {channel_id}: {e}", exc_info=True)
            await interaction.followup.send(GENERIC_ERROR_MESSAGE, ephemeral=True)
            return

        await interaction.followup.send(
            f"「{task.title}」を追加しました。次回期限: {format_tokyo_datetime(task.next_due_at)}",
            ephemeral=True,
        )


async def setup(bot: commands.Bot, service: RemindTaskService):
    """Add the cog to the bot."""
    await bot.add_cog(RemindCommands(bot, service))
