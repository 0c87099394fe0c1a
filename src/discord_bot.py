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

import asyncio
import logging
from typing import Optional

import asyncpg
import discord
from discord.ext import commands
from dotenv import load_dotenv

from commands.remind_commands import setup as setup_remind_commands
from config import BotConfig
from interactions import InteractionRegistry, build_registry
from operation_log import OperationLog
from reminders import (
    RemindMessageManager,
    RemindMetadataManager,
    RemindScheduler,
    RemindTaskFormatter,
    RemindTaskRepository,
    RemindTaskService,
)

load_dotenv()

logger = logging.getLogger("remindboard")


class RemindBot(commands.Bot):
    """Discord bot that keeps recurring remind tasks for channels."""

    def __init__(self, config: BotConfig):
        intents = discord.Intents.default()
        intents.guilds = True

        super().__init__(command_prefix="!", intents=intents)

        self.config = config
        self.db_pool: Optional[asyncpg.Pool] = None
        self.registry: Optional[InteractionRegistry] = None
        self.scheduler: Optional[RemindScheduler] = None
        self.service: Optional[RemindTaskService] = None

    async def setup_hook(self):
        """Build every dependency and register commands."""
        logger.info(f"Setup: DATABASE_URL={'set' if self.config.database_url else 'missing'}")
        logger.info(f"Setup: OPERATION_LOG_ENABLED={self.config.operation_log_enabled}")

        if not self.config.database_url:
            raise RuntimeError("DATABASE_URL is required")

        self.db_pool = await asyncpg.create_pool(self.config.database_url)

        repository = RemindTaskRepository(self.db_pool)
        metadata_manager = RemindMetadataManager(self.db_pool)
        formatter = RemindTaskFormatter()
        message_manager = RemindMessageManager(self, formatter)
        operation_log = OperationLog(self.db_pool, enabled=self.config.operation_log_enabled)

        self.service = RemindTaskService(
            repository,
            message_manager,
            metadata_manager,
            operation_log=operation_log,
            default_remind_before_minutes=self.config.default_remind_before_minutes,
        )
        self.registry = build_registry(self.service, formatter)
        self.scheduler = RemindScheduler(
            self,
            repository,
            metadata_manager,
            message_manager,
            interval_seconds=self.config.scheduler_interval_seconds,
            refresh_interval_minutes=self.config.refresh_interval_minutes,
            overdue_notify_limit=self.config.overdue_notify_limit,
            operation_log=operation_log,
        )

        await setup_remind_commands(self, self.service)
        synced = await self.tree.sync()
        logger.info(f"Synced {len(synced)} application command(s)")

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")
        if self.scheduler is not None:
            self.scheduler.start()

    async def on_interaction(self, interaction: discord.Interaction):
        """Route button, select menu and modal interactions to their handlers."""
        if self.registry is not None:
            await self.registry.dispatch(interaction)

    async def close(self):
        """Stop the scheduler and release the database pool."""
        if self.scheduler is not None:
            self.scheduler.stop()
        if self.db_pool is not None:
            await self.db_pool.close()
        await super().close()


async def main():
    """Run the bot."""
    config = BotConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not config.discord_token:
        print("Error: DISCORD_BOT_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    bot = RemindBot(config)
    async with bot:
        await bot.start(config.discord_token)


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
