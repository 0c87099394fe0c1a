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
Bot Configuration

Runtime settings for remindboard. Values are read from environment variables
(a ``.env`` file is loaded by the entry point).
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class BotConfig:
    """Configuration for the reminder bot."""

    discord_token: Optional[str] = None
    database_url: Optional[str] = None

    # Scheduler settings
    scheduler_interval_seconds: int = 60
    refresh_interval_minutes: int = 60
    overdue_notify_limit: int = 1

    # Default lead time for new tasks (1 day)
    default_remind_before_minutes: int = 1440

    operation_log_enabled: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Create config from environment variables with defaults."""
        return cls(
            discord_token=os.getenv("DISCORD_BOT_TOKEN"),
            database_url=os.getenv("DATABASE_URL"),
            scheduler_interval_seconds=int(
                os.getenv("REMIND_SCHEDULER_INTERVAL_SECONDS", "60")
            ),
            refresh_interval_minutes=int(os.getenv("REMIND_REFRESH_INTERVAL_MINUTES", "60")),
            overdue_notify_limit=int(os.getenv("REMIND_OVERDUE_NOTIFY_LIMIT", "1")),
            default_remind_before_minutes=int(
                os.getenv("REMIND_DEFAULT_BEFORE_MINUTES", "1440")
            ),
            operation_log_enabled=_env_bool("OPERATION_LOG_ENABLED", "true"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
