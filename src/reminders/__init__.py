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
Remind Tasks Package

Recurring channel reminders: task model, storage, Discord rendering and the
background scheduler.
"""

from .errors import (
    RemindError,
    ValidationError,
    FormatError,
    NotFoundError,
    TransportError,
    PersistenceError,
    StaleTaskError,
)
from .models import InventoryItem, RemindTask, create_remind_task
from .formatter import RemindTaskFormatter, SummaryText
from .repository import RemindTaskRepository
from .metadata import ChannelReminderMetadata, RemindMetadataManager
from .message_manager import RemindMessageManager, ThreadResult
from .scheduler import RemindScheduler
from .service import RemindTaskService

__all__ = [
    "RemindError",
    "ValidationError",
    "FormatError",
    "NotFoundError",
    "TransportError",
    "PersistenceError",
    "StaleTaskError",
    "InventoryItem",
    "RemindTask",
    "create_remind_task",
    "RemindTaskFormatter",
    "SummaryText",
    "RemindTaskRepository",
    "ChannelReminderMetadata",
    "RemindMetadataManager",
    "RemindMessageManager",
    "ThreadResult",
    "RemindScheduler",
    "RemindTaskService",
]
