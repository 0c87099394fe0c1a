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
Interaction Handlers Package

Buttons, select menus and modal submissions for remind tasks, routed by
custom ID through an InteractionRegistry.
"""

from reminders.formatter import RemindTaskFormatter
from reminders.service import RemindTaskService

from .buttons import (
    TaskAddButtonHandler,
    TaskCompleteButtonHandler,
    TaskDeleteButtonHandler,
    TaskDetailButtonHandler,
    TaskUpdateButtonHandler,
)
from .modals import (
    TaskAddModalHandler,
    TaskDeleteModalHandler,
    TaskInventoryModalHandler,
    TaskOverrideModalHandler,
    TaskUpdateModalHandler,
)
from .registry import HandlerResult, InteractionContext, InteractionHandler, InteractionRegistry
from .select_menus import TaskUpdateSelectHandler


def build_registry(
    service: RemindTaskService, formatter: RemindTaskFormatter
) -> InteractionRegistry:
    """Register every remind task handler."""
    registry = InteractionRegistry()
    registry.register_all(
        [
            TaskAddButtonHandler(service),
            TaskDetailButtonHandler(service, formatter),
            TaskUpdateButtonHandler(service),
            TaskCompleteButtonHandler(service),
            TaskDeleteButtonHandler(service),
            TaskUpdateSelectHandler(service),
            TaskAddModalHandler(service),
            TaskUpdateModalHandler(service),
            TaskOverrideModalHandler(service),
            TaskInventoryModalHandler(service),
            TaskDeleteModalHandler(service),
        ]
    )
    return registry


__all__ = [
    "HandlerResult",
    "InteractionContext",
    "InteractionHandler",
    "InteractionRegistry",
    "build_registry",
]
