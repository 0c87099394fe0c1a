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
Button Handlers

Buttons on task messages (detail / update / complete / delete) and the
create button on the channel's notice message.
"""

import logging

from reminders.errors import NotFoundError
from reminders.formatter import RemindTaskFormatter
from reminders.message_manager import (
    ADD_BUTTON_ID,
    COMPLETE_BUTTON_ID,
    DELETE_BUTTON_ID,
    DETAIL_BUTTON_ID,
    UPDATE_BUTTON_ID,
)
from reminders.service import RemindTaskService
from reminders.time_utils import format_tokyo_datetime

from .forms import TaskAddModal, TaskDeleteModal, UpdateSelectView
from .registry import HandlerResult, InteractionContext

logger = logging.getLogger("remindboard.interactions.buttons")


def _source_message_id(context: InteractionContext) -> str:
    if not context.source_message_id:
        raise NotFoundError()
    return context.source_message_id


class _ButtonHandler:
    custom_id = ""
    defer = False

    def __init__(self, service: RemindTaskService):
        self.service = service

    def should_handle(self, context: InteractionContext) -> bool:
        # Task buttons carry no suffix; prefix matching would catch the modals
        return context.custom_id == self.custom_id


class TaskAddButtonHandler(_ButtonHandler):
    """Opens the add form."""

    custom_id = ADD_BUTTON_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        await context.interaction.response.send_modal(TaskAddModal())
        return HandlerResult()


class TaskDetailButtonHandler(_ButtonHandler):
    """Shows the full schedule of a task."""

    custom_id = DETAIL_BUTTON_ID

    def __init__(self, service: RemindTaskService, formatter: RemindTaskFormatter):
        super().__init__(service)
        self.formatter = formatter

    async def execute(self, context: InteractionContext) -> HandlerResult:
        task = await self.service.get_task(context.channel_id, _source_message_id(context))
        return HandlerResult(embed=self.formatter.build_detail_embed(task, context.now))


class TaskUpdateButtonHandler(_ButtonHandler):
    """Shows the update menu."""

    custom_id = UPDATE_BUTTON_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        message_id = _source_message_id(context)
        task = await self.service.get_task(context.channel_id, message_id)
        await context.interaction.response.send_message(
            "更新する項目を選んでください。",
            view=UpdateSelectView(task, message_id),
            ephemeral=True,
        )
        return HandlerResult()


class TaskCompleteButtonHandler(_ButtonHandler):
    """Marks the task done for the current cycle."""

    custom_id = COMPLETE_BUTTON_ID
    defer = True

    async def execute(self, context: InteractionContext) -> HandlerResult:
        task = await self.service.complete_task(
            context.channel_id,
            _source_message_id(context),
            context.now,
            user_id=context.user_id,
        )
        return HandlerResult(
            message=f"「{task.title}」を完了しました。次回期限: {format_tokyo_datetime(task.next_due_at)}"
        )


class TaskDeleteButtonHandler(_ButtonHandler):
    """Opens the delete confirmation form."""

    custom_id = DELETE_BUTTON_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        message_id = _source_message_id(context)
        # Fail fast before asking for confirmation
        await self.service.get_task(context.channel_id, message_id)
        await context.interaction.response.send_modal(TaskDeleteModal(message_id))
        return HandlerResult()
