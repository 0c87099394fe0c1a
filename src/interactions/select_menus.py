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
Select Menu Handlers

The update menu: opens the matching form, or toggles pause directly.
"""

import logging

from reminders.errors import NotFoundError, ValidationError
from reminders.service import RemindTaskService

from .forms import (
    UPDATE_OPTION_BASIC,
    UPDATE_OPTION_INVENTORY,
    UPDATE_OPTION_OVERRIDE,
    UPDATE_OPTION_PAUSE,
    UPDATE_SELECT_ID,
    TaskInventoryModal,
    TaskOverrideModal,
    TaskUpdateModal,
)
from .registry import HandlerResult, InteractionContext, matches_custom_id

logger = logging.getLogger("remindboard.interactions.select_menus")

_FORMS = {
    UPDATE_OPTION_BASIC: TaskUpdateModal,
    UPDATE_OPTION_OVERRIDE: TaskOverrideModal,
    UPDATE_OPTION_INVENTORY: TaskInventoryModal,
}


class TaskUpdateSelectHandler:
    custom_id = UPDATE_SELECT_ID
    defer = False

    def __init__(self, service: RemindTaskService):
        self.service = service

    def should_handle(self, context: InteractionContext) -> bool:
        return matches_custom_id(context.custom_id, self.custom_id)

    async def execute(self, context: InteractionContext) -> HandlerResult:
        # The menu lives on an ephemeral reply, so the task message ID comes from the custom ID
        message_id = context.custom_id_suffix
        if not message_id:
            raise NotFoundError()

        selection = context.values[0] if context.values else None
        if selection == UPDATE_OPTION_PAUSE:
            await context.interaction.response.defer(ephemeral=True, thinking=True)
            task = await self.service.toggle_pause(
                context.channel_id, message_id, context.now, user_id=context.user_id
            )
            state = "一時停止しました" if task.is_paused else "再開しました"
            return HandlerResult(message=f"「{task.title}」を{state}。")

        form = _FORMS.get(selection)
        if form is None:
            raise ValidationError("不明な選択肢です")

        task = await self.service.get_task(context.channel_id, message_id)
        await context.interaction.response.send_modal(form(task, message_id))
        return HandlerResult()
