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
Modal Submit Handlers

Parse form fields and hand the typed values to RemindTaskService. Input
errors surface as FormatError/ValidationError and are shown to the user by
the registry.
"""

import logging
from typing import Optional

from reminders.errors import FormatError, NotFoundError, ValidationError
from reminders.inventory import parse_inventory_input
from reminders.service import RemindTaskService
from reminders.time_utils import format_tokyo_datetime, parse_override_date, parse_remind_before

from .forms import (
    ADD_MODAL_ID,
    DELETE_CONFIRM_WORD,
    DELETE_MODAL_ID,
    INVENTORY_MODAL_ID,
    OVERRIDE_MODAL_ID,
    UPDATE_MODAL_ID,
)
from .registry import HandlerResult, InteractionContext, matches_custom_id

logger = logging.getLogger("remindboard.interactions.modals")

DEFAULT_TIME_OF_DAY = "00:00"


def parse_interval_days(text: str) -> int:
    """
    Parse the interval field.

    Raises:
        ValidationError: If the value is not an integer of at least 1
    """
    try:
        value = int(text.strip())
    except ValueError:
        raise ValidationError("周期は1以上を指定してください")
    if value < 1:
        raise ValidationError("周期は1以上を指定してください")
    return value


def parse_notify_limit(text: str) -> Optional[int]:
    """Blank keeps the current limit; otherwise a non-negative integer."""
    trimmed = text.strip()
    if trimmed == "":
        return None
    if not trimmed.isdigit():
        raise FormatError("上限回数は0以上の整数で入力してください")
    return int(trimmed)


def _require_message_id(context: InteractionContext) -> str:
    message_id = context.target_message_id
    if not message_id:
        raise NotFoundError()
    return message_id


class _ModalHandler:
    custom_id = ""
    defer = True

    def __init__(self, service: RemindTaskService):
        self.service = service

    def should_handle(self, context: InteractionContext) -> bool:
        return matches_custom_id(context.custom_id, self.custom_id)


class TaskAddModalHandler(_ModalHandler):
    custom_id = ADD_MODAL_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        title = context.text("title")
        if not title:
            raise ValidationError("タスク名を入力してください")

        remind_before_text = context.text("remind-before")
        task = await self.service.add_task(
            channel_id=context.channel_id,
            title=title,
            interval_days=parse_interval_days(context.text("interval-days")),
            time_of_day=context.text("time-of-day") or DEFAULT_TIME_OF_DAY,
            now=context.now,
            remind_before_minutes=(
                parse_remind_before(remind_before_text) if remind_before_text else None
            ),
            description=context.text("description") or None,
            user_id=context.user_id,
        )
        return HandlerResult(
            message=f"「{task.title}」を追加しました。次回期限: {format_tokyo_datetime(task.next_due_at)}"
        )


class TaskUpdateModalHandler(_ModalHandler):
    custom_id = UPDATE_MODAL_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        title = context.text("title")
        if not title:
            raise ValidationError("タスク名を入力してください")

        task = await self.service.update_basic(
            channel_id=context.channel_id,
            message_id=_require_message_id(context),
            now=context.now,
            title=title,
            interval_days=parse_interval_days(context.text("interval-days")),
            time_of_day=context.text("time-of-day") or DEFAULT_TIME_OF_DAY,
            remind_before_minutes=parse_remind_before(context.text("remind-before")),
            description=context.text("description") or None,
            user_id=context.user_id,
        )
        return HandlerResult(
            message=f"「{task.title}」を更新しました。次回期限: {format_tokyo_datetime(task.next_due_at)}"
        )


class TaskOverrideModalHandler(_ModalHandler):
    custom_id = OVERRIDE_MODAL_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        message_id = _require_message_id(context)
        current = await self.service.get_task(context.channel_id, message_id)

        task = await self.service.override_schedule(
            channel_id=context.channel_id,
            message_id=message_id,
            now=context.now,
            last_done_at=parse_override_date(
                context.text("last-done-at"), current.time_of_day, "前回完了日"
            ),
            next_due_at=parse_override_date(
                context.text("next-due-at"), current.time_of_day, "次回期限"
            ),
            overdue_notify_limit=parse_notify_limit(context.text("overdue-notify-limit")),
            user_id=context.user_id,
        )
        return HandlerResult(
            message=f"「{task.title}」の期限を上書きしました。次回期限: {format_tokyo_datetime(task.next_due_at)}"
        )


class TaskInventoryModalHandler(_ModalHandler):
    custom_id = INVENTORY_MODAL_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        items = parse_inventory_input(context.text("inventory-items"))
        task = await self.service.update_inventory(
            channel_id=context.channel_id,
            message_id=_require_message_id(context),
            items=items,
            now=context.now,
            user_id=context.user_id,
        )
        return HandlerResult(message=f"「{task.title}」の在庫を更新しました。")


class TaskDeleteModalHandler(_ModalHandler):
    custom_id = DELETE_MODAL_ID

    async def execute(self, context: InteractionContext) -> HandlerResult:
        if context.text("confirm") != DELETE_CONFIRM_WORD:
            raise ValidationError(f"削除する場合は「{DELETE_CONFIRM_WORD}」と入力してください")

        task = await self.service.delete_task(
            context.channel_id, _require_message_id(context), user_id=context.user_id
        )
        return HandlerResult(message=f"「{task.title}」を削除しました。")
