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
Discord UI Forms for Remind Tasks

Modals and the update menu. Submissions are not handled here; they arrive
through the interaction registry keyed by each form's custom ID.
"""

from typing import Optional

import discord

from reminders.inventory import format_inventory_input
from reminders.models import RemindTask
from reminders.time_utils import format_override_input, format_remind_before_input

ADD_MODAL_ID = "remind-task-add-modal"
UPDATE_MODAL_ID = "remind-task-update-modal"
OVERRIDE_MODAL_ID = "remind-task-update-override-modal"
INVENTORY_MODAL_ID = "remind-task-inventory-modal"
DELETE_MODAL_ID = "remind-task-delete-modal"
UPDATE_SELECT_ID = "remind-task-update-select"

UPDATE_OPTION_BASIC = "basic"
UPDATE_OPTION_OVERRIDE = "override"
UPDATE_OPTION_INVENTORY = "inventory"
UPDATE_OPTION_PAUSE = "pause"

DELETE_CONFIRM_WORD = "削除"

MODAL_TIMEOUT = 600.0

REMIND_BEFORE_LABEL = "事前通知（日:時:分 もしくは 時:分）"
OVERRIDE_DATE_HINT = "（YYYY/MM/DD もしくは YYYY/MM/DD HH:MM）"


def _schedule_inputs(task: Optional[RemindTask]) -> list[discord.ui.TextInput]:
    """Inputs shared by the add and update forms, pre-filled from ``task``."""
    return [
        discord.ui.TextInput(
            label="タスク名",
            custom_id="title",
            max_length=100,
            required=True,
            default=task.title if task else None,
        ),
        discord.ui.TextInput(
            label="説明（任意）",
            custom_id="description",
            style=discord.TextStyle.paragraph,
            max_length=500,
            required=False,
            default=(task.description or "") if task else None,
        ),
        discord.ui.TextInput(
            label="周期（日）",
            custom_id="interval-days",
            max_length=4,
            required=True,
            default=str(task.interval_days) if task else None,
        ),
        discord.ui.TextInput(
            label="期限時刻（時:分）",
            custom_id="time-of-day",
            placeholder="00:00",
            max_length=5,
            required=task is not None,
            default=task.time_of_day if task else None,
        ),
        discord.ui.TextInput(
            label=REMIND_BEFORE_LABEL,
            custom_id="remind-before",
            placeholder="1:00:00",
            max_length=8,
            required=False,
            default=format_remind_before_input(task.remind_before_minutes) if task else None,
        ),
    ]


class TaskAddModal(discord.ui.Modal):
    """Form for creating a task."""

    def __init__(self):
        super().__init__(title="リマインド追加", custom_id=ADD_MODAL_ID, timeout=MODAL_TIMEOUT)
        for item in _schedule_inputs(None):
            self.add_item(item)


class TaskUpdateModal(discord.ui.Modal):
    """Form for editing a task's name and schedule."""

    def __init__(self, task: RemindTask, message_id: str):
        super().__init__(
            title="リマインド編集",
            custom_id=f"{UPDATE_MODAL_ID}:{message_id}",
            timeout=MODAL_TIMEOUT,
        )
        for item in _schedule_inputs(task):
            self.add_item(item)


class TaskOverrideModal(discord.ui.Modal):
    """Form for overwriting due dates and the overdue notice limit."""

    def __init__(self, task: RemindTask, message_id: str):
        super().__init__(
            title="期限上書き",
            custom_id=f"{OVERRIDE_MODAL_ID}:{message_id}",
            timeout=MODAL_TIMEOUT,
        )
        self.add_item(
            discord.ui.TextInput(
                label=f"前回完了日{OVERRIDE_DATE_HINT}",
                custom_id="last-done-at",
                max_length=16,
                required=False,
                default=format_override_input(task.last_done_at) if task.last_done_at else None,
            )
        )
        self.add_item(
            discord.ui.TextInput(
                label=f"次回期限{OVERRIDE_DATE_HINT}",
                custom_id="next-due-at",
                max_length=16,
                required=False,
                default=format_override_input(task.next_due_at),
            )
        )
        self.add_item(
            discord.ui.TextInput(
                label="期限超過通知の上限回数",
                custom_id="overdue-notify-limit",
                max_length=3,
                required=False,
                default=(
                    str(task.overdue_notify_limit)
                    if task.overdue_notify_limit is not None
                    else None
                ),
            )
        )


class TaskInventoryModal(discord.ui.Modal):
    """Form for replacing the inventory list."""

    def __init__(self, task: RemindTask, message_id: str):
        super().__init__(
            title="在庫編集",
            custom_id=f"{INVENTORY_MODAL_ID}:{message_id}",
            timeout=MODAL_TIMEOUT,
        )
        self.add_item(
            discord.ui.TextInput(
                label="在庫（1行1件: 名前,在庫N,消費M）",
                custom_id="inventory-items",
                style=discord.TextStyle.paragraph,
                placeholder="牛乳,在庫2,消費1",
                max_length=1000,
                required=False,
                default=format_inventory_input(task.inventory_items) or None,
            )
        )


class TaskDeleteModal(discord.ui.Modal):
    """Confirmation form; the user must type the confirm word."""

    def __init__(self, message_id: str):
        super().__init__(
            title="リマインド削除",
            custom_id=f"{DELETE_MODAL_ID}:{message_id}",
            timeout=MODAL_TIMEOUT,
        )
        self.add_item(
            discord.ui.TextInput(
                label=f"削除する場合は「{DELETE_CONFIRM_WORD}」と入力",
                custom_id="confirm",
                max_length=10,
                required=True,
            )
        )


class UpdateSelectView(discord.ui.View):
    """Ephemeral menu shown after pressing the update button."""

    def __init__(self, task: RemindTask, message_id: str, timeout: float = 300.0):
        super().__init__(timeout=timeout)
        pause_label = "再開" if task.is_paused else "一時停止"
        self.add_item(
            discord.ui.Select(
                custom_id=f"{UPDATE_SELECT_ID}:{message_id}",
                placeholder="更新する項目を選択",
                options=[
                    discord.SelectOption(label="基本編集", value=UPDATE_OPTION_BASIC),
                    discord.SelectOption(label="期限上書き", value=UPDATE_OPTION_OVERRIDE),
                    discord.SelectOption(label="在庫編集", value=UPDATE_OPTION_INVENTORY),
                    discord.SelectOption(label=pause_label, value=UPDATE_OPTION_PAUSE),
                ],
            )
        )
