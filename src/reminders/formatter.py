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
Remind Task Formatter

Pure text rendering of a task's status. Nothing here mutates the task or
reads the clock; callers pass ``now`` explicitly.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import discord

from .inventory import format_inventory_detail, format_inventory_summary
from .models import RemindTask
from .time_utils import ensure_aware, format_remaining_duration, format_tokyo_datetime

EMBED_COLOR = 0xFFA726
PROGRESS_BAR_LENGTH = 40
FILLED_CHAR = "█"
EMPTY_CHAR = "░"

# Countdown in days is shown only below this horizon
REMAINING_DAYS_HORIZON = 30


@dataclass
class SummaryText:
    """Status block shown on the task message."""

    progress_bar: str
    details_text: str


class RemindTaskFormatter:
    """Builds the text shown on task messages and detail replies."""

    @staticmethod
    def progress_ratio(task: RemindTask, now: datetime) -> float:
        """Elapsed fraction of the current interval, clamped to [0, 1]."""
        interval = timedelta(days=task.interval_days)
        previous_due = task.next_due_at - interval
        elapsed = (ensure_aware(now) - previous_due).total_seconds()
        return min(1.0, max(0.0, elapsed / interval.total_seconds()))

    @classmethod
    def build_progress_bar(cls, task: RemindTask, now: datetime) -> str:
        filled = round(cls.progress_ratio(task, now) * PROGRESS_BAR_LENGTH)
        return FILLED_CHAR * filled + EMPTY_CHAR * (PROGRESS_BAR_LENGTH - filled)

    @staticmethod
    def _remaining_days(task: RemindTask, now: datetime) -> Optional[int]:
        remaining = (task.next_due_at - ensure_aware(now)).total_seconds()
        days = math.ceil(remaining / 86400)
        if days < 0 or days >= REMAINING_DAYS_HORIZON:
            return None
        return days

    @staticmethod
    def _remaining_hours_minutes(remaining_seconds: float) -> str:
        total_minutes = max(0, math.ceil(remaining_seconds / 60))
        hours, minutes = divmod(total_minutes, 60)
        if hours == 0:
            return f"{minutes}分"
        return f"{hours}時間{minutes}分"

    @classmethod
    def format_summary_text(cls, task: RemindTask, now: datetime) -> SummaryText:
        """
        Build the progress bar and one-line status for a task message.

        Args:
            task: Task to render
            now: Reference time

        Returns:
            SummaryText with the bar and the status/inventory lines
        """
        now = ensure_aware(now)
        remaining_seconds = (task.next_due_at - now).total_seconds()

        if now >= task.next_due_at:
            detail = "**期限切れ**"
        elif remaining_seconds < 86400:
            detail = f"-# 残り: {cls._remaining_hours_minutes(remaining_seconds)}"
        else:
            days = cls._remaining_days(task, now)
            if days is not None:
                detail = f"-# 残り: {days}日"
            else:
                detail = f"-# 期限: {format_tokyo_datetime(task.next_due_at)}"

        if task.is_paused:
            detail = f"{detail}\n-# 一時停止中"

        inventory_summary = format_inventory_summary(task.inventory_items)
        if inventory_summary:
            detail = f"{detail}\n-# {inventory_summary}"

        return SummaryText(progress_bar=cls.build_progress_bar(task, now), details_text=detail)

    @staticmethod
    def format_detail_text(task: RemindTask) -> str:
        """Multi-line schedule block for the detail reply."""
        if task.remind_before_minutes > 0:
            remind_before = f"{format_remaining_duration(task.remind_before_minutes)}前"
        else:
            remind_before = "なし"

        lines = [
            f"タスク: {task.title}",
            f"期限: {format_tokyo_datetime(task.next_due_at)}",
            f"周期: {task.interval_days}日",
            f"時刻: {task.time_of_day}",
            f"事前通知: {remind_before}",
        ]
        inventory_detail = format_inventory_detail(task.inventory_items)
        if inventory_detail:
            lines.append(inventory_detail)
        return "\n".join(lines)

    @classmethod
    def build_task_embed(cls, task: RemindTask, now: datetime) -> discord.Embed:
        """Embed used for the task's channel message."""
        summary = cls.format_summary_text(task, now)
        description = f"```\n{summary.progress_bar}\n```\n{summary.details_text}"
        return discord.Embed(
            title=task.title,
            description=description,
            color=EMBED_COLOR,
        )

    @classmethod
    def build_detail_embed(cls, task: RemindTask, now: datetime) -> discord.Embed:
        summary = cls.format_summary_text(task, now)
        description = "\n".join(
            [
                f"```\n{summary.progress_bar}\n```",
                cls.format_detail_text(task),
                f"説明: {task.description or '（なし）'}",
            ]
        )
        return discord.Embed(title=task.title, description=description, color=EMBED_COLOR)
