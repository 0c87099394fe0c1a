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
Time Utilities Module

Date arithmetic for remind tasks and parsing of the duration strings users
type into the Discord forms. All civil time is Tokyo time (UTC+9); stored
timestamps are timezone-aware datetimes.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from .errors import FormatError, ValidationError

logger = logging.getLogger("remindboard.reminders.time_utils")

TOKYO_TZ = pytz.timezone("Asia/Tokyo")

MINUTES_PER_DAY = 24 * 60
MAX_REMIND_BEFORE_MINUTES = 7 * MINUTES_PER_DAY

REMIND_BEFORE_FORMAT_MESSAGE = "事前通知は日:時:分または時:分形式で指定してください"
REMIND_BEFORE_RANGE_MESSAGE = "事前通知は0日00時間00分〜7日00時間00分の範囲で指定してください"

_TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{1,2})$")
_OVERRIDE_DATE_PATTERN = re.compile(
    r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})(?:\s+(\d{1,2}):(\d{1,2}))?$"
)


# =========================================================================
# Tokyo civil time
# =========================================================================


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value


def to_tokyo(value: datetime) -> datetime:
    """Convert a timestamp to Tokyo local time."""
    return ensure_aware(value).astimezone(TOKYO_TZ)


def build_tokyo_datetime(day: date, hours: int, minutes: int) -> datetime:
    """Build an aware UTC timestamp from a Tokyo calendar day and time."""
    local = TOKYO_TZ.localize(datetime(day.year, day.month, day.day, hours, minutes))
    return local.astimezone(pytz.UTC)


def is_same_tokyo_date(a: datetime, b: datetime) -> bool:
    return to_tokyo(a).date() == to_tokyo(b).date()


def minutes_since_tokyo_midnight(value: datetime) -> int:
    local = to_tokyo(value)
    return local.hour * 60 + local.minute


def format_tokyo_datetime(value: datetime) -> str:
    """Format as ``2026/1/5 09:00`` for message text."""
    local = to_tokyo(value)
    return f"{local.year}/{local.month}/{local.day} {local.hour:02d}:{local.minute:02d}"


def format_override_input(value: datetime) -> str:
    """Format as ``2026/01/05 09:00`` for pre-filling the override form."""
    return to_tokyo(value).strftime("%Y/%m/%d %H:%M")


# =========================================================================
# Time of day and due dates
# =========================================================================


def normalize_time_of_day(time_of_day: str) -> str:
    """
    Normalize ``H:M`` input to ``HH:MM``.

    Raises:
        ValidationError: If the value is not a valid 24h clock time
    """
    match = _TIME_OF_DAY_PATTERN.match(time_of_day.strip())
    if not match:
        raise ValidationError("時刻は時:分形式で指定してください")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError("時刻は00:00〜23:59の範囲で指定してください")

    return f"{hours:02d}:{minutes:02d}"


def parse_time_of_day(time_of_day: str) -> tuple[int, int]:
    hours, minutes = normalize_time_of_day(time_of_day).split(":")
    return int(hours), int(minutes)


def roll_forward(due_at: datetime, interval_days: int, now: datetime) -> datetime:
    """Advance ``due_at`` by whole intervals until it is strictly after ``now``."""
    if interval_days < 1:
        raise ValidationError("周期は1以上を指定してください")

    step = timedelta(days=interval_days)
    while due_at <= now:
        due_at = due_at + step
    return due_at


def calculate_start_at(created_at: datetime, time_of_day: str, interval_days: int) -> datetime:
    """
    Calculate the first due moment of a new task.

    The interval grid is anchored at ``time_of_day`` on the creation day
    (Tokyo time); the first grid point strictly after ``created_at`` is
    returned.
    """
    hours, minutes = parse_time_of_day(time_of_day)
    anchor = build_tokyo_datetime(to_tokyo(created_at).date(), hours, minutes)
    return roll_forward(anchor, interval_days, ensure_aware(created_at))


def calculate_next_due_at(
    interval_days: int,
    time_of_day: str,
    start_at: datetime,
    now: datetime,
    last_done_at: Optional[datetime] = None,
) -> datetime:
    """
    Calculate the next due moment after a schedule change.

    Without a completion the grid anchored at ``start_at`` is used. After a
    completion the next due is one interval after the completion day at
    ``time_of_day``. Either way the result is rolled forward past ``now``.
    """
    hours, minutes = parse_time_of_day(time_of_day)
    if last_done_at is not None:
        base = build_tokyo_datetime(to_tokyo(last_done_at).date(), hours, minutes)
        first = base + timedelta(days=interval_days)
    else:
        first = start_at
    return roll_forward(first, interval_days, ensure_aware(now))


def advance_after_completion(next_due_at: datetime, interval_days: int, now: datetime) -> datetime:
    """
    Advance the due date for a manual completion.

    Always moves at least one interval, then keeps advancing until the
    result is strictly after ``now`` so the grid stays aligned.
    """
    first = next_due_at + timedelta(days=interval_days)
    return roll_forward(first, interval_days, ensure_aware(now))


# =========================================================================
# Remind-before durations
# =========================================================================


def _split_minutes(total_minutes: int) -> tuple[int, int, int]:
    safe = max(0, total_minutes)
    days, remainder = divmod(safe, MINUTES_PER_DAY)
    hours, minutes = divmod(remainder, 60)
    return days, hours, minutes


def parse_remind_before(text: str) -> int:
    """
    Parse a remind-before offset into total minutes.

    Accepts ``D:HH:MM`` or ``HH:MM``. An empty string means no pre-reminder.

    Args:
        text: User input from the form

    Returns:
        Offset in minutes (0 to 10080)

    Raises:
        FormatError: On wrong segment count, non-numeric or negative
            segments, or an out-of-range total
    """
    normalized = text.strip()
    if normalized == "":
        return 0

    parts = [part.strip() for part in normalized.split(":")]
    if len(parts) not in (2, 3):
        raise FormatError(REMIND_BEFORE_FORMAT_MESSAGE)
    if not all(part.isdigit() for part in parts):
        raise FormatError(REMIND_BEFORE_FORMAT_MESSAGE)

    numbers = [int(part) for part in parts]
    if len(numbers) == 2:
        days = 0
        hours, minutes = numbers
    else:
        days, hours, minutes = numbers
        if hours >= 24:
            raise FormatError(REMIND_BEFORE_FORMAT_MESSAGE)

    if minutes >= 60:
        raise FormatError(REMIND_BEFORE_FORMAT_MESSAGE)

    total = (days * 24 + hours) * 60 + minutes
    if total > MAX_REMIND_BEFORE_MINUTES:
        raise FormatError(REMIND_BEFORE_RANGE_MESSAGE)

    return total


def format_remind_before_input(total_minutes: int) -> str:
    """Render minutes back into the form's ``D:HH:MM`` / ``HH:MM`` shape."""
    days, hours, minutes = _split_minutes(total_minutes)
    if days > 0:
        return f"{days}:{hours:02d}:{minutes:02d}"
    return f"{hours:02d}:{minutes:02d}"


def format_remaining_duration(total_minutes: int) -> str:
    """Render minutes as ``1日``, ``2時間30分``, ``0分``."""
    days, hours, minutes = _split_minutes(total_minutes)
    parts = []
    if days > 0:
        parts.append(f"{days}日")
    if hours > 0:
        parts.append(f"{hours}時間")
    if minutes > 0 or not parts:
        parts.append(f"{minutes}分")
    return "".join(parts)


# =========================================================================
# Override dates
# =========================================================================


def parse_override_date(text: str, fallback_time_of_day: str, label: str) -> Optional[datetime]:
    """
    Parse ``YYYY/MM/DD`` or ``YYYY/MM/DD HH:MM`` as Tokyo time.

    Args:
        text: User input; blank means "keep the current value"
        fallback_time_of_day: Time used when the input has no time part
        label: Field name used in error messages

    Returns:
        Aware UTC timestamp, or None for blank input

    Raises:
        FormatError: If the input is not a real calendar date/time
    """
    trimmed = text.strip()
    if trimmed == "":
        return None

    match = _OVERRIDE_DATE_PATTERN.match(trimmed)
    if not match:
        raise FormatError(f"{label}の形式が無効です")

    year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
    if match.group(4) is not None:
        time_text = f"{match.group(4)}:{match.group(5)}"
    else:
        time_text = fallback_time_of_day

    try:
        hours, minutes = parse_time_of_day(time_text)
        calendar_day = date(year, month, day)
    except (ValueError, ValidationError):
        raise FormatError(f"{label}が無効です")

    return build_tokyo_datetime(calendar_day, hours, minutes)
