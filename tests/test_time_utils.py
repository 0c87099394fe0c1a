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

"""Tests for reminder date arithmetic and duration parsing."""

import sys
from datetime import datetime
from pathlib import Path

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.errors import FormatError, ValidationError
from reminders.time_utils import (
    TOKYO_TZ,
    advance_after_completion,
    calculate_next_due_at,
    calculate_start_at,
    format_override_input,
    format_remaining_duration,
    format_remind_before_input,
    format_tokyo_datetime,
    is_same_tokyo_date,
    minutes_since_tokyo_midnight,
    normalize_time_of_day,
    parse_override_date,
    parse_remind_before,
)


def jst(*args) -> datetime:
    return TOKYO_TZ.localize(datetime(*args))


class TestParseRemindBefore:
    """Test remind-before offset parsing."""

    def test_empty_means_no_reminder(self):
        assert parse_remind_before("") == 0
        assert parse_remind_before("   ") == 0

    def test_day_hour_minute(self):
        assert parse_remind_before("1:00:00") == 1440
        assert parse_remind_before("2:03:04") == 2 * 1440 + 3 * 60 + 4

    def test_hour_minute(self):
        assert parse_remind_before("02:30") == 150
        assert parse_remind_before("0:05") == 5

    def test_hour_minute_allows_more_than_a_day(self):
        assert parse_remind_before("48:00") == 2880

    def test_maximum(self):
        assert parse_remind_before("7:00:00") == 10080

    @pytest.mark.parametrize(
        "text",
        ["7:00:01", "168:01", "1:24:00", "00:60", "abc", "1:2:3:4", "-1:00", "1", "1::00"],
    )
    def test_invalid(self, text):
        with pytest.raises(FormatError):
            parse_remind_before(text)


class TestFormatRemindBefore:
    """Test rendering offsets back into form input."""

    def test_with_days(self):
        assert format_remind_before_input(1440) == "1:00:00"
        assert format_remind_before_input(1505) == "1:01:05"

    def test_without_days(self):
        assert format_remind_before_input(150) == "02:30"
        assert format_remind_before_input(0) == "00:00"

    @pytest.mark.parametrize("minutes", [0, 59, 60, 1439, 1440, 4321, 10080])
    def test_parse_accepts_formatted_value(self, minutes):
        assert parse_remind_before(format_remind_before_input(minutes)) == minutes


class TestFormatRemainingDuration:
    def test_units(self):
        assert format_remaining_duration(1440) == "1日"
        assert format_remaining_duration(60) == "1時間"
        assert format_remaining_duration(90) == "1時間30分"
        assert format_remaining_duration(1500) == "1日1時間"

    def test_zero(self):
        assert format_remaining_duration(0) == "0分"


class TestTimeOfDay:
    def test_normalizes_short_input(self):
        assert normalize_time_of_day("9:5") == "09:05"
        assert normalize_time_of_day(" 23:59 ") == "23:59"

    @pytest.mark.parametrize("text", ["24:00", "12:60", "noon", "12", ""])
    def test_invalid(self, text):
        with pytest.raises(ValidationError):
            normalize_time_of_day(text)


class TestDueDates:
    """Test start and next-due calculation on the interval grid."""

    def test_start_at_rolls_past_creation_moment(self):
        created = jst(2025, 12, 29, 9, 0)
        assert calculate_start_at(created, "09:00", 7) == jst(2026, 1, 5, 9, 0)

    def test_start_at_same_day_when_time_is_later(self):
        created = jst(2025, 12, 29, 8, 0)
        assert calculate_start_at(created, "09:00", 3) == jst(2025, 12, 29, 9, 0)

    def test_start_at_uses_tokyo_calendar_day(self):
        # 2025-12-28 20:00 UTC is already 12-29 in Tokyo
        created = pytz.UTC.localize(datetime(2025, 12, 28, 20, 0))
        assert calculate_start_at(created, "09:00", 1) == jst(2025, 12, 29, 9, 0)

    def test_next_due_without_completion_follows_grid(self):
        start = jst(2025, 12, 29, 10, 0)
        now = jst(2026, 1, 2, 12, 0)
        assert calculate_next_due_at(3, "10:00", start, now) == jst(2026, 1, 4, 10, 0)

    def test_next_due_after_completion(self):
        start = jst(2025, 12, 1, 9, 0)
        done = jst(2026, 1, 3, 18, 0)
        now = jst(2026, 1, 3, 18, 5)
        assert calculate_next_due_at(7, "09:00", start, now, last_done_at=done) == jst(2026, 1, 10, 9, 0)

    def test_advance_after_completion_moves_at_least_one_interval(self):
        due = jst(2026, 1, 5, 9, 0)
        now = jst(2026, 1, 4, 12, 0)
        assert advance_after_completion(due, 7, now) == jst(2026, 1, 12, 9, 0)

    def test_advance_after_completion_skips_missed_cycles(self):
        due = jst(2026, 1, 5, 9, 0)
        now = jst(2026, 1, 20, 10, 0)
        assert advance_after_completion(due, 7, now) == jst(2026, 1, 26, 9, 0)


class TestTokyoHelpers:
    def test_format_tokyo_datetime(self):
        value = pytz.UTC.localize(datetime(2026, 1, 5, 0, 0))
        assert format_tokyo_datetime(value) == "2026/1/5 09:00"

    def test_format_override_input(self):
        assert format_override_input(jst(2026, 1, 5, 9, 0)) == "2026/01/05 09:00"

    def test_minutes_since_midnight(self):
        value = pytz.UTC.localize(datetime(2026, 1, 5, 0, 30))
        assert minutes_since_tokyo_midnight(value) == 9 * 60 + 30

    def test_same_tokyo_date(self):
        assert is_same_tokyo_date(jst(2026, 1, 5, 0, 10), jst(2026, 1, 5, 23, 50))
        assert not is_same_tokyo_date(jst(2026, 1, 5, 23, 50), jst(2026, 1, 6, 0, 10))


class TestParseOverrideDate:
    def test_blank_keeps_current(self):
        assert parse_override_date("  ", "09:00", "次回期限") is None

    def test_date_only_uses_fallback_time(self):
        assert parse_override_date("2026/01/05", "09:00", "次回期限") == jst(2026, 1, 5, 9, 0)

    def test_date_and_time(self):
        assert parse_override_date("2026/1/5 18:30", "09:00", "次回期限") == jst(2026, 1, 5, 18, 30)

    def test_dash_separator(self):
        assert parse_override_date("2026-01-05", "07:15", "次回期限") == jst(2026, 1, 5, 7, 15)

    @pytest.mark.parametrize("text", ["2026/02/30", "2026/13/01", "2026/01/05 25:00", "yesterday"])
    def test_invalid(self, text):
        with pytest.raises(FormatError) as excinfo:
            parse_override_date(text, "09:00", "次回期限")
        assert "次回期限" in excinfo.value.user_message
