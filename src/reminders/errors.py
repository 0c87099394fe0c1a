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
Reminder Errors

Exception types raised by the reminder package. Every error carries a
message that is safe to show to the Discord user who triggered it.
"""


class RemindError(Exception):
    """Base class for reminder errors."""

    default_message = "処理中にエラーが発生しました"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class ValidationError(RemindError):
    """Raised when task creation or update input is invalid."""

    default_message = "入力内容が無効です"


class FormatError(RemindError):
    """Raised when a duration, date or inventory string cannot be parsed."""

    default_message = "入力の形式が無効です"


class NotFoundError(RemindError):
    """Raised when a referenced task or message does not exist."""

    default_message = "タスクが見つかりません"


class TransportError(RemindError):
    """Raised when a Discord send, edit or delete fails."""

    default_message = "メッセージの送信に失敗しました"


class PersistenceError(RemindError):
    """Raised when the task store cannot be read or written."""

    default_message = "データの保存に失敗しました"


class StaleTaskError(RemindError):
    """Raised when a task row changed after it was read."""

    default_message = "タスクが他の操作で更新されました。もう一度お試しください"
