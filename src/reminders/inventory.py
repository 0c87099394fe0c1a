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
Inventory Module

Parsing and formatting of the consumables attached to a remind task.
Input is one item per line (or ``;`` separated): ``牛乳,在庫2,消費1``.
"""

import re
from typing import Optional

from .errors import FormatError
from .models import InventoryItem

_LINE_SPLIT = re.compile(r"\r?\n|;")


def _parse_number(token: str, label: str) -> Optional[int]:
    match = re.match(rf"^{label}\s*[:=]?\s*(\d+)$", token)
    if not match:
        return None
    return int(match.group(1))


def parse_inventory_input(text: str) -> list[InventoryItem]:
    """
    Parse the inventory form field.

    Raises:
        FormatError: On malformed lines, missing numbers or duplicate names
    """
    if not text:
        return []

    lines = [line.strip() for line in _LINE_SPLIT.split(text)]
    lines = [line for line in lines if line]

    items = []
    seen = set()
    for line in lines:
        tokens = [part.strip() for part in line.split(",") if part.strip()]
        if len(tokens) < 2:
            raise FormatError("在庫の形式が不正です")

        name = tokens[0]
        stock = None
        consume = None
        for token in tokens[1:]:
            if stock is None:
                stock = _parse_number(token, "在庫")
                if stock is not None:
                    continue
            if consume is None:
                consume = _parse_number(token, "消費")

        if stock is None:
            raise FormatError("在庫が不足しています")
        if consume is None:
            raise FormatError("消費が不足しています")
        if consume < 1:
            raise FormatError("消費は1以上の整数で入力してください")
        if name in seen:
            raise FormatError("アイテム名が重複しています")

        seen.add(name)
        items.append(InventoryItem(name=name, stock=stock, consume=consume))

    return items


def format_inventory_input(items: list[InventoryItem]) -> str:
    """Inverse of ``parse_inventory_input``, used to pre-fill the form."""
    return "\n".join(f"{item.name},在庫{item.stock},消費{item.consume}" for item in items)


def get_insufficient_items(items: list[InventoryItem]) -> list[InventoryItem]:
    return [item for item in items if item.stock < item.consume]


def format_shortage_message(item: InventoryItem) -> str:
    return f"{item.name}の在庫が{item.consume - item.stock}個不足しています。"


def format_inventory_summary(items: list[InventoryItem], max_items: int = 3) -> Optional[str]:
    if not items:
        return None
    display = ", ".join(f"{item.name} {item.stock}" for item in items[:max_items])
    suffix = "..." if len(items) > max_items else ""
    return f"在庫: {display}{suffix}"


def format_inventory_detail(items: list[InventoryItem], max_items: int = 5) -> Optional[str]:
    if not items:
        return None
    display = ", ".join(
        f"{item.name} 在庫{item.stock}/消費{item.consume}" for item in items[:max_items]
    )
    suffix = "..." if len(items) > max_items else ""
    return f"在庫: {display}{suffix}"
