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
Interaction Registry

Routes component and modal interactions to handlers by custom ID. A custom
ID is either a bare prefix (``remind-task-add``) or a prefix followed by the
target message ID (``remind-task-update-modal:1234``).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

import discord
import pytz

from reminders.errors import RemindError

logger = logging.getLogger("remindboard.interactions.registry")

GENERIC_ERROR_MESSAGE = "処理中にエラーが発生しました。時間をおいて再度お試しください。"


def _collect_modal_fields(components: list[dict[str, Any]]) -> dict[str, str]:
    """Flatten the action rows of a modal submit into ``{custom_id: value}``."""
    fields: dict[str, str] = {}
    for row in components:
        for component in row.get("components", []):
            custom_id = component.get("custom_id")
            if custom_id is not None:
                fields[custom_id] = component.get("value") or ""
        # Label-wrapped inputs carry a single "component"
        inner = row.get("component")
        if inner and inner.get("custom_id") is not None:
            fields[inner["custom_id"]] = inner.get("value") or ""
    return fields


@dataclass
class InteractionContext:
    """Everything a handler needs, extracted from a raw interaction."""

    interaction: discord.Interaction
    custom_id: str
    channel_id: str
    user_id: int
    now: datetime
    source_message_id: Optional[str] = None
    values: list[str] = field(default_factory=list)
    fields: dict[str, str] = field(default_factory=dict)

    @property
    def custom_id_suffix(self) -> Optional[str]:
        _, _, suffix = self.custom_id.partition(":")
        return suffix or None

    @property
    def target_message_id(self) -> Optional[str]:
        """Message ID encoded after ``:`` in the custom ID, else the source message."""
        return self.custom_id_suffix or self.source_message_id

    def text(self, name: str) -> str:
        return self.fields.get(name, "").strip()

    @classmethod
    def from_interaction(
        cls, interaction: discord.Interaction, now: Optional[datetime] = None
    ) -> Optional["InteractionContext"]:
        data = interaction.data or {}
        custom_id = data.get("custom_id")
        if not custom_id or interaction.channel_id is None:
            return None

        message = interaction.message
        return cls(
            interaction=interaction,
            custom_id=custom_id,
            channel_id=str(interaction.channel_id),
            user_id=interaction.user.id,
            now=now or datetime.now(pytz.UTC),
            source_message_id=str(message.id) if message is not None else None,
            values=list(data.get("values", [])),
            fields=_collect_modal_fields(data.get("components", [])),
        )


@dataclass
class HandlerResult:
    """Outcome of a handler; ``message``/``embed`` are sent as an ephemeral reply."""

    success: bool = True
    message: Optional[str] = None
    embed: Optional[discord.Embed] = None


def matches_custom_id(custom_id: str, prefix: str) -> bool:
    """True for ``prefix`` itself or ``prefix:<suffix>``."""
    return custom_id == prefix or custom_id.startswith(f"{prefix}:")


class InteractionHandler(Protocol):
    """
    What the registry needs from a button, select menu or modal handler.

    Handlers with ``defer = True`` are acknowledged before ``execute`` runs.
    """

    defer: bool

    def should_handle(self, context: InteractionContext) -> bool: ...

    async def execute(self, context: InteractionContext) -> HandlerResult: ...


class InteractionRegistry:
    """Ordered list of handlers; the first that accepts a context wins."""

    def __init__(self):
        self._handlers: list[InteractionHandler] = []

    def register(self, handler: InteractionHandler) -> None:
        self._handlers.append(handler)

    def register_all(self, handlers: list[InteractionHandler]) -> None:
        for handler in handlers:
            self.register(handler)

    def find(self, context: InteractionContext) -> Optional[InteractionHandler]:
        for handler in self._handlers:
            if handler.should_handle(context):
                return handler
        return None

    async def dispatch(
        self, interaction: discord.Interaction, now: Optional[datetime] = None
    ) -> Optional[HandlerResult]:
        """
        Run the matching handler and send its reply.

        Returns:
            The handler result, or None if no handler matched
        """
        if interaction.type not in (
            discord.InteractionType.component,
            discord.InteractionType.modal_submit,
        ):
            return None

        context = InteractionContext.from_interaction(interaction, now)
        if context is None:
            return None

        handler = self.find(context)
        if handler is None:
            logger.debug(f"No handler for custom_id {context.custom_id}")
            return None

        try:
            if handler.defer and not interaction.response.is_done():
                await interaction.response.defer(ephemeral=True, thinking=True)
            result = await handler.execute(context)
        except RemindError as e:
            logger.info(f"{type(handler).__name__} rejected {context.custom_id}: {e}")
            result = HandlerResult(success=False, message=e.user_message)
        except Exception as e:
            logger.error(
                f"{type(handler).__name__} failed for {context.custom_id} "
                f"in channel {context.channel_id}: {e}",
                exc_info=True,
            )
            result = HandlerResult(success=False, message=GENERIC_ERROR_MESSAGE)

        await self._reply(interaction, result)
        return result

    @staticmethod
    async def _reply(interaction: discord.Interaction, result: HandlerResult) -> None:
        if result.message is None and result.embed is None:
            return

        kwargs: dict[str, Any] = {"ephemeral": True}
        if result.message is not None:
            kwargs["content"] = result.message
        if result.embed is not None:
            kwargs["embed"] = result.embed

        try:
            if interaction.response.is_done():
                await interaction.followup.send(**kwargs)
            else:
                await interaction.response.send_message(**kwargs)
        except discord.HTTPException as e:
            logger.warning(f"Failed to reply to interaction {interaction.id}: {e}")
