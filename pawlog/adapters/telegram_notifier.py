"""Telegram notification adapter — implements NotificationPort.

Overdue alerts go out as plain chat messages with one inline button per dog,
reusing the bot's `dog:<id>` callback to open that dog's schedule.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup

if TYPE_CHECKING:
    from pawlog.data.models import Subject

logger = logging.getLogger(__name__)


def alert_keyboard(subjects: Sequence[Subject]) -> InlineKeyboardMarkup | None:
    if not subjects:
        return None
    return InlineKeyboardMarkup([[
        InlineKeyboardButton(f"🐶 Open {s.display_name}", callback_data=f"dog:{s.id}")
        for s in subjects
    ]])


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(
        self,
        user_id: int,
        text: str,
        subjects: Sequence[Subject] = (),
    ) -> None:
        await self._bot.send_message(
            chat_id=user_id,
            text=text,
            reply_markup=alert_keyboard(subjects),
        )
        logger.debug("Alert sent to %d for %d dogs", user_id, len(subjects))
