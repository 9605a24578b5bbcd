"""
PawLog — Periodic Jobs.

Overdue alerts: every minute, compute overdue slots for every dog and push
the messages nobody has been told about yet today.

Midnight reset: at 00:00 local time, forget today's alerts and reload the
board so it rolls over to the new day's (freshly seeded) records.

This module is provider-agnostic: it depends on the NotificationPort
protocol, not on Telegram.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from pawlog.core.board import DailyBoard
    from pawlog.data.models import Subject
    from pawlog.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


async def send_overdue_alerts(
    board: DailyBoard,
    notifier: NotificationPort,
    user_ids: Iterable[int],
    now: datetime,
    sent: set[str],
) -> list[str]:
    """Push new overdue messages to every user; return the messages sent.

    `sent` is the per-day memo of messages already delivered. A message is
    added to it once it has been attempted for every user.
    """
    fresh: list[str] = []
    subjects: list[Subject] = []
    for subject in board.subjects:
        for message in board.overdue(subject, now):
            if message not in sent and message not in fresh:
                fresh.append(message)
                if subject not in subjects:
                    subjects.append(subject)

    if not fresh:
        return []

    text = "\n".join(f"⏰ {m}" for m in fresh)
    for user_id in user_ids:
        try:
            await notifier.send_message(user_id, text, subjects=subjects)
            logger.info("Overdue alert sent to user %d (%d items)", user_id, len(fresh))
        except Exception as exc:
            logger.error("Failed to send overdue alert to %d: %s", user_id, exc)

    sent.update(fresh)
    return fresh


async def midnight_reset(
    board: DailyBoard,
    sent: set[str],
    today: date | None = None,
) -> None:
    """Roll the board over to a new day."""
    sent.clear()
    results = await board.load_all(today)
    for result in results:
        for error in result.errors:
            logger.warning(
                "Midnight reset for %s: %s", result.subject.display_name, error,
            )
    logger.info("Midnight reset complete for %d dogs", len(results))
