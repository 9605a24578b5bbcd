"""Notification port — abstract interface for pushing alerts to users.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from pawlog.data.models import Subject


class NotificationPort(Protocol):
    """Abstract notification interface used by the overdue alert job."""

    async def send_message(
        self,
        user_id: int,
        text: str,
        subjects: Sequence[Subject] = (),
    ) -> None:
        """Send `text` to one user.

        `subjects` are the dogs the message is about; providers that support
        it offer a shortcut to each dog's schedule.
        """
        ...
