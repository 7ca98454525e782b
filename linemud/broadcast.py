"""Module provides class Broadcaster, delivery scopes over a registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:  # pragma: no cover
    from .registry import SessionRegistry
    from .session import Session
    from .world import RoomId

__all__ = ("Broadcaster",)

logger = logging.getLogger("linemud.broadcast")


class Broadcaster:
    """
    Deliver pre-rendered text to a scope of sessions.

    Delivery is best-effort per recipient: a recipient that fails to accept
    the message is aborted, so that its own session loop reads end-of-stream
    and tears itself down, while the remaining recipients still receive it.
    """

    def __init__(self, registry: "SessionRegistry") -> None:
        self.registry = registry

    async def notify_all(self, except_id: int | None, text: str) -> None:
        """Send *text* to every session but *except_id*."""
        await self.registry.for_each_except(except_id, self._deliver(text))

    async def notify_room(self, except_id: int | None, room_id: "RoomId", text: str) -> None:
        """Send *text* to every session in *room_id* but *except_id*."""
        await self.registry.for_each_in_room_except(except_id, room_id, self._deliver(text))

    async def relocate(
        self, session: "Session", room_id: "RoomId", leave_text: str, arrive_text: str
    ) -> None:
        """Move *session* to *room_id*, announcing it to both rooms."""
        await self.registry.relocate(
            session, room_id, self._deliver(leave_text), self._deliver(arrive_text)
        )

    @staticmethod
    def _deliver(text: str) -> Callable[["Session"], None]:
        def deliver(recipient: "Session") -> None:
            try:
                recipient.send(text)
            except ConnectionError as err:
                logger.warning("delivery to %r failed: %s", recipient, err)
                recipient.abort()

        return deliver
