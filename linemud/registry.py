"""Module provides class SessionRegistry."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .session import Session
    from .world import RoomId

__all__ = ("SessionRegistry", "RegistryError")

logger = logging.getLogger("linemud.registry")


class RegistryError(KeyError):
    """Session identifier is already registered."""


class SessionRegistry:
    """
    The set of connected sessions, keyed by session identifier.

    Every method touching membership or room affiliation holds the same
    :class:`asyncio.Lock`, so at most one of them is in progress at a time.
    Iteration is performed over a snapshot taken while the lock is held;
    callbacks given to the ``for_each`` methods must not call back into the
    registry.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, "Session"] = {}
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        return f"<SessionRegistry sessions={len(self._sessions)}>"

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: int) -> Optional["Session"]:
        return self._sessions.get(session_id)

    def next_id(self) -> int:
        """Allocate a session identifier, never reused for this registry."""
        return next(self._ids)

    async def register(self, session: "Session") -> None:
        """
        Add *session*.

        :raises RegistryError: when its identifier is already registered.
        """
        async with self._lock:
            if session.id in self._sessions:
                raise RegistryError(session.id)
            self._sessions[session.id] = session
            logger.debug("register %r (%d registered)", session, len(self._sessions))

    async def unregister(self, session_id: int) -> Optional["Session"]:
        """Remove and return session by identifier, ``None`` if absent."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None:
                logger.debug(
                    "unregister %r (%d registered)", session, len(self._sessions)
                )
            return session

    async def for_each_except(
        self, exclude_id: int | None, fn: Callable[["Session"], None]
    ) -> None:
        """Apply *fn* to every session other than *exclude_id*."""
        async with self._lock:
            for session in self._select(exclude_id):
                fn(session)

    async def for_each_in_room_except(
        self, exclude_id: int | None, room_id: "RoomId", fn: Callable[["Session"], None]
    ) -> None:
        """Apply *fn* to every session in *room_id* other than *exclude_id*."""
        async with self._lock:
            for session in self._select(exclude_id, room_id):
                fn(session)

    async def occupants(
        self, room_id: "RoomId", exclude_id: int | None = None
    ) -> list["Session"]:
        """Return sessions in *room_id*, in order of registration."""
        async with self._lock:
            return self._select(exclude_id, room_id)

    async def relocate(
        self,
        session: "Session",
        room_id: "RoomId",
        on_leave: Callable[["Session"], None],
        on_arrive: Callable[["Session"], None],
    ) -> None:
        """
        Move *session* to *room_id* as one step.

        *on_leave* is applied to the other occupants of the room being left,
        then the session's room is changed, then *on_arrive* is applied to
        the other occupants of *room_id*.  No other registry operation may
        observe the session between these steps.
        """
        async with self._lock:
            for other in self._select(session.id, session.room_id):
                on_leave(other)
            session.room_id = room_id
            for other in self._select(session.id, room_id):
                on_arrive(other)

    def _select(self, exclude_id, room_id=None):
        # caller must hold self._lock
        return [
            session
            for session in list(self._sessions.values())
            if session.id != exclude_id
            and (room_id is None or session.room_id == room_id)
        ]
