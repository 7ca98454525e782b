"""
Per-connection player session.

A :class:`Session` runs a strictly sequential loop for one client: read a
line, dispatch it, write responses.  Anything shared with other sessions
goes through the :class:`~.SessionRegistry`, by way of the
:class:`~.Broadcaster`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .accessories import strip_control_chars
from .broadcast import Broadcaster
from .commands import CommandDispatcher
from .registry import SessionRegistry

if TYPE_CHECKING:  # pragma: no cover
    from .world import Room, RoomId, World

__all__ = ("Session", "ConnectionFault", "make_shell", "readline")

logger = logging.getLogger("linemud.session")

CR, LF = "\r\n"
PROMPT = "> "
NAME_PROMPT = "Hi! Please enter your name:"
DEFAULT_SEND_LIMIT = 2 ** 16  # 64 KiB

CONNECTING, ACTIVE, DISCONNECTED = "connecting", "active", "disconnected"


class ConnectionFault(ConnectionError):
    """Reading from or writing to a client connection failed."""


async def readline(reader: Any, encoding: str = "utf8") -> str | None:
    """
    Read one line of input from *reader*.

    Control characters, including the line terminator, are removed.

    :returns: the line, or ``None`` at end of stream.
    :raises ConnectionFault: when the line exceeds the reader's limit.
    """
    try:
        data = await reader.readline()
    except ValueError as err:
        raise ConnectionFault(f"input line too long: {err}") from err
    if not data:
        return None
    return strip_control_chars(data.decode(encoding, "replace"))


class Session:
    """A connected player."""

    def __init__(
        self,
        reader: Any,
        writer: Any,
        world: "World",
        broadcaster: Broadcaster,
        dispatcher: CommandDispatcher,
        session_id: int,
        encoding: str = "utf8",
        send_limit: int = DEFAULT_SEND_LIMIT,
    ) -> None:
        self.id = session_id
        self.name: str | None = None
        self.room_id: "RoomId" = world.start
        self.state = CONNECTING
        self.reader = reader
        self.writer = writer
        self.world = world
        self.broadcaster = broadcaster
        self.dispatcher = dispatcher
        self.encoding = encoding
        self.send_limit = send_limit

    def __repr__(self) -> str:
        return f"<Session #{self.id} {self.name!r} room={self.room_id!r} {self.state}>"

    @property
    def registry(self) -> SessionRegistry:
        return self.broadcaster.registry

    @property
    def room(self) -> "Room":
        """Current room, resolved against the world on each access."""
        return self.world.get_room(self.room_id)

    # -- connection -----------------------------------------------------

    def send(self, text: str) -> None:
        """
        Write message *text* followed by the prompt marker.

        :raises ConnectionFault: when the connection is closed, or when
            pending output exceeds ``send_limit`` bytes.
        """
        self._write(CR + text + CR + LF + PROMPT)

    def abort(self) -> None:
        """Drop the connection; the session loop then reads end-of-stream."""
        self.writer.abort()

    async def readline(self) -> str | None:
        return await readline(self.reader, self.encoding)

    def _write(self, data: str) -> None:
        try:
            self.writer.write(data)
        except ConnectionError as err:
            raise ConnectionFault(str(err)) from err
        pending = self.writer.get_write_buffer_size()
        if pending > self.send_limit:
            raise ConnectionFault(
                f"{pending} bytes of pending output exceeds limit of {self.send_limit}"
            )

    # -- lifecycle ------------------------------------------------------

    async def run(self) -> None:
        """Main loop for one connected client."""
        try:
            if not await self.welcome():
                return
            while True:
                await self.writer.drain()
                line = await self.readline()
                if line is None:
                    break
                if not await self.dispatcher.dispatch(self, line):
                    break
        except OSError as err:
            logger.info("%r: %s", self, err)
        finally:
            await self.disconnect()

    async def welcome(self) -> bool:
        """
        Ask for a name, then join the world.

        :returns: ``False`` if the client went away before naming itself.
        """
        name = ""
        while not name:
            self._write(CR + NAME_PROMPT + " ")
            await self.writer.drain()
            line = await self.readline()
            if line is None:
                return False
            name = line.strip()

        self.name = name
        await self.registry.register(self)
        self.state = ACTIVE
        logger.info("join: %r (%d online)", self, len(self.registry))
        self.send(f"Welcome {name}! Type 'quit' to quit." + CR + LF)
        await self.look()
        return True

    async def disconnect(self) -> None:
        """
        Leave the world and close the connection.

        Safe to call more than once; only the first call has any effect.
        """
        if self.state == DISCONNECTED:
            return
        was_active = self.state == ACTIVE
        self.state = DISCONNECTED
        if was_active:
            await self.registry.unregister(self.id)
            logger.info("leave: %r (%d online)", self, len(self.registry))
            await self.broadcaster.notify_all(self.id, f"{self.name} has logged off.")
        self.writer.close()

    # -- actions --------------------------------------------------------

    async def quit(self) -> None:
        try:
            self._write(CR + "Goodbye." + CR + LF)
        finally:
            await self.disconnect()

    async def chat(self, message: str) -> None:
        if not message:
            self.send("Chat what?")
            return
        self.send(f"You: {message}")
        await self.broadcaster.notify_all(self.id, f"{self.name}: {message}")

    async def look(self, keyword: str = "") -> None:
        """Describe the room and who is here, or the feature *keyword*."""
        room = self.room
        if keyword:
            text = room.describe(keyword)
            if text is None:
                text = f"There is nothing by the name of '{keyword}' to look at here."
            self.send(text)
            return

        others = await self.registry.occupants(self.room_id, exclude_id=self.id)
        lines = [room.name, room.description]
        lines.extend(f"{other.name} is standing here." for other in others)
        self.send((CR + LF).join(lines))

    async def move(self, direction: str) -> None:
        """Walk through the exit toward *direction*, if there is one."""
        target = self.room.exit(direction)
        if target is None or target == self.room_id:
            return
        await self.broadcaster.relocate(
            self,
            target,
            leave_text=f"{self.name} left to the {direction}.",
            arrive_text=f"{self.name} has arrived.",
        )
        await self.look()


def make_shell(
    world: "World",
    registry: SessionRegistry | None = None,
    dispatcher: CommandDispatcher | None = None,
    send_limit: int = DEFAULT_SEND_LIMIT,
):
    """
    Return a shell coroutine function serving *world*.

    Every connection handled by the returned shell shares *registry*, so
    one shell should be created per listening server.
    """
    if registry is None:
        registry = SessionRegistry()
    broadcaster = Broadcaster(registry)
    if dispatcher is None:
        dispatcher = CommandDispatcher()

    async def world_shell(reader, writer):
        session = Session(
            reader,
            writer,
            world,
            broadcaster,
            dispatcher,
            registry.next_id(),
            encoding=getattr(writer, "encoding", "utf8"),
            send_limit=send_limit,
        )
        await session.run()
    return world_shell
