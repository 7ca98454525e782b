"""Translate input lines into actions on a :class:`~.Session`."""

from __future__ import annotations

import collections
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .session import Session

__all__ = ("Command", "CommandDispatcher", "parse_command")

logger = logging.getLogger("linemud.commands")

Command = collections.namedtuple("Command", ["verb", "argument"])


def parse_command(line: str) -> Command | None:
    """
    Split *line* into command word, as typed, and remaining argument.

    Example::

        >>> parse_command('chat  hello  there ')
        Command(verb='chat', argument='hello  there')

    :returns: ``None`` when *line* holds no words.
    """
    parts = line.split(None, 1)
    if not parts:
        return None
    argument = parts[1].strip() if len(parts) > 1 else ""
    return Command(parts[0], argument)


class CommandDispatcher:
    """
    Command dispatcher -- ``do_*`` methods are discovered dynamically.

    The dispatcher holds no per-session state; one instance serves every
    session of a server.
    """

    def __init__(self) -> None:
        self._cmd_map: dict[str, Any] = {
            name[3:]: getattr(self, name)
            for name in sorted(dir(self))
            if name.startswith("do_") and callable(getattr(self, name))
        }

    @property
    def verbs(self) -> list[str]:
        return list(self._cmd_map)

    async def dispatch(self, session: "Session", line: str) -> bool:
        """Parse and dispatch a command.

        :returns: ``False`` to disconnect, ``True`` to continue.
        """
        command = parse_command(line)
        if command is None:
            return True
        logger.debug("%r: %s", session, command.verb)
        method = self._cmd_map.get(command.verb.lower())
        if method is None:
            session.send(f"Sorry, {command.verb} isn't a valid command.")
            return True
        return await method(session, command.argument)

    # -- commands -------------------------------------------------------

    async def do_quit(self, session: "Session", _argument: str) -> bool:
        """Leave the world."""
        await session.quit()
        return False

    async def do_chat(self, session: "Session", argument: str) -> bool:
        """Talk to everyone."""
        await session.chat(argument)
        return True

    async def do_look(self, session: "Session", argument: str) -> bool:
        """Look around, or at something."""
        await session.look(argument)
        return True

    async def do_north(self, session: "Session", _argument: str) -> bool:
        """Go north."""
        await session.move("north")
        return True

    async def do_east(self, session: "Session", _argument: str) -> bool:
        """Go east."""
        await session.move("east")
        return True

    async def do_south(self, session: "Session", _argument: str) -> bool:
        """Go south."""
        await session.move("south")
        return True

    async def do_west(self, session: "Session", _argument: str) -> bool:
        """Go west."""
        await session.move("west")
        return True
