"""
Static room graph: rooms, their exits, and extra descriptions.

A :class:`World` is built once before the server accepts connections and
is read-only afterwards.  Every exit target is checked at construction, so
a corrupt world fails fast with :class:`WorldError` instead of leaving a
dangling exit to be discovered by a player.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Union

__all__ = ("DIRECTIONS", "Room", "World", "WorldError", "load_world", "default_world")

logger = logging.getLogger("linemud.world")

#: Compass directions a room may have an exit toward, in display order.
DIRECTIONS = ("north", "east", "south", "west")

RoomId = Union[int, str]


class WorldError(ValueError):
    """World data is inconsistent, such as an exit to a missing room."""


def _is_room_id(value: Any) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Room:
    """A single room of the world graph."""

    id: RoomId
    name: str
    description: str
    extra: Mapping[str, str] = field(default_factory=dict)
    exits: Mapping[str, RoomId] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = sorted(set(self.exits) - set(DIRECTIONS))
        if unknown:
            raise WorldError(
                f"room {self.id!r}: unknown exit direction(s) {', '.join(unknown)}"
            )
        # zero, empty, and null targets mean "no exit"
        exits = {d: target for d, target in self.exits.items() if target}
        extra = {str(k).lower(): str(v) for k, v in self.extra.items()}
        object.__setattr__(self, "exits", MappingProxyType(exits))
        object.__setattr__(self, "extra", MappingProxyType(extra))

    def exit(self, direction: str) -> RoomId | None:
        """Return target room id for *direction*, or ``None``."""
        return self.exits.get(direction)

    def describe(self, keyword: str) -> str | None:
        """Return the extra description for *keyword*, or ``None``."""
        return self.extra.get(keyword.lower()) or None


class World:
    """Read-only collection of rooms indexed by identifier."""

    def __init__(self, rooms: Iterable[Room], start: RoomId | None = None) -> None:
        self._rooms: dict[RoomId, Room] = {}
        for room in rooms:
            if room.id is None:
                raise WorldError(f"room {room.name!r} has no id")
            if room.id in self._rooms:
                raise WorldError(f"duplicate room id {room.id!r}")
            self._rooms[room.id] = room
        if not self._rooms:
            raise WorldError("world has no rooms")

        for room in self._rooms.values():
            for direction, target in room.exits.items():
                if target not in self._rooms:
                    raise WorldError(
                        f"room {room.id!r}: {direction} exit leads to"
                        f" nonexistent room {target!r}"
                    )

        if start is None:
            start = next(iter(self._rooms))
        elif start not in self._rooms:
            raise WorldError(f"start room {start!r} does not exist")
        self.start: RoomId = start

    def __repr__(self) -> str:
        return f"<World rooms={len(self._rooms)} start={self.start!r}>"

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    @property
    def rooms(self) -> Mapping[RoomId, Room]:
        return MappingProxyType(self._rooms)

    def get_room(self, room_id: RoomId) -> Room:
        """
        Return room by identifier.

        :raises KeyError: when no room has identifier *room_id*.
        """
        try:
            return self._rooms[room_id]
        except KeyError:
            raise KeyError(f"no such room: {room_id!r}") from None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "World":
        """
        Build a world from a decoded JSON document.

        :param data: mapping with a ``rooms`` list and optional ``start``
            room identifier.  Each room is a mapping of ``id``, ``name``,
            ``description``, and optional ``extra`` and ``exits`` mappings.
        :raises WorldError: on missing fields or inconsistent exits.
        """
        if not isinstance(data, Mapping):
            raise WorldError("world document must be a mapping")
        rooms_data = data.get("rooms")
        if not isinstance(rooms_data, list):
            raise WorldError("world document requires a 'rooms' list")

        rooms = []
        for num, rdata in enumerate(rooms_data):
            if not isinstance(rdata, Mapping):
                raise WorldError(f"room #{num} must be a mapping")
            try:
                room_id = rdata["id"]
                name = rdata["name"]
                description = rdata["description"]
            except KeyError as err:
                raise WorldError(f"room #{num} is missing field {err}") from None
            if not _is_room_id(room_id):
                raise WorldError(
                    f"room #{num}: id must be an integer or string, not {room_id!r}"
                )
            extra = rdata.get("extra") or {}
            exits = rdata.get("exits") or {}
            if not isinstance(extra, Mapping) or not isinstance(exits, Mapping):
                raise WorldError(f"room {room_id!r}: 'extra' and 'exits' must be mappings")
            for direction, target in exits.items():
                if target and not _is_room_id(target):
                    raise WorldError(
                        f"room {room_id!r}: {direction} exit target {target!r}"
                        " is not a room id"
                    )
            rooms.append(
                Room(
                    id=room_id,
                    name=str(name),
                    description=str(description),
                    extra=extra,
                    exits=exits,
                )
            )
        start = data.get("start")
        if start is not None and not _is_room_id(start):
            raise WorldError(f"start room {start!r} is not a room id")
        return cls(rooms, start=start)


def load_world(path: str) -> World:
    """
    Load a world from JSON file.

    :param path: Path to world JSON file.
    :returns: Validated :class:`World`.
    :raises WorldError: when the file is not valid UTF-8 JSON or is inconsistent.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as err:
            # JSONDecodeError and UnicodeDecodeError
            raise WorldError(f"{path}: {err}") from err
    world = World.from_mapping(data)
    logger.debug("loaded %r from %s", world, path)
    return world


DEFAULT_WORLD: dict[str, Any] = {
    "start": 1,
    "rooms": [
        {
            "id": 1,
            "name": "An empty room",
            "description": "You are standing in a nice big empty room. There is"
            " nothing on the walls, nothing on the floor, and nothing on the"
            " ceiling. There is an open door to the west.",
            "extra": {
                "walls": "There is nothing on the walls.",
                "floor": "There is nothing on the floor.",
                "ceiling": "There is nothing on the ceiling.",
                "door": "You see a small dark room on the other side of the door.",
            },
            "exits": {"west": 2},
        },
        {
            "id": 2,
            "name": "A dark room",
            "description": "You are standing in a small, dark room. There is a"
            " glow coming from an open door to the east.",
            "extra": {
                "door": "You see a large empty room on the other side of the door.",
            },
            "exits": {"east": 1},
        },
    ],
}


def default_world() -> World:
    """Return the built-in two room world."""
    return World.from_mapping(DEFAULT_WORLD)
