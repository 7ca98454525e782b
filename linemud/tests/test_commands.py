"""Tests for :mod:`linemud.commands` parsing and dispatch."""

# 3rd party
import pytest

# local
from linemud.broadcast import Broadcaster
from linemud.commands import Command, CommandDispatcher, parse_command
from linemud.registry import SessionRegistry
from linemud.tests.accessories import join_session


@pytest.mark.parametrize(
    "line, expected",
    [
        ("", None),
        ("   \t ", None),
        ("look", Command("look", "")),
        ("look ", Command("look", "")),
        ("LOOK Door", Command("LOOK", "Door")),
        ("chat  hello  there ", Command("chat", "hello  there")),
        ("  west", Command("west", "")),
    ],
)
def test_parse_command(line, expected):
    assert parse_command(line) == expected


def test_verbs_are_fixed_set():
    assert sorted(CommandDispatcher().verbs) == [
        "chat", "east", "look", "north", "quit", "south", "west",
    ]


@pytest.mark.asyncio
async def test_dispatch_empty_line_is_silent():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    bob = await join_session(bc, "Bob")
    assert await CommandDispatcher().dispatch(alice, "") is True
    assert await CommandDispatcher().dispatch(alice, "   ") is True
    assert alice.writer.output == ""
    assert bob.writer.output == ""


@pytest.mark.asyncio
async def test_dispatch_unknown_command():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    bob = await join_session(bc, "Bob")
    assert await CommandDispatcher().dispatch(alice, "dance wildly") is True
    assert alice.writer.output == "\rSorry, dance isn't a valid command.\r\n> "
    assert bob.writer.output == ""


@pytest.mark.asyncio
async def test_dispatch_unknown_command_echoes_word_as_typed():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    assert await CommandDispatcher().dispatch(alice, "DANCE") is True
    assert alice.writer.output == "\rSorry, DANCE isn't a valid command.\r\n> "


@pytest.mark.asyncio
async def test_dispatch_look():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    assert await CommandDispatcher().dispatch(alice, "look") is True
    assert "An empty room" in alice.writer.output


@pytest.mark.asyncio
async def test_dispatch_look_keyword():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    await CommandDispatcher().dispatch(alice, "look door")
    assert "small dark room on the other side" in alice.writer.output


@pytest.mark.asyncio
async def test_dispatch_command_case_insensitive():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    assert await CommandDispatcher().dispatch(alice, "West") is True
    assert alice.room_id == 2


@pytest.mark.asyncio
async def test_dispatch_chat_keeps_argument_verbatim():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    bob = await join_session(bc, "Bob")
    await CommandDispatcher().dispatch(alice, "chat Hello  THERE")
    assert "\rAlice: Hello  THERE\r\n> " in bob.writer.output


@pytest.mark.asyncio
async def test_dispatch_move():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    assert await CommandDispatcher().dispatch(alice, "west") is True
    assert alice.room_id == 2
    assert await CommandDispatcher().dispatch(alice, "east") is True
    assert alice.room_id == 1


@pytest.mark.asyncio
async def test_dispatch_movement_ignores_argument():
    bc = Broadcaster(SessionRegistry())
    alice = await join_session(bc, "Alice")
    await CommandDispatcher().dispatch(alice, "west quickly")
    assert alice.room_id == 2


@pytest.mark.asyncio
async def test_dispatch_quit():
    reg = SessionRegistry()
    bc = Broadcaster(reg)
    alice = await join_session(bc, "Alice")
    assert await CommandDispatcher().dispatch(alice, "quit") is False
    assert alice.id not in reg
    assert alice.writer.is_closing()
