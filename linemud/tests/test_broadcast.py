"""Tests for :mod:`linemud.broadcast` delivery scopes and fault isolation."""

# 3rd party
import pytest

# local
from linemud.broadcast import Broadcaster
from linemud.registry import SessionRegistry


class Recipient:
    """Minimal session stand-in recording delivered text."""

    def __init__(self, registry, name, room_id=1, fail=False):
        self.id = registry.next_id()
        self.name = name
        self.room_id = room_id
        self.fail = fail
        self.received = []
        self.aborted = False

    def send(self, text):
        if self.fail:
            raise ConnectionResetError("write to closed connection")
        self.received.append(text)

    def abort(self):
        self.aborted = True


async def _populate(registry, *recipients):
    for r in recipients:
        await registry.register(r)


@pytest.mark.asyncio
async def test_notify_all_excludes_sender():
    reg = SessionRegistry()
    alice = Recipient(reg, "Alice", room_id=1)
    bob = Recipient(reg, "Bob", room_id=1)
    carol = Recipient(reg, "Carol", room_id=2)
    await _populate(reg, alice, bob, carol)
    await Broadcaster(reg).notify_all(alice.id, "Alice: hi")
    assert alice.received == []
    assert bob.received == ["Alice: hi"]
    assert carol.received == ["Alice: hi"]


@pytest.mark.asyncio
async def test_notify_room_scope():
    reg = SessionRegistry()
    alice = Recipient(reg, "Alice", room_id=1)
    bob = Recipient(reg, "Bob", room_id=1)
    carol = Recipient(reg, "Carol", room_id=2)
    await _populate(reg, alice, bob, carol)
    await Broadcaster(reg).notify_room(alice.id, 1, "Alice waves.")
    assert alice.received == []
    assert bob.received == ["Alice waves."]
    assert carol.received == []


@pytest.mark.asyncio
async def test_failed_recipient_is_aborted_and_others_still_delivered():
    reg = SessionRegistry()
    alice = Recipient(reg, "Alice")
    broken = Recipient(reg, "Broken", fail=True)
    carol = Recipient(reg, "Carol")
    await _populate(reg, alice, broken, carol)

    await Broadcaster(reg).notify_all(alice.id, "Alice: hello")

    assert broken.aborted
    assert carol.received == ["Alice: hello"]
    assert not carol.aborted
    # pruning is left to the recipient's own teardown
    assert broken.id in reg


@pytest.mark.asyncio
async def test_relocate_announces_both_rooms():
    reg = SessionRegistry()
    mover = Recipient(reg, "Alice", room_id=1)
    stayer = Recipient(reg, "Bob", room_id=1)
    waiter = Recipient(reg, "Carol", room_id=2)
    await _populate(reg, mover, stayer, waiter)

    await Broadcaster(reg).relocate(mover, 2, "Alice left to the west.", "Alice has arrived.")

    assert mover.room_id == 2
    assert mover.received == []
    assert stayer.received == ["Alice left to the west."]
    assert waiter.received == ["Alice has arrived."]
