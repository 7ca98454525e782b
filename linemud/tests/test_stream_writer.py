"""Tests for :class:`linemud.stream_writer.LineWriter`."""

# std imports
import asyncio

# 3rd party
import pytest

# local
from linemud.stream_writer import LineWriter
from linemud.tests.accessories import MockTransport


def _make_writer(**kwds):
    transport = MockTransport()
    return transport, LineWriter(transport, asyncio.Protocol(), **kwds)


@pytest.mark.asyncio
async def test_write_encodes():
    transport, writer = _make_writer()
    writer.write("caf\xe9\r\n")
    assert bytes(transport.data) == "caf\xe9\r\n".encode("utf8")


@pytest.mark.asyncio
async def test_write_alternate_encoding_replaces():
    transport, writer = _make_writer(encoding="ascii")
    writer.write("caf\xe9\r\n")
    assert bytes(transport.data) == b"caf?\r\n"


@pytest.mark.asyncio
async def test_write_after_close_raises():
    transport, writer = _make_writer()
    writer.close()
    assert transport.is_closing()
    assert writer.is_closing()
    with pytest.raises(ConnectionResetError):
        writer.write("hello")
    assert transport.data == b""


@pytest.mark.asyncio
async def test_closed_writer_reports_empty_buffer():
    transport, writer = _make_writer()
    transport.buffered = 100
    assert writer.get_write_buffer_size() == 100
    writer.close()
    assert writer.get_write_buffer_size() == 0


@pytest.mark.asyncio
async def test_abort_is_idempotent():
    transport, writer = _make_writer()
    writer.abort()
    writer.abort()
    writer.close()
    assert transport.aborted
    assert writer.is_closing()


@pytest.mark.asyncio
async def test_repr():
    transport, writer = _make_writer()
    transport.buffered = 5
    assert repr(writer) == "<LineWriter utf8 buffered:5>"
    writer.close()
    assert repr(writer) == "<LineWriter utf8 closing>"
