"""Module provides class BaseServer."""

import traceback
import asyncio
import logging
import datetime

from .stream_writer import LineWriter

__all__ = ("BaseServer",)


logger = logging.getLogger("linemud.server_base")

_DEFAULT_LIMIT = 2 ** 16  # 64 KiB


class BaseServer(asyncio.streams.FlowControlMixin, asyncio.Protocol):
    """
    Base line-oriented server protocol.

    Builds an :class:`asyncio.StreamReader` and :class:`~.LineWriter` pair
    for each connection and runs the ``shell`` coroutine function with them
    as a task of its own.
    """

    _last_received = None
    _transport = None
    _closing = False
    _shell_task = None

    def __init__(
        self,
        shell=None,
        encoding="utf8",
        encoding_errors="replace",
        limit=None,
        reader_factory=asyncio.StreamReader,
        writer_factory=LineWriter,
    ):
        """Class initializer."""
        super().__init__()
        self.default_encoding = encoding
        self._encoding_errors = encoding_errors
        self._extra = dict()

        self._reader_factory = reader_factory
        self._writer_factory = writer_factory

        self._tasks = []
        self._waiter_closed = asyncio.get_event_loop().create_future()
        self.shell = shell
        self.reader = None
        self.writer = None
        self._limit = limit or _DEFAULT_LIMIT

    def timeout_connection(self):
        self.reader.feed_eof()
        self.writer.close()

    # Base protocol methods

    def eof_received(self):
        """Called when the other end calls write_eof() or equivalent."""
        logger.debug("EOF from client, closing.")
        self.connection_lost(None)

    def connection_lost(self, exc):
        """
        Called when the connection is lost or closed.

        :param Exception exc: exception.  ``None`` indicates close by EOF.
        """
        if self._closing:
            return
        self._closing = True

        # inform yielding readers about closed connection
        if exc is None:
            logger.info("Connection closed for %s", self)
            self.reader.feed_eof()
        else:
            logger.info("Connection lost for %s: %s", self, exc)
            self.reader.set_exception(exc)

        # wake any writer awaiting drain()
        super().connection_lost(exc)

        # cancel protocol timers; the shell task ends by reading EOF
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

        if self._transport is not None:
            self._transport.close()
        if not self._waiter_closed.done():
            self._waiter_closed.set_result(None)

    def connection_made(self, transport):
        """
        Called when a connection is made.

        Sets attributes ``_transport``, ``_last_received``,
        ``reader`` and ``writer``.

        Ensure ``super().connection_made(transport)`` is called when derived.
        """
        self._transport = transport
        self._last_received = datetime.datetime.now()

        self.reader = self._reader_factory(limit=self._limit)
        self.reader.set_transport(transport)
        self.writer = self._writer_factory(
            transport,
            self,
            self.reader,
            encoding=self.default_encoding,
            encoding_errors=self._encoding_errors,
        )

        logger.info("Connection from %s", self)

        asyncio.get_event_loop().call_soon(self.begin_shell)

    def begin_shell(self):
        if self.shell is None or self._closing:
            return
        coro = self.shell(self.reader, self.writer)
        if asyncio.iscoroutine(coro):
            self._shell_task = asyncio.get_event_loop().create_task(coro)
            self._shell_task.add_done_callback(self._on_shell_done)

    def data_received(self, data):
        """Process bytes received by transport."""
        self._last_received = datetime.datetime.now()
        self.reader.feed_data(data)

    # public properties

    @property
    def idle(self):
        """Time elapsed since data last received, in seconds as float."""
        return (datetime.datetime.now() - self._last_received).total_seconds()

    # public protocol methods

    def __repr__(self):
        hostport = self.get_extra_info("peername", ["-", "closing"])[:2]
        return "<Peer {0} {1}>".format(*hostport)

    def get_extra_info(self, name, default=None):
        """Get optional server protocol or transport information."""
        if self._transport:
            default = self._transport.get_extra_info(name, default)
        return self._extra.get(name, default)

    # private methods

    def _get_close_waiter(self, stream):
        # used by asyncio.StreamWriter.wait_closed()
        return self._waiter_closed

    def _on_shell_done(self, fut):
        if fut.cancelled():
            logger.debug("shell cancelled for %s", self)
        elif fut.exception() is not None:
            exc = fut.exception()
            logger.error("shell raised for %s:", self)
            self._log_exception(logger.error, type(exc), exc, exc.__traceback__)
        if self._transport is not None:
            self._transport.close()

    @staticmethod
    def _log_exception(logger, e_type, e_value, e_tb):
        rows_tbk = [
            line for line in "\n".join(traceback.format_tb(e_tb)).split("\n") if line
        ]
        rows_exc = [
            line.rstrip() for line in traceback.format_exception_only(e_type, e_value)
        ]

        for line in rows_tbk + rows_exc:
            logger(line)
