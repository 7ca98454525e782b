"""
The ``main`` function here is wired to the command line tool by name
linemud-server.  If this server's PID receives the SIGTERM signal, it
attempts to shutdown gracefully.

The :class:`WorldServer` class serves a line-oriented text world to each
client, and closes connections of clients that are idle for too long.
"""

# std imports
import collections
import argparse
import asyncio
import logging
import signal

# local
from . import server_base
from . import accessories
from .session import DEFAULT_SEND_LIMIT, make_shell
from .world import default_world, load_world

__all__ = ("WorldServer", "create_server", "run_server", "parse_server_args")

CONFIG = collections.namedtuple(
    "CONFIG",
    [
        "host",
        "port",
        "loglevel",
        "logfile",
        "logfmt",
        "world",
        "encoding",
        "timeout",
        "send_limit",
    ],
)(
    host="localhost",
    port=6023,
    loglevel="info",
    logfile=None,
    logfmt=accessories._DEFAULT_LOGFMT,
    world=None,
    encoding="utf8",
    timeout=300,
    send_limit=DEFAULT_SEND_LIMIT,
)
logger = logging.getLogger("linemud.server")


class WorldServer(server_base.BaseServer):
    """Text world server protocol with idle timeout."""

    def __init__(self, timeout=300, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._timer = None
        self._extra.update({"timeout": timeout})

    def connection_made(self, transport):
        super().connection_made(transport)

        # begin timeout timer
        self.set_timeout()

    def data_received(self, data):
        self.set_timeout()
        super().data_received(data)

    def set_timeout(self, duration=-1):
        """
        Restart or unset timeout for client.

        :param int duration: When specified as a positive integer,
            schedules Future for callback of :meth:`on_timeout`.  When ``-1``,
            the value of ``self.get_extra_info('timeout')`` is used.  When
            non-True, it is canceled.
        """
        if duration == -1:
            duration = self.get_extra_info("timeout")
        if self._timer is not None:
            if self._timer in self._tasks:
                self._tasks.remove(self._timer)
            self._timer.cancel()
        if duration:
            loop = asyncio.get_event_loop()
            self._timer = loop.call_later(duration, self.on_timeout)
            self._tasks.append(self._timer)
        self._extra["timeout"] = duration

    # Callback methods

    def on_timeout(self):
        """
        Callback received on session timeout.

        Default implementation writes "Timeout." bound by CRLF and closes.

        This can be disabled by calling :meth:`set_timeout` with
        ``duration`` value of ``0``.
        """
        logger.debug("Timeout after {self.idle:1.2f}s".format(self=self))
        if not self.writer.is_closing():
            self.writer.write("\r\nTimeout.\r\n")
        self.timeout_connection()


async def create_server(
    host=None,
    port=6023,
    protocol_factory=WorldServer,
    world=None,
    registry=None,
    send_limit=DEFAULT_SEND_LIMIT,
    **kwds
):
    """
    Create a TCP text world server.

    :param str host: The host parameter can be a string, in that case the TCP
        server is bound to host and port. The host parameter can also be a
        sequence of strings, and in that case the TCP server is bound to all
        hosts of the sequence.
    :param int port: listen port for TCP Server.
    :param server_base.BaseServer protocol_factory: An alternate protocol
        factory for the server, when unspecified, :class:`WorldServer` is
        used.
    :param world.World world: The world served.  When unspecified,
        :func:`~.default_world` is used.
    :param registry.SessionRegistry registry: The registry shared by all
        sessions of this server.  A new one is created when unspecified;
        pass one in to inspect connected sessions.
    :param int send_limit: Bytes of pending output allowed for any one
        client before it is considered stuck and disconnected.
    :param str encoding: The encoding of all client streams, default
        ``'utf8'``.
    :param int timeout: Causes clients to disconnect if idle for this duration,
        in seconds.  When ``0``, clients are not disconnected for timeout.
        Default value is 300 seconds (5 minutes).
    :param int limit: The maximum length of an input line, in bytes.

    :return asyncio.Server: The return value is the same as
        :meth:`asyncio.loop.create_server`, An object which can be used
        to stop the service.
    """
    protocol_factory = protocol_factory or WorldServer
    shell = make_shell(
        world if world is not None else default_world(),
        registry=registry,
        send_limit=send_limit,
    )
    loop = asyncio.get_event_loop()
    return await loop.create_server(
        lambda: protocol_factory(shell=shell, **kwds), host, port
    )


async def _sigterm_handler(server, log):
    log.info("SIGTERM received, closing server.")

    # This signals the completion of the server.wait_closed() Future,
    # allowing the main() function to complete.
    server.close()


def parse_server_args():
    parser = argparse.ArgumentParser(
        description="Line-oriented text world server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("host", nargs="?", default=CONFIG.host, help="bind address")
    parser.add_argument(
        "port", nargs="?", type=int, default=CONFIG.port, help="bind port"
    )
    parser.add_argument("--loglevel", default=CONFIG.loglevel, help="level name")
    parser.add_argument("--logfile", default=CONFIG.logfile, help="filepath")
    parser.add_argument("--logfmt", default=CONFIG.logfmt, help="log format")
    parser.add_argument(
        "--world", default=CONFIG.world, help="world JSON filepath (built-in if unset)"
    )
    parser.add_argument("--encoding", default=CONFIG.encoding, help="encoding name")
    parser.add_argument(
        "--timeout", type=int, default=CONFIG.timeout, help="idle disconnect (0 disables)"
    )
    parser.add_argument(
        "--send-limit",
        type=int,
        default=CONFIG.send_limit,
        help="pending output bytes allowed per client",
    )
    return vars(parser.parse_args())


async def run_server(
    host=CONFIG.host,
    port=CONFIG.port,
    loglevel=CONFIG.loglevel,
    logfile=CONFIG.logfile,
    logfmt=CONFIG.logfmt,
    world=CONFIG.world,
    encoding=CONFIG.encoding,
    timeout=CONFIG.timeout,
    send_limit=CONFIG.send_limit,
):
    """
    Program entry point for server daemon.

    This function configures a logger, loads the world, and creates a server
    for the given keyword arguments, serving forever, completing only upon
    receipt of SIGTERM.
    """
    log = accessories.make_logger(
        name="linemud.server", loglevel=loglevel, logfile=logfile, logfmt=logfmt
    )

    # log all function arguments.
    _locals = locals()
    log.debug(
        "Server configuration: {}".format(
            accessories.repr_mapping({field: _locals[field] for field in CONFIG._fields})
        )
    )

    # a world that fails validation ends the program here, before binding.
    the_world = load_world(world) if world else default_world()
    log.info("World ready: {0!r}".format(the_world))

    loop = asyncio.get_event_loop()

    # bind
    server = await create_server(
        host,
        port,
        world=the_world,
        send_limit=send_limit,
        encoding=encoding,
        timeout=timeout,
    )

    # SIGTERM cases server to gracefully stop
    loop.add_signal_handler(
        signal.SIGTERM, asyncio.ensure_future, _sigterm_handler(server, log)
    )

    log.info("Server ready on {0}:{1}".format(host, port))

    # await completion of server stop
    try:
        await server.wait_closed()
    finally:
        # remove signal handler on stop
        loop.remove_signal_handler(signal.SIGTERM)

    log.info("Server stop.")


def main():
    asyncio.run(run_server(**parse_server_args()))


if __name__ == "__main__":
    main()
