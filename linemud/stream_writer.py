"""Module provides :class:`LineWriter`."""
# std imports
import asyncio

__all__ = ('LineWriter', )


class LineWriter(asyncio.StreamWriter):
    """
    A Unicode StreamWriter interface for line-oriented text clients.

    Strings given to :meth:`write` are encoded with the protocol encoding.
    Unlike :class:`asyncio.StreamWriter`, a writer that has been closed keeps
    answering :meth:`is_closing` and :meth:`get_write_buffer_size` so that
    broadcasts may test a recipient without first checking its state.
    """

    def __init__(self, transport, protocol, reader=None, *,
                 encoding='utf8', encoding_errors='replace'):
        asyncio.StreamWriter.__init__(
            self, transport, protocol, reader, asyncio.get_event_loop())
        self.encoding = encoding
        self.encoding_errors = encoding_errors
        self._connection_closed = False

    def __repr__(self):
        info = ['LineWriter', self.encoding]
        if self.is_closing():
            info.append('closing')
        size = self.get_write_buffer_size()
        if size:
            info.append('buffered:{}'.format(size))
        return '<{0}>'.format(' '.join(info))

    def encode(self, string, errors=None):
        """Encode ``string`` using protocol-preferred encoding."""
        return bytes(string, self.encoding, errors or self.encoding_errors)

    def write(self, string, errors=None):
        """
        Write unicode string to transport.

        :param str string: text to write to the client.
        :param str errors: same as meaning in :meth:`codecs.Codec.encode`, when
            ``None`` (default), value of class initializer keyword argument,
            ``encoding_errors``.
        :raises ConnectionResetError: when the connection is already closed.
        """
        if self.is_closing():
            raise ConnectionResetError('write to closed connection')
        self.transport.write(self.encode(string, errors))

    def get_write_buffer_size(self):
        """Number of bytes written but not yet sent to the client."""
        if self._connection_closed:
            return 0
        return self.transport.get_write_buffer_size()

    def is_closing(self):
        return self._connection_closed or self.transport.is_closing()

    def close(self):
        if self._connection_closed:
            return
        self._connection_closed = True
        super().close()

    def abort(self):
        """Close the connection immediately, discarding buffered output."""
        if self._connection_closed:
            return
        self._connection_closed = True
        self.transport.abort()
