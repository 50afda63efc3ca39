"""
Stream-socket transport for the chat client.
"""

import contextlib
import socket
import threading
from typing import Iterator, Optional, Tuple

from codec import LineDecoder, encode_line
from config import BUFFER_SIZE, DEFAULT_PORT, DEFAULT_SERVER
from eventlog import log


class TransportError(Exception):
    """Connect, send or receive failed; the connection is gone"""


class AddressError(ValueError):
    """The operator typed something that is not host:port"""


def parse_address(text: str) -> Tuple[str, int]:
    """Split 'host:port' into a connectable (host, port) pair"""
    text = text.strip()
    if not text:
        raise AddressError("Empty server address")

    host, sep, port_str = text.rpartition(':')
    if not sep:
        host, port_str = text, str(DEFAULT_PORT)
    host = host.strip() or DEFAULT_SERVER
    port_str = port_str.strip()

    try:
        port = int(port_str)
    except ValueError:
        raise AddressError(f"Invalid port number: {port_str!r}") from None

    if not 0 < port < 65536:
        raise AddressError(f"Port out of range: {port}")

    return host, port


class Transport:
    """One connected stream socket; every failure closes it"""

    def __init__(self, sock: socket.socket):
        self.socket: Optional[socket.socket] = sock
        self.decoder = LineDecoder()
        self.send_lock = threading.Lock()
        self._close_lock = threading.Lock()

    @classmethod
    def connect(cls, host: str, port: int) -> 'Transport':
        log.log("CONNECTION", f"Connecting to {host}:{port}")
        try:
            sock = socket.create_connection((host, port))
        except OSError as e:
            log.log("ERROR", f"Connect to {host}:{port} failed: {describe(e)}")
            raise TransportError(describe(e)) from e
        log.log("CONNECTION", f"Connected to {host}:{port}")
        return cls(sock)

    def send_line(self, line: str) -> None:
        """Send one wire line; raises TransportError after closing on failure"""
        sock = self.socket
        if sock is None:
            raise TransportError("Not connected")
        try:
            with self.send_lock:
                sock.sendall(encode_line(line))
        except OSError as e:
            log.log("ERROR", f"Send error: {describe(e)}")
            self.close()
            raise TransportError(describe(e)) from e

    def receive(self) -> bytes:
        """Block for the next chunk; EOF and socket errors are both fatal"""
        sock = self.socket
        if sock is None:
            raise TransportError("Not connected")
        try:
            data = sock.recv(BUFFER_SIZE)
        except OSError as e:
            self.close()
            raise TransportError(describe(e)) from e
        if not data:
            self.close()
            raise TransportError("Connection closed by server")
        return data

    def lines(self) -> Iterator[str]:
        """Yield complete server lines until the connection fails"""
        while True:
            try:
                data = self.receive()
            except TransportError:
                # a last line without its terminator still counts
                yield from self.decoder.flush()
                raise
            yield from self.decoder.feed(data)

    def close(self) -> None:
        with self._close_lock:
            sock, self.socket = self.socket, None
        if sock is None:
            return
        # shutdown() wakes a recv() blocked in another thread; close() alone may not
        with contextlib.suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)
        sock.close()
        log.log("CONNECTION", "Connection closed")


def describe(error: OSError) -> str:
    """The OS description of a socket error, as the operator should see it"""
    if isinstance(error, socket.gaierror):
        return f"Invalid server address ({error.strerror or error})"
    return error.strerror or str(error) or error.__class__.__name__
