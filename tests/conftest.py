import socket

import pytest

from eventlog import log
from session import ExitStatus, Session
from transport import Transport


@pytest.fixture(autouse=True)
def quiet_log(monkeypatch):
    monkeypatch.setattr(log, "path", None)
    monkeypatch.setattr(log, "console", None)


class Peer:
    """The server end of a socketpair, speaking newline-terminated lines"""

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.sock.settimeout(5)
        self.buffer = b""

    def send(self, *lines: str) -> None:
        self.sock.sendall("".join(line + "\n" for line in lines).encode("utf-8"))

    def read_line(self) -> str:
        while b"\n" not in self.buffer:
            chunk = self.sock.recv(1024)
            if not chunk:
                raise EOFError("client closed the connection")
            self.buffer += chunk
        line, self.buffer = self.buffer.split(b"\n", 1)
        return line.decode("utf-8")

    def pending(self) -> bytes:
        """Whatever the client sent that has not been read yet, without blocking"""
        self.sock.settimeout(0.2)
        try:
            while True:
                chunk = self.sock.recv(1024)
                if not chunk:
                    break
                self.buffer += chunk
        except socket.timeout:
            pass
        finally:
            self.sock.settimeout(5)
        data, self.buffer = self.buffer, b""
        return data

    def close(self) -> None:
        self.sock.close()


@pytest.fixture
def socket_pair():
    client_sock, server_sock = socket.socketpair()
    peer = Peer(server_sock)
    yield Transport(client_sock), peer
    client_sock.close()
    peer.close()


@pytest.fixture
def session_pair(socket_pair):
    transport, peer = socket_pair
    session = Session(transport)
    yield session, peer
    session.terminate(ExitStatus.SUCCESS)
