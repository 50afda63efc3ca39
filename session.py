"""
Chat session: the connection, the scroll window, and the two loops that share
them.

The receive loop runs on its own thread and blocks in recv(); the input loop
is driven one key at a time by whoever owns the keyboard. Every window access
happens under `Session.lock`, and the receive loop only hands *snapshots* to
the display.
"""

import threading
from enum import Enum, IntEnum
from typing import Callable, Iterable, List, Optional

from config import MAX_NAME_LENGTH
from editor import EditKind, EditResult, KeyEvent, LineEditor
from eventlog import log
from protocol import (
    ServerEventKind, decode_server_line, encode_submission, exit_command, is_exit,
    register, scroll_down_request, scroll_up_request
)
from transport import Transport, TransportError, parse_address
from window import ScrollWindow


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    REGISTERED = "registered"
    ACTIVE = "active"
    TERMINATED = "terminated"


TRANSITIONS = {
    SessionState.DISCONNECTED: {SessionState.CONNECTING, SessionState.TERMINATED},
    SessionState.CONNECTING: {SessionState.CONNECTED, SessionState.TERMINATED},
    SessionState.CONNECTED: {SessionState.REGISTERED, SessionState.TERMINATED},
    SessionState.REGISTERED: {SessionState.ACTIVE, SessionState.TERMINATED},
    SessionState.ACTIVE: {SessionState.TERMINATED},
    SessionState.TERMINATED: set(),
}


class ExitStatus(IntEnum):
    SUCCESS = 0
    FAILURE = 1


UpdateCallback = Callable[[List[str]], None]
TerminateCallback = Callable[[ExitStatus, str], None]


class Session:
    """Owns one connected Transport and the ScrollWindow for its lifetime"""

    def __init__(self, transport: Transport, window: Optional[ScrollWindow] = None):
        self.transport = transport
        self.window = window if window is not None else ScrollWindow()
        self.lock = threading.Lock()
        self.terminated = threading.Event()
        self.state = SessionState.CONNECTED
        self.exit_status: Optional[ExitStatus] = None
        self.reason = ""
        self.receive_thread: Optional[threading.Thread] = None
        self._terminate_lock = threading.Lock()

    @classmethod
    def open(cls, address_text: str) -> 'Session':
        """Parse 'host:port' and connect; raises AddressError or TransportError"""
        host, port = parse_address(address_text)
        return cls(Transport.connect(host, port))

    # ============== State ==============

    def _advance(self, state: SessionState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal session transition {self.state.value} -> {state.value}")
        self.state = state

    @property
    def active(self) -> bool:
        return not self.terminated.is_set()

    def terminate(self, status: ExitStatus, reason: str = "") -> bool:
        """
        End the session once. Closing the transport unblocks the other loop.
        Returns False if the session had already ended.
        """
        with self._terminate_lock:
            if self.terminated.is_set():
                return False
            self.state = SessionState.TERMINATED
            self.exit_status = status
            self.reason = reason
            self.terminated.set()

        level = "INFO" if status is ExitStatus.SUCCESS else "ERROR"
        log.log(level, f"Session terminated ({status.name}){': ' + reason if reason else ''}")
        self.transport.close()
        return True

    # ============== Outbound ==============

    def send(self, line: str) -> bool:
        if not self.active:
            return False
        try:
            self.transport.send_line(line)
        except TransportError as e:
            self.terminate(ExitStatus.FAILURE, f"send: {e}")
            return False
        log.log("DEBUG", f"-> {line}")
        return True

    def register(self, name: str) -> bool:
        if self.state is not SessionState.CONNECTED:
            raise RuntimeError(f"Cannot register while {self.state.value}")
        if len(name) > MAX_NAME_LENGTH:
            log.log("WARNING", f"Display name is {len(name)} characters (recommended max {MAX_NAME_LENGTH})")
        if not self.send(register(name)):
            return False
        log.log("INFO", f"Registered as '{name}'")
        self._advance(SessionState.REGISTERED)
        return True

    def submit(self, text: str) -> bool:
        """Send a submitted input line. Returns False once the input loop must stop."""
        line = encode_submission(text)
        if line is None:
            return self.active
        if not self.send(line):
            return False
        if is_exit(text):
            self.terminate(ExitStatus.SUCCESS, "exit requested")
            return False
        log.log("MESSAGE", f"Sent {len(line)} characters")
        return True

    def request_scroll_up(self) -> bool:
        """Ask for the message before the oldest one shown. No-op on an empty window."""
        with self.lock:
            index = self.window.head_index()
        if index is None:
            return False
        return self.send(scroll_up_request(index))

    def request_scroll_down(self) -> bool:
        """Ask for the message after the newest one shown. No-op on an empty window."""
        with self.lock:
            index = self.window.tail_index()
        if index is None:
            return False
        return self.send(scroll_down_request(index))

    def exit(self) -> None:
        """Leave gracefully, telling the server when it is still reachable"""
        if self.active and self.state is not SessionState.CONNECTED:
            self.submit(exit_command())
        self.terminate(ExitStatus.SUCCESS, "exit requested")

    # ============== Input loop ==============

    def handle(self, result: EditResult) -> bool:
        """One step of the input loop. Returns False when the loop must stop."""
        if result.kind is EditKind.SUBMITTED:
            return self.submit(result.text)
        if result.kind is EditKind.SCROLL_UP:
            self.request_scroll_up()
        elif result.kind is EditKind.SCROLL_DOWN:
            self.request_scroll_down()
        return self.active

    def run_input(self, events: Iterable[KeyEvent], editor: Optional[LineEditor] = None) -> Optional[ExitStatus]:
        """Drive the input loop from a blocking key source until it stops"""
        editor = editor or LineEditor()
        for event in events:
            if not self.handle(editor.feed(event)):
                break
        return self.exit_status

    # ============== Receive loop ==============

    def dispatch(self, line: str) -> Optional[List[str]]:
        """Apply one server line to the window; returns the bodies to draw, or None"""
        event = decode_server_line(line)
        if event is None:
            return None

        with self.lock:
            self.window.apply(event)
            bodies = self.window.bodies()

        if event.kind is not ServerEventKind.CHAT:
            log.log("SCROLL", f"{event.kind.value}: spliced in message {event.message.index}")
        return bodies

    def receive_loop(self, on_update: UpdateCallback,
                     on_terminate: Optional[TerminateCallback] = None) -> None:
        try:
            for line in self.transport.lines():
                bodies = self.dispatch(line)
                if bodies is None:
                    continue
                if not self.active:
                    return
                on_update(bodies)
        except TransportError as e:
            if self.terminate(ExitStatus.FAILURE, f"recv: {e}") and on_terminate:
                on_terminate(ExitStatus.FAILURE, self.reason)

    def start(self, on_update: UpdateCallback,
              on_terminate: Optional[TerminateCallback] = None) -> threading.Thread:
        """Enter the active state and spawn the receive loop"""
        self._advance(SessionState.ACTIVE)
        self.receive_thread = threading.Thread(
            target=self.receive_loop,
            args=(on_update, on_terminate),
            name="chat-receiver",
            daemon=True
        )
        self.receive_thread.start()
        return self.receive_thread
