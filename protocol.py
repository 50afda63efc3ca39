"""
Chat wire protocol: command lines the client sends and the lines it receives.

    C->S  /register <name> | <free text> | /exit | /scroll_up <i> | /scroll_down <i>
    S->C  <i> <body> | /scroll_up <i> <body> | /scroll_down <i> <body>
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from eventlog import log


REGISTER = '/register'
EXIT = '/exit'
SCROLL_UP = '/scroll_up'
SCROLL_DOWN = '/scroll_down'


class ProtocolError(ValueError):
    """A server line that cannot be read as an indexed message"""


@dataclass(frozen=True)
class IndexedMessage:
    index: int
    body: str

    @classmethod
    def parse(cls, text: str) -> 'IndexedMessage':
        """Read '<index> <body>'; the body may be empty"""
        index_str, _, body = text.partition(' ')
        try:
            index = int(index_str)
        except ValueError:
            raise ProtocolError(f"Bad message index: {index_str!r}") from None
        return cls(index, body)

    def __str__(self) -> str:
        return f"{self.index} {self.body}"


class ServerEventKind(Enum):
    CHAT = "chat"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"


@dataclass(frozen=True)
class ServerEvent:
    kind: ServerEventKind
    message: IndexedMessage


SERVER_COMMANDS = {
    SCROLL_UP: ServerEventKind.SCROLL_UP,
    SCROLL_DOWN: ServerEventKind.SCROLL_DOWN,
}


def split_command(line: str) -> Tuple[str, str]:
    """'/cmd args...' -> ('/cmd', 'args...')"""
    command, _, arguments = line.partition(' ')
    return command, arguments


def decode_server_line(line: str) -> Optional[ServerEvent]:
    """
    Turn one inbound line into a window event.

    Returns None for lines the client has nothing to do with: blank lines,
    commands it does not know, and messages without a numeric index.
    """
    if not line.strip():
        return None

    if line.startswith('/'):
        command, arguments = split_command(line)
        kind = SERVER_COMMANDS.get(command)
        if kind is None:
            log.log("WARNING", f"Ignoring unknown server command: {command}")
            return None
    else:
        kind, arguments = ServerEventKind.CHAT, line

    try:
        return ServerEvent(kind, IndexedMessage.parse(arguments))
    except ProtocolError as e:
        log.log("WARNING", f"Ignoring malformed server line {line!r}: {e}")
        return None


# ============== Outbound ==============

def register(name: str) -> str:
    return f"{REGISTER} {name}"


def plain(text: str) -> str:
    return text


def exit_command() -> str:
    return EXIT


def scroll_up_request(oldest_index: int) -> str:
    return f"{SCROLL_UP} {oldest_index}"


def scroll_down_request(newest_index: int) -> str:
    return f"{SCROLL_DOWN} {newest_index}"


def is_exit(text: str) -> bool:
    return text.strip() == EXIT


def encode_submission(text: str) -> Optional[str]:
    """Wire line for a submitted input line, or None when there is nothing to send"""
    if is_exit(text):
        return exit_command()
    if not text:
        return None
    return plain(text)
