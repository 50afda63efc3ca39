"""
Single-line input editor.

apply() is a pure transition over one InputLine; the display surface turns
raw keys into KeyEvents and re-renders after every result.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict


class Key(Enum):
    PRINTABLE = "printable"
    BACKSPACE = "backspace"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    ENTER = "enter"


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    char: str = ""

    @classmethod
    def printable(cls, char: str) -> 'KeyEvent':
        if len(char) != 1:
            raise ValueError(f"Printable key must be one character, got {char!r}")
        return cls(Key.PRINTABLE, char)


BACKSPACE = KeyEvent(Key.BACKSPACE)
LEFT = KeyEvent(Key.LEFT)
RIGHT = KeyEvent(Key.RIGHT)
UP = KeyEvent(Key.UP)
DOWN = KeyEvent(Key.DOWN)
ENTER = KeyEvent(Key.ENTER)


@dataclass(frozen=True)
class InputLine:
    text: str = ""
    cursor: int = 0

    def __post_init__(self):
        if not 0 <= self.cursor <= len(self.text):
            raise ValueError(f"Cursor {self.cursor} outside 0..{len(self.text)}")


class EditKind(Enum):
    EDITING = "still-editing"
    SUBMITTED = "submitted"
    SCROLL_UP = "scroll-up-requested"
    SCROLL_DOWN = "scroll-down-requested"


@dataclass(frozen=True)
class EditResult:
    kind: EditKind
    line: InputLine = InputLine()
    text: str = ""

    @property
    def done(self) -> bool:
        """True when the result ends the edit cycle for this line"""
        return self.kind is not EditKind.EDITING


def _editing(line: InputLine) -> EditResult:
    return EditResult(EditKind.EDITING, line)


def _insert(line: InputLine, event: KeyEvent) -> EditResult:
    text = line.text[:line.cursor] + event.char + line.text[line.cursor:]
    return _editing(InputLine(text, line.cursor + 1))


def _backspace(line: InputLine) -> EditResult:
    if not line.text or line.cursor == 0:
        return _editing(line)
    text = line.text[:line.cursor - 1] + line.text[line.cursor:]
    return _editing(InputLine(text, line.cursor - 1))


def _left(line: InputLine) -> EditResult:
    if line.cursor == 0:
        return _editing(line)
    return _editing(replace(line, cursor=line.cursor - 1))


def _right(line: InputLine) -> EditResult:
    if line.cursor == len(line.text):
        return _editing(line)
    return _editing(replace(line, cursor=line.cursor + 1))


HANDLERS: Dict[Key, Callable[[InputLine, KeyEvent], EditResult]] = {
    Key.PRINTABLE: _insert,
    Key.BACKSPACE: lambda line, event: _backspace(line),
    Key.LEFT: lambda line, event: _left(line),
    Key.RIGHT: lambda line, event: _right(line),
    Key.UP: lambda line, event: EditResult(EditKind.SCROLL_UP, line),
    Key.DOWN: lambda line, event: EditResult(EditKind.SCROLL_DOWN, line),
    Key.ENTER: lambda line, event: EditResult(EditKind.SUBMITTED, line, line.text),
}


def apply(line: InputLine, event: KeyEvent) -> EditResult:
    """Apply one key event to the line being edited"""
    return HANDLERS[event.key](line, event)


class LineEditor:
    """Holds the line in progress; every terminating result starts a fresh one"""

    def __init__(self):
        self.line = InputLine()

    def feed(self, event: KeyEvent) -> EditResult:
        result = apply(self.line, event)
        self.line = InputLine() if result.done else result.line
        return result

