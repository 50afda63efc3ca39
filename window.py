"""
Scroll window: the locally visible slice of the server's message log.
"""

from collections import deque
from typing import Deque, List, Optional

from config import WINDOW_CAPACITY
from protocol import IndexedMessage, ServerEvent, ServerEventKind


class ScrollWindow:
    """
    Messages in ascending index order.

    New chat grows the tail up to `capacity`, dropping from the head.
    Scrolling swaps one message at one end for one at the other, so the
    size stays the same.

    Not thread-safe on its own; the session holds the lock.
    """

    def __init__(self, capacity: int = WINDOW_CAPACITY):
        self.capacity = capacity
        self.messages: Deque[IndexedMessage] = deque()

    def append(self, message: IndexedMessage) -> None:
        if len(self.messages) >= self.capacity:
            self.messages.popleft()
        self.messages.append(message)

    def scroll_up(self, message: IndexedMessage) -> None:
        """Slide one step toward older history"""
        if self.messages:
            self.messages.pop()
        self.messages.appendleft(message)

    def scroll_down(self, message: IndexedMessage) -> None:
        """Slide one step toward newer history"""
        if self.messages:
            self.messages.popleft()
        self.messages.append(message)

    def apply(self, event: ServerEvent) -> None:
        if event.kind is ServerEventKind.SCROLL_UP:
            self.scroll_up(event.message)
        elif event.kind is ServerEventKind.SCROLL_DOWN:
            self.scroll_down(event.message)
        else:
            self.append(event.message)

    def head_index(self) -> Optional[int]:
        return self.messages[0].index if self.messages else None

    def tail_index(self) -> Optional[int]:
        return self.messages[-1].index if self.messages else None

    def bodies(self) -> List[str]:
        return [message.body for message in self.messages]

