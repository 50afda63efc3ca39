"""
Event log for the chat client.

The terminal belongs to the UI, so entries go to a file through a rich
Console instead of stdout.
"""

import threading
from datetime import datetime
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape

from config import LOG_FILE, LOG_LEVEL


COLOR_MAP = {
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CONNECTION': 'cyan',
    'MESSAGE': 'blue',
    'SCROLL': 'magenta',
    'DEBUG': 'dim white',
}

LEVEL_RANK = {
    'DEBUG': 10,
    'MESSAGE': 20,
    'SCROLL': 20,
    'CONNECTION': 20,
    'INFO': 20,
    'WARNING': 30,
    'ERROR': 40,
}


class EventLog:
    """Timestamped, level-tagged log lines written through a rich Console"""

    def __init__(self, path: Optional[str] = LOG_FILE, level: str = LOG_LEVEL,
                 console: Optional[Console] = None):
        self.path = path
        self.threshold = LEVEL_RANK.get(level, LEVEL_RANK['INFO'])
        self.console = console
        self._file: Optional[TextIO] = None
        self._lock = threading.Lock()

    def _open(self) -> Optional[Console]:
        if self.console is None and self.path:
            self._file = open(self.path, 'a', encoding='utf-8')
            self.console = Console(file=self._file, force_terminal=False,
                                   width=120, soft_wrap=True)
        return self.console

    def enabled(self, level: str) -> bool:
        return LEVEL_RANK.get(level, LEVEL_RANK['INFO']) >= self.threshold

    def log(self, level: str, message: str) -> None:
        """Log a message with timestamp"""
        if not self.enabled(level):
            return

        timestamp = datetime.now().strftime('%H:%M:%S')
        color = COLOR_MAP.get(level, 'white')
        with self._lock:
            console = self._open()
            if console is None:
                return
            console.print(f"[dim]{timestamp}[/] [{color}][{level:^10}][/{color}] {escape(message)}",
                          highlight=False)
            if self._file:
                self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file:
                self._file.close()
                self._file = None
                self.console = None


log = EventLog()
