"""
Wire codec: bytes on the socket <-> text in the editor and the window.
"""

import codecs
from typing import List

from config import ENCODING


def encode(text: str) -> bytes:
    return text.encode(ENCODING)


def encode_line(line: str) -> bytes:
    """Encode one outbound wire line with its terminator"""
    return encode(line + '\n')


class LineDecoder:
    """
    Incremental decoder that rebuilds server lines from recv() chunks.

    A chunk may end in the middle of a line or in the middle of a multibyte
    character; both are held back until the rest arrives.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder(ENCODING)(errors='replace')
        self.buffer = ""

    def feed(self, data: bytes) -> List[str]:
        self.buffer += self._decoder.decode(data)
        lines = []
        while '\n' in self.buffer:
            line, self.buffer = self.buffer.split('\n', 1)
            lines.append(line.rstrip('\r'))
        return lines

    def flush(self) -> List[str]:
        """Return whatever is left once the stream has ended"""
        self.buffer += self._decoder.decode(b'', final=True)
        rest, self.buffer = self.buffer, ""
        return [rest.rstrip('\r')] if rest else []
