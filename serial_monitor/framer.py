"""Split a raw serial byte stream into timestamped text lines"""

import datetime
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List

Clock = Callable[[], datetime.datetime]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def iso_timestamp(moment: datetime.datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T12:00:00.123Z"""
    if moment.tzinfo is not None:
        moment = moment.astimezone(datetime.timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


@dataclass(frozen=True)
class ReceivedLine:
    text: str
    timestamp: str

    def format(self) -> str:
        return f"[{self.timestamp}] {self.text}"


class LineFramer:
    """Buffers partial reads and emits one ReceivedLine per delimiter

    The delimiter is dropped. Bytes after the last delimiter stay in the
    buffer until more data arrives or ``reset()`` discards them.
    """

    def __init__(self, delimiter: bytes = b'\r\n', encoding: str = 'utf-8',
                 clock: Clock = utc_now):
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.delimiter = delimiter
        self.encoding = encoding
        self._clock = clock
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Unterminated bytes waiting for a delimiter"""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> List[ReceivedLine]:
        self._buffer.extend(chunk)
        lines = []

        # Search from the start each time; a delimiter can straddle two chunks
        while True:
            index = self._buffer.find(self.delimiter)
            if index < 0:
                break
            raw = bytes(self._buffer[:index])
            del self._buffer[:index + len(self.delimiter)]
            text = raw.decode(self.encoding, errors='replace')
            lines.append(ReceivedLine(text, iso_timestamp(self._clock())))

        return lines

    def iter_lines(self, chunks: Iterable[bytes]) -> Iterator[ReceivedLine]:
        """Lazily frame an iterable of chunks"""
        for chunk in chunks:
            yield from self.feed(chunk)

    def reset(self):
        self._buffer.clear()
