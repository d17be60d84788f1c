"""Serial session state machine

A Session owns at most one open Connection and at most one LogSink. Operator
operations (connect, disconnect, send, toggle_logging) and asynchronous port
events (delivered by the per-connection PortReader thread) are serialised by
a single lock, so the connection and log are never mutated concurrently.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import serial

from serial_monitor.colors import Console
from serial_monitor.config import MonitorConfig
from serial_monitor.errors import (FileSystemError, PortOpenError, PortRuntimeError,
                                   SessionStateError, WriteError)
from serial_monitor.framer import Clock, LineFramer, ReceivedLine, iso_timestamp, utc_now
from serial_monitor.log_sink import LogSink

logger = logging.getLogger(__name__)


class SessionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTED = 'connected'


class EventKind(Enum):
    OPENED = 'opened'
    DATA = 'data'
    ERRORED = 'errored'
    CLOSED = 'closed'


def default_log_name(moment) -> str:
    return f"serial_log_{iso_timestamp(moment).replace(':', '-')}.txt"


class Connection:
    """An open port at fixed 8N1 framing"""

    data_bits = 8
    stop_bits = 1
    parity = 'none'

    def __init__(self, path: str, baud_rate: int, handle):
        self.path = path
        self.baud_rate = baud_rate
        self.handle = handle
        self.reader: Optional['PortReader'] = None

    @property
    def is_open(self) -> bool:
        return bool(getattr(self.handle, 'is_open', False))

    def __str__(self):
        return f"{self.path} @ {self.baud_rate} baud"


@dataclass(frozen=True)
class PortEvent:
    kind: EventKind
    connection: Connection
    data: bytes = b''
    error: Optional[BaseException] = None


class PortReader(threading.Thread):
    """Reads from a connection and posts DATA, ERRORED or CLOSED events"""

    def __init__(self, connection: Connection, dispatch: Callable[[PortEvent], None],
                 read_size: int = 1024):
        super().__init__(name=f"reader-{connection.path}", daemon=True)
        self.connection = connection
        self._dispatch = dispatch
        self._read_size = read_size
        self._stopping = threading.Event()

    def stop(self):
        self._stopping.set()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def run(self):
        handle = self.connection.handle
        while not self.stopping:
            try:
                if not handle.is_open:
                    self._post(EventKind.CLOSED)
                    break
                data = handle.read(min(handle.in_waiting or 1, self._read_size))
            except (serial.SerialException, OSError) as e:
                self._post(EventKind.ERRORED, error=e)
                break

            if data:
                self._post(EventKind.DATA, data=data)

        logger.debug("Reader for %s finished", self.connection.path)

    def _post(self, kind: EventKind, **kwargs):
        # Errors raised by our own close during shutdown are not reported
        if self.stopping:
            return
        self._dispatch(PortEvent(kind, self.connection, **kwargs))


class Session:
    def __init__(self, config: Optional[MonitorConfig] = None,
                 console: Optional[Console] = None,
                 opener: Callable = serial.serial_for_url,
                 clock: Clock = utc_now,
                 threaded: bool = True):
        self.config = config or MonitorConfig()
        self.console = console or Console(self.config.color)
        self._opener = opener
        self._clock = clock
        self._threaded = threaded
        self._lock = threading.RLock()
        self._connection: Optional[Connection] = None
        self._log: Optional[LogSink] = None
        self._framer = LineFramer(self.config.delimiter_bytes, self.config.encoding, clock)
        self.stats = {'lines': 0, 'bytes': 0, 'commands': 0}

    @property
    def state(self) -> SessionState:
        if self._connection is None:
            return SessionState.DISCONNECTED
        return SessionState.CONNECTED

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def is_logging(self) -> bool:
        return self._log is not None

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    @property
    def log_path(self) -> Optional[Path]:
        return self._log.path if self._log else None

    def connect(self, port_path: str, baud_rate: int) -> Connection:
        """Open ``port_path`` at ``baud_rate`` with 8N1 framing"""
        with self._lock:
            if self._connection is not None:
                raise SessionStateError(f"Already connected to {self._connection.path}")

            try:
                baud_rate = int(baud_rate)
            except (TypeError, ValueError):
                raise PortOpenError(f"Invalid baud rate: {baud_rate!r}")
            if baud_rate <= 0:
                raise PortOpenError(f"Invalid baud rate: {baud_rate}")

            logger.info("Opening %s at %d baud", port_path, baud_rate)
            try:
                handle = self._opener(
                    port_path,
                    baudrate=baud_rate,
                    bytesize=serial.EIGHTBITS,
                    parity=serial.PARITY_NONE,
                    stopbits=serial.STOPBITS_ONE,
                    timeout=self.config.read_timeout,
                )
            except (serial.SerialException, OSError, ValueError) as e:
                raise PortOpenError(f"Failed to open {port_path}: {e}") from e

            connection = Connection(port_path, baud_rate, handle)
            self._connection = connection
            self._framer.reset()
            self.stats = {'lines': 0, 'bytes': 0, 'commands': 0}
            self.handle_event(PortEvent(EventKind.OPENED, connection))

            if self._threaded:
                connection.reader = PortReader(connection, self.handle_event,
                                               self.config.read_size)
                connection.reader.start()

            return connection

    def disconnect(self) -> bool:
        """Close the port and any open log. Returns False if already disconnected."""
        with self._lock:
            connection = self._detach()
        if connection is None:
            return False
        self._release(connection)
        self.console.notice("Disconnected from serial device")
        return True

    def send(self, command: str) -> int:
        """Write ``command`` followed by the line terminator"""
        with self._lock:
            connection = self._require_connection()
            try:
                payload = f"{command}{self.config.delimiter}".encode(self.config.encoding)
            except UnicodeEncodeError as e:
                raise WriteError(f"Cannot encode command: {e}") from e
            try:
                written = connection.handle.write(payload)
            except (serial.SerialException, OSError) as e:
                raise WriteError(f"Failed to send command: {e}") from e
            self.stats['commands'] += 1
            logger.debug("Sent %r to %s", payload, connection.path)
            return len(payload) if written is None else written

    def toggle_logging(self, file_name: Optional[str] = None) -> Optional[Path]:
        """Start logging to ``log_dir/file_name``, or stop if already logging

        Returns the log path when logging starts and None when it stops.
        """
        with self._lock:
            self._require_connection()
            if self._log is not None:
                self._close_log()
                return None

            name = file_name or default_log_name(self._clock())
            sink = LogSink(self.config.log_path / name).open()
            self._log = sink
            self.console.success(f"Logging to {sink.path}")
            return sink.path

    def handle_event(self, event: PortEvent):
        """Single entry point for asynchronous port events"""
        released = None
        with self._lock:
            if event.connection is not self._connection:
                logger.debug("Ignoring %s event from stale connection %s",
                             event.kind.name, event.connection.path)
                return

            if event.kind is EventKind.OPENED:
                connection = event.connection
                self.console.success(f"Connected to {connection.path} at {connection.baud_rate} baud")
            elif event.kind is EventKind.DATA:
                self.stats['bytes'] += len(event.data)
                for line in self._framer.feed(event.data):
                    self._on_line(line)
            elif event.kind is EventKind.ERRORED:
                error = PortRuntimeError(f"Serial port error: {event.error}")
                logger.warning("%s", error)
                self.console.error(str(error))
                released = self._detach()
            elif event.kind is EventKind.CLOSED:
                self.console.notice("Serial connection closed")
                released = self._detach()

        if released is not None:
            self._release(released)

    def default_log_name(self) -> str:
        return default_log_name(self._clock())

    def print_stats(self):
        self.console.plain(
            f"Lines received: {self.stats['lines']}  "
            f"Bytes received: {self.stats['bytes']}  "
            f"Commands sent: {self.stats['commands']}")

    def _on_line(self, line: ReceivedLine):
        self.stats['lines'] += 1
        entry = line.format()
        self.console.line(entry)
        if self._log is None:
            return
        try:
            self._log.write(entry)
        except FileSystemError as e:
            # Keep the connection; the operator can restart logging
            self.console.error(str(e))

    def _require_connection(self) -> Connection:
        if self._connection is None:
            raise SessionStateError("Not connected to any device")
        return self._connection

    def _detach(self) -> Optional[Connection]:
        """Unbind the connection and close the log. Caller holds the lock."""
        connection = self._connection
        if connection is None:
            return None
        self._connection = None
        self._framer.reset()
        if connection.reader is not None:
            connection.reader.stop()
        if self._log is not None:
            self._close_log()
        return connection

    def _release(self, connection: Connection):
        """Stop the reader and close the port. Called without the lock held."""
        reader = connection.reader
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=max(1.0, self.config.read_timeout * 10))
            if reader.is_alive():
                logger.warning("Reader for %s did not stop", connection.path)
        try:
            connection.handle.close()
        except (serial.SerialException, OSError) as e:
            logger.warning("Error closing %s: %s", connection.path, e)
        logger.info("Closed %s", connection.path)
        self.print_stats()

    def _close_log(self):
        sink, self._log = self._log, None
        try:
            sink.close()
        except FileSystemError as e:
            self.console.error(str(e))
        self.console.notice("Logging stopped")
