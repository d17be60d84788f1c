"""Append-only text log for received lines"""

import logging
from pathlib import Path
from typing import Optional, TextIO

from serial_monitor.errors import FileSystemError

logger = logging.getLogger(__name__)


class LogSink:
    def __init__(self, path):
        self.path = Path(path)
        self._file: Optional[TextIO] = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> 'LogSink':
        """Create parent directories and open the file for appending"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self.path.open('a', encoding='utf-8')
        except OSError as e:
            raise FileSystemError(f"Failed to create log file {self.path}: {e}") from e
        logger.debug("Opened log file %s", self.path)
        return self

    def write(self, line: str):
        if self._file is None:
            raise FileSystemError(f"Log file {self.path} is not open")
        try:
            self._file.write(f"{line}\n")
            self._file.flush()
        except OSError as e:
            raise FileSystemError(f"Failed to write to {self.path}: {e}") from e

    def close(self):
        if self._file is None:
            return
        f, self._file = self._file, None
        try:
            try:
                f.flush()
            finally:
                f.close()
        except OSError as e:
            raise FileSystemError(f"Failed to close {self.path}: {e}") from e
        logger.debug("Closed log file %s", self.path)
