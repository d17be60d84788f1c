"""Pytest configuration and fixtures"""
import datetime
import time

import pytest
import serial

from serial_monitor.colors import Console
from serial_monitor.config import MonitorConfig
from serial_monitor.session import Session

FIXED_TIME = datetime.datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=datetime.timezone.utc)
FIXED_STAMP = '2024-05-01T12:00:00.123Z'


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "integration: Tests driving a real pyserial loop:// port")


class FakeSerial:
    """Stand-in for an open pyserial handle"""

    def __init__(self, port, **settings):
        self.port = port
        self.settings = settings
        self.is_open = True
        self.in_waiting = 0
        self.written = []
        self.write_error = None
        self.read_error = None
        self.close_calls = 0

    def write(self, data):
        if self.write_error:
            raise self.write_error
        self.written.append(data)
        return len(data)

    def read(self, size=1):
        if self.read_error:
            raise self.read_error
        time.sleep(0.01)
        return b''

    def close(self):
        self.close_calls += 1
        self.is_open = False


class FakeOpener:
    """Callable replacing serial.serial_for_url; remembers every handle it opens"""

    def __init__(self):
        self.handles = []
        self.failures = {}

    def fail(self, path, message='could not open port'):
        self.failures[path] = serial.SerialException(message)

    def __call__(self, path, **settings):
        if path in self.failures:
            raise self.failures[path]
        handle = FakeSerial(path, **settings)
        self.handles.append(handle)
        return handle

    @property
    def last(self):
        return self.handles[-1]


@pytest.fixture
def output():
    """Lines printed by the console"""
    return []


@pytest.fixture
def console(output):
    return Console(color=False, write=output.append)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def fixed_stamp():
    return FIXED_STAMP


@pytest.fixture
def config(tmp_path):
    return MonitorConfig(log_dir=str(tmp_path / 'logs'), color=False)


@pytest.fixture
def opener():
    return FakeOpener()


@pytest.fixture
def session(config, console, opener, fixed_clock):
    """Session without a reader thread; tests deliver port events directly"""
    s = Session(config, console, opener=opener, clock=fixed_clock, threaded=False)
    yield s
    s.disconnect()


@pytest.fixture
def scripted_prompt():
    """Build a prompt function that replays answers, then raises EOFError"""
    def make(*answers):
        pending = list(answers)
        asked = []

        def prompt(message):
            asked.append(message)
            if not pending:
                raise EOFError
            answer = pending.pop(0)
            if isinstance(answer, BaseException):
                raise answer
            if callable(answer):
                return answer()
            return answer

        prompt.asked = asked
        return prompt

    return make
