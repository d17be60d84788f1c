"""Integration tests running the reader thread against real pyserial handles"""
import pytest
import serial

from serial_monitor.session import Session
from utils.base_test import SerialMonitorTestBase

pytestmark = pytest.mark.integration


@pytest.fixture
def live_session(config, console, fixed_clock):
    s = Session(config, console, clock=fixed_clock)
    yield s
    s.disconnect()


class TestLoopback(SerialMonitorTestBase):

    def test_sent_command_echoes_back_as_line(self, live_session, output, fixed_stamp):
        live_session.connect('loop://', 115200)
        live_session.send('hello')
        assert self.wait_for(lambda: f'[{fixed_stamp}] hello' in output)

    def test_echoed_lines_are_logged(self, live_session, fixed_stamp):
        live_session.connect('loop://', 115200)
        path = live_session.toggle_logging('loop.txt')
        live_session.send('ping')
        live_session.send('pong')

        expected = f'[{fixed_stamp}] ping\n[{fixed_stamp}] pong\n'
        assert self.wait_for(lambda: path.read_text() == expected)

    def test_disconnect_stops_reader(self, live_session):
        connection = live_session.connect('loop://', 115200)
        assert connection.reader.is_alive()
        live_session.disconnect()
        assert not connection.reader.is_alive()
        assert not connection.is_open

    def test_read_error_forces_disconnect(self, config, console, opener, output, fixed_clock):
        session = Session(config, console, opener=opener, clock=fixed_clock)
        session.connect('/dev/ttyUSB0', 115200)
        session.toggle_logging('out.txt')
        opener.last.read_error = serial.SerialException('device reports readiness to read but returned no data')

        assert self.wait_for(lambda: not session.is_connected)
        assert not session.is_logging
        assert opener.last.close_calls == 1
        self.assert_printed(output, 'Serial port error: device reports readiness')

    def test_port_closed_underneath(self, config, console, opener, output, fixed_clock):
        session = Session(config, console, opener=opener, clock=fixed_clock)
        session.connect('/dev/ttyUSB0', 115200)
        opener.last.is_open = False

        assert self.wait_for(lambda: not session.is_connected)
        self.assert_printed(output, 'Serial connection closed')
