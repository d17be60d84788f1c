"""Interactive operator menus"""

import logging
from typing import Callable, List, Sequence, Tuple

from serial_monitor.errors import SerialMonitorError
from serial_monitor.ports import PortDescriptor, list_ports
from serial_monitor.session import Session

logger = logging.getLogger(__name__)

Choice = Tuple[str, object]


class MenuDriver:
    """Loops over the session state, showing the matching menu each time

    Disconnected: Connect, Exit. Connected: Disconnect, Send command,
    Start/Stop logging, Exit. All operational errors are reported here
    and the loop carries on.
    """

    def __init__(self, session: Session,
                 port_lister: Callable[[], List[PortDescriptor]] = list_ports,
                 prompt: Callable[[str], str] = input):
        self.session = session
        self.console = session.console
        self._list_ports = port_lister
        self._prompt = prompt

    def run(self):
        try:
            while True:
                if self.session.is_connected:
                    keep_going = self.connected_menu()
                else:
                    keep_going = self.disconnected_menu()
                if not keep_going:
                    break
        except EOFError:
            logger.debug("Input closed, exiting")
            self.session.disconnect()
        self.console.info("Goodbye!")

    def choose(self, message: str, choices: Sequence[Choice], default=None):
        """Show numbered choices and return the selected value"""
        default_index = None
        for i, (label, value) in enumerate(choices, 1):
            marker = ''
            if default is not None and value == default:
                default_index = i
                marker = ' (default)'
            self.console.plain(f"  {i}) {label}{marker}")

        while True:
            answer = self._prompt(f"{message} [1-{len(choices)}]: ").strip()
            if not answer and default_index is not None:
                return choices[default_index - 1][1]
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1][1]
            self.console.error(f"Please enter a number between 1 and {len(choices)}")

    def disconnected_menu(self) -> bool:
        self.console.plain()
        action = self.choose('What would you like to do?', [
            ('Connect to a device', 'connect'),
            ('Exit', 'exit'),
        ])
        if action == 'connect':
            self.connect_to_device()
            return True
        return False

    def connected_menu(self) -> bool:
        connection = self.session.connection
        if connection is None:
            return True

        self.console.plain()
        action = self.choose(f"Connected to {connection.path}. What would you like to do?", [
            ('Disconnect', 'disconnect'),
            ('Send command', 'send'),
            ('Start/Stop logging to file', 'log'),
            ('Exit', 'exit'),
        ])

        if action == 'exit':
            self.session.disconnect()
            return False
        if self.session.connection is not connection:
            # Reader thread dropped the port while the prompt was open
            self.console.notice(f"Connection to {connection.path} was lost")
            return True

        if action == 'disconnect':
            self.session.disconnect()
        elif action == 'send':
            self.send_command()
        elif action == 'log':
            self.toggle_logging()
        return True

    def connect_to_device(self):
        ports = self._list_ports()
        if not ports:
            self.console.notice("No serial ports detected. Please connect a device.")
            return

        path = self.choose('Select a serial port:',
                           [(port.label(), port.path) for port in ports])
        baud_rate = self.choose('Select baud rate:',
                                [(str(rate), rate) for rate in self.session.config.baud_rates],
                                default=self.session.config.default_baud)

        self.console.notice(f"Connecting to {path} at {baud_rate} baud...")
        try:
            self.session.connect(path, baud_rate)
        except SerialMonitorError as e:
            self.console.error(f"Connection error: {e}")

    def send_command(self):
        command = self._prompt('Enter command to send: ')
        try:
            self.session.send(command)
        except SerialMonitorError as e:
            self.console.error(str(e))
            return
        self.console.success(f"Command sent: {command}")

    def toggle_logging(self):
        file_name = None
        if not self.session.is_logging:
            default = self.session.default_log_name()
            file_name = self._prompt(f"Enter log file name [{default}]: ").strip() or default
        try:
            self.session.toggle_logging(file_name)
        except SerialMonitorError as e:
            self.console.error(str(e))
