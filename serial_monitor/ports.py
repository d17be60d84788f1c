"""Serial port enumeration"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import serial.tools.list_ports

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortDescriptor:
    path: str
    manufacturer: Optional[str] = None
    serial_number: Optional[str] = None

    def label(self) -> str:
        text = f"{self.path} - {self.manufacturer or 'Unknown'}"
        if self.serial_number:
            text += f" (SN: {self.serial_number})"
        return text


def list_ports() -> List[PortDescriptor]:
    """Return attached serial ports in the order the OS reports them"""
    ports = [
        PortDescriptor(p.device, p.manufacturer, p.serial_number)
        for p in serial.tools.list_ports.comports()
    ]
    logger.debug("Found %d serial port(s)", len(ports))
    return ports
