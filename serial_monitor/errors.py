"""Error types raised by the serial monitor"""


class SerialMonitorError(Exception):
    """Base class for all serial monitor errors"""


class PortOpenError(SerialMonitorError):
    """Port could not be opened (busy, missing, permission denied)"""


class PortRuntimeError(SerialMonitorError):
    """Port failed after it was opened (device removed, I/O error)"""


class WriteError(SerialMonitorError):
    """Writing a command to the port failed"""


class FileSystemError(SerialMonitorError):
    """Log file could not be created, opened or written"""


class SessionStateError(SerialMonitorError):
    """Operation is not valid in the current session state"""


class ConfigError(SerialMonitorError):
    """Configuration file or values are invalid"""
