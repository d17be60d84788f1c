"""Interactive serial port monitor with timestamped display and file logging"""

__version__ = '1.0.0'
