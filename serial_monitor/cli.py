#!/usr/bin/env python3
"""
Serial Monitor CLI

Interactive serial terminal: pick a port and baud rate, watch timestamped
lines, send commands and tee received data to a log file.

Usage:
    serial-monitor
    serial-monitor --baud 921600 --log-dir captures
    serial-monitor --config bench.yaml --no-color -v
"""

import argparse
import logging
import sys
from typing import List, Optional

from serial_monitor import __version__
from serial_monitor.colors import Console
from serial_monitor.config import load_config
from serial_monitor.errors import ConfigError
from serial_monitor.menu import MenuDriver
from serial_monitor.ports import list_ports
from serial_monitor.session import Session

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Interactive serial port monitor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  serial-monitor                         # Defaults (115200 baud, logs/)
  serial-monitor --baud 9600             # Preselect 9600 in the baud menu
  serial-monitor --log-dir captures      # Write log files under captures/
  serial-monitor --config bench.yaml     # Load settings from a YAML file
        """
    )
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='YAML config file (default: serial_monitor.yaml if present)')
    parser.add_argument('--log-dir', metavar='DIR',
                        help='Directory for log files (default: logs)')
    parser.add_argument('-b', '--baud', type=int, metavar='RATE',
                        help='Default baud rate offered in the menu (default: 115200)')
    parser.add_argument('--no-color', action='store_true',
                        help='Disable ANSI colours')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser.parse_args(argv)


def print_banner(console: Console):
    console.info('=' * 35)
    console.info('       Serial Monitor CLI')
    console.info('=' * 35)


def main(argv: Optional[List[str]] = None, prompt=input, port_lister=list_ports) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        config = load_config(
            args.config,
            log_dir=args.log_dir,
            default_baud=args.baud,
            color=False if args.no_color else None,
        )
    except ConfigError as e:
        Console(not args.no_color).error(f"Configuration error: {e}")
        return 1

    session = Session(config)
    console = session.console
    menu = MenuDriver(session, port_lister=port_lister, prompt=prompt)

    print_banner(console)
    try:
        menu.run()
    except KeyboardInterrupt:
        console.notice("\nGracefully shutting down...")
        session.disconnect()
        return 0
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        console.error(f"Error: {e}")
        session.disconnect()
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
