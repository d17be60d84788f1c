"""Monitor configuration

Defaults can be overridden by a YAML file and then by command-line flags.
Example ``serial_monitor.yaml``::

    log_dir: captures
    default_baud: 921600
    encoding: latin-1
    color: false
"""

import codecs
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional

import yaml

from serial_monitor.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'serial_monitor.yaml'
BAUD_RATES = [9600, 19200, 38400, 57600, 115200, 230400, 460800, 921600]
DEFAULT_BAUD = 115200
LINE_DELIMITER = '\r\n'


@dataclass(frozen=True)
class MonitorConfig:
    log_dir: str = 'logs'
    default_baud: int = DEFAULT_BAUD
    baud_rates: List[int] = field(default_factory=lambda: list(BAUD_RATES))
    delimiter: str = LINE_DELIMITER
    encoding: str = 'utf-8'
    read_size: int = 1024
    read_timeout: float = 0.1
    color: bool = True

    @property
    def log_path(self) -> Path:
        return Path(self.log_dir)

    @property
    def delimiter_bytes(self) -> bytes:
        return self.delimiter.encode(self.encoding)

    def validate(self) -> 'MonitorConfig':
        """Check value types and ranges, raising ConfigError on the first problem"""
        for name in ('log_dir', 'delimiter', 'encoding'):
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{name} must be a string, got {getattr(self, name)!r}")
        for name in ('default_baud', 'read_size'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.read_timeout, bool) or not isinstance(self.read_timeout, (int, float)):
            raise ConfigError(f"read_timeout must be a number, got {self.read_timeout!r}")
        if not isinstance(self.color, bool):
            raise ConfigError(f"color must be true or false, got {self.color!r}")
        if not isinstance(self.baud_rates, list) or not self.baud_rates or any(
                isinstance(b, bool) or not isinstance(b, int) or b <= 0 for b in self.baud_rates):
            raise ConfigError(f"baud_rates must be positive integers: {self.baud_rates!r}")

        if self.default_baud not in self.baud_rates:
            raise ConfigError(f"default_baud {self.default_baud} is not one of {self.baud_rates}")
        if not self.delimiter:
            raise ConfigError("delimiter must not be empty")
        if self.read_size <= 0:
            raise ConfigError(f"read_size must be positive, got {self.read_size}")
        if self.read_timeout <= 0:
            raise ConfigError(f"read_timeout must be positive, got {self.read_timeout}")

        try:
            codecs.lookup(self.encoding)
            empty = ''.encode(self.encoding)
        except LookupError:
            raise ConfigError(f"Unknown text encoding: {self.encoding}")
        # utf-16/utf-32 prefix a byte order mark to every encoded string
        if empty:
            raise ConfigError(f"Encoding {self.encoding} writes a byte order mark; "
                              "use a variant without one, e.g. utf-16-le")
        try:
            self.delimiter.encode(self.encoding)
        except UnicodeEncodeError:
            raise ConfigError(f"delimiter cannot be encoded as {self.encoding}")
        return self


def load_config(path: Optional[str] = None, **overrides) -> MonitorConfig:
    """Build a MonitorConfig from defaults, an optional YAML file and overrides

    When ``path`` is None the default file in the working directory is used
    if it exists. Overrides with a value of None are ignored.
    """
    values = {}

    if path is None and os.path.exists(DEFAULT_CONFIG_FILE):
        path = DEFAULT_CONFIG_FILE

    if path is not None:
        values.update(_read_yaml(path))

    values.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(MonitorConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    config = replace(MonitorConfig(), **values)
    logger.debug("Loaded configuration: %s", config)
    return config.validate()


def _read_yaml(path: str) -> dict:
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.debug("Read %d keys from %s", len(data), path)
    return data
