"""Tests for configuration loading"""
import pytest

from serial_monitor.config import BAUD_RATES, MonitorConfig, load_config
from serial_monitor.errors import ConfigError


class TestLoadConfig:

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config == MonitorConfig()
        assert config.default_baud == 115200
        assert config.baud_rates == BAUD_RATES
        assert config.delimiter_bytes == b'\r\n'
        assert str(config.log_path) == 'logs'

    def test_yaml_file_overrides_defaults(self, tmp_path):
        path = tmp_path / 'bench.yaml'
        path.write_text('log_dir: captures\ndefault_baud: 9600\ncolor: false\n')
        config = load_config(str(path))
        assert config.log_dir == 'captures'
        assert config.default_baud == 9600
        assert config.color is False

    def test_flags_override_yaml(self, tmp_path):
        path = tmp_path / 'bench.yaml'
        path.write_text('default_baud: 9600\n')
        config = load_config(str(path), default_baud=921600, log_dir=None)
        assert config.default_baud == 921600
        assert config.log_dir == 'logs'

    def test_default_file_in_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / 'serial_monitor.yaml').write_text('encoding: latin-1\n')
        monkeypatch.chdir(tmp_path)
        assert load_config().encoding == 'latin-1'

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text('')
        assert load_config(str(path)) == MonitorConfig()

    @pytest.mark.parametrize('content', [
        'baud: 9600\n',
        '- just\n- a list\n',
        'default_baud: 12345\n',
        'baud_rates: []\n',
        'read_size: 0\n',
        'encoding: no-such-codec\n',
        'delimiter: ""\n',
        'log_dir: [unterminated\n',
        'read_size: abc\n',
        'read_timeout: fast\n',
        'read_timeout: true\n',
        'encoding: 5\n',
        'delimiter: 5\n',
        'log_dir: 7\n',
        'color: maybe\n',
        'default_baud: "115200"\n',
        'baud_rates: 9600\n',
        'encoding: utf-16\n',
        'encoding: utf-32\n',
        'encoding: base64\n',
        'encoding: ascii\ndelimiter: "\\u00a7"\n',
    ])
    def test_invalid_files_rejected(self, tmp_path, content):
        path = tmp_path / 'bad.yaml'
        path.write_text(content)
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / 'missing.yaml'))

    def test_bom_free_multibyte_encoding_accepted(self, tmp_path):
        path = tmp_path / 'wide.yaml'
        path.write_text('encoding: utf-16-le\n')
        config = load_config(str(path))
        assert config.delimiter_bytes == b'\r\x00\n\x00'
