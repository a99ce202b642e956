"""Tests for atomsync.config_loader — file discovery and override merging."""

from pathlib import Path

import pytest

from atomsync._errors import ConfigError
from atomsync.config_loader import load_config


class TestLoadConfig:

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.port == 8080
        assert config.host == "127.0.0.1"

    def test_yaml_top_level(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("port: 9100\nverbose: true\n")
        config = load_config(tmp_path)
        assert config.port == 9100
        assert config.verbose is True

    def test_yml_extension(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yml").write_text("host: 0.0.0.0\n")
        assert load_config(tmp_path).host == "0.0.0.0"

    def test_yaml_section(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text(
            "atomsync:\n  port: 9200\n  outbound_queue_size: 64\n"
        )
        config = load_config(tmp_path)
        assert config.port == 9200
        assert config.outbound_queue_size == 64

    def test_toml_section(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.toml").write_text(
            '[atomsync]\nhost = "0.0.0.0"\nping_interval = 5.0\n'
        )
        config = load_config(tmp_path)
        assert config.host == "0.0.0.0"
        assert config.ping_interval == 5.0

    def test_yaml_preferred_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("port: 1111\n")
        (tmp_path / "atomsync.toml").write_text("port = 2222\n")
        assert load_config(tmp_path).port == 1111

    def test_empty_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("")
        assert load_config(tmp_path).port == 8080

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("port: 9100\nhost: 0.0.0.0\n")
        config = load_config(tmp_path, port=9300)
        assert config.port == 9300
        assert config.host == "0.0.0.0"

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("port: 9100\n")
        config = load_config(tmp_path, port=None, host=None, verbose=None)
        assert config.port == 9100
        assert config.verbose is False

    def test_unknown_key(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("atomsync:\n  workers: 4\n")
        with pytest.raises(ConfigError, match="workers"):
            load_config(tmp_path)

    def test_unknown_override(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="bogus"):
            load_config(tmp_path, bogus=1)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("port: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path)

    def test_yaml_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.toml").write_text("port = \n")
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path)

    def test_invalid_value_surfaces_as_config_error(self, tmp_path: Path) -> None:
        (tmp_path / "atomsync.yaml").write_text("port: 70000\n")
        with pytest.raises(ConfigError, match="port"):
            load_config(tmp_path)
