"""
Tests for quote_config: defaults, overrides, validation and the bridges
into the kernel.
"""

import logging
from pathlib import Path

import pytest
import yaml

from quote_config import get_active_config
from quote_config.bridges import build_quote_settings, log_level
from quote_config.loader import (
    DEFAULTS_PATH,
    compute_checksum,
    load_yaml_file,
    merge,
    parse_config,
)


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:

    def test_packaged_defaults(self):
        config = get_active_config()

        assert config.config_id == "quote-defaults"
        assert config.version == 1
        assert config.quotes.default_validity_days == 30
        assert config.quotes.expiring_soon_days == 7
        assert config.database.url.startswith("sqlite")
        assert config.logging.level == "INFO"

    def test_checksum_is_deterministic(self):
        assert get_active_config().checksum == get_active_config().checksum

    def test_loaded_record_emitted(self, captured_logs):
        config = get_active_config()

        records = [r for r in captured_logs() if r["message"] == "quote_config_loaded"]
        assert len(records) == 1
        assert records[0]["checksum"] == config.checksum
        assert records[0]["source"] == "defaults"


class TestOverrides:

    def test_partial_override_keeps_other_defaults(self, tmp_path):
        path = write_yaml(tmp_path / "override.yaml", {
            "config_id": "acme",
            "quotes": {"expiring_soon_days": 14},
        })

        config = get_active_config(path)

        assert config.config_id == "acme"
        assert config.quotes.expiring_soon_days == 14
        assert config.quotes.default_validity_days == 30
        assert config.database.pool_size == 5

    def test_override_changes_checksum(self, tmp_path):
        path = write_yaml(tmp_path / "override.yaml", {"quotes": {"quote_number_width": 4}})

        assert get_active_config(path).checksum != get_active_config().checksum

    def test_missing_override_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_non_mapping_file_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "list.yaml", ["not", "a", "mapping"])

        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(path)


class TestValidation:

    @pytest.fixture
    def defaults(self):
        return load_yaml_file(DEFAULTS_PATH)

    @pytest.mark.parametrize("section,key,value", [
        ("quotes", "default_validity_days", 0),
        ("quotes", "expiring_soon_days", -1),
        ("quotes", "quote_number_width", "six"),
        ("quotes", "quote_number_prefix", "  "),
        ("database", "pool_size", True),
        ("database", "url", ""),
        ("logging", "level", "LOUD"),
    ])
    def test_bad_values_rejected(self, defaults, section, key, value):
        data = merge(defaults, {section: {key: value}})

        with pytest.raises(ValueError):
            parse_config(data)

    def test_missing_section_rejected(self, defaults):
        del defaults["quotes"]

        with pytest.raises(KeyError):
            parse_config(defaults)

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


class TestBridges:

    def test_quote_settings(self, tmp_path):
        path = write_yaml(tmp_path / "override.yaml", {
            "quotes": {"quote_number_prefix": "EST", "quote_number_width": 4},
        })

        settings = build_quote_settings(get_active_config(path))

        assert settings.format_quote_number(12) == "EST-0012"
        assert settings.default_validity_days == 30

    def test_log_level(self, tmp_path):
        path = write_yaml(tmp_path / "override.yaml", {"logging": {"level": "debug"}})

        assert log_level(get_active_config(path)) == logging.DEBUG
