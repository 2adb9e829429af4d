"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from ledger_recurring.config import (
    Config,
    ConfigValidationError,
    DetectionConfig,
    OutputConfig,
    create_default_config,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment overrides out of config tests."""
    for name in (
        "LEDGER_DB_PATH",
        "RECURRING_POLICY_VERSION",
        "RECURRING_MAX_WORKERS",
        "LEDGER_OUTPUT_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """YAML loading with environment overrides."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")

        assert config.ledger.db_path == Path("data/ledger.db")
        assert config.detection.policy_version == "recurring/v1"
        assert config.detection.max_workers == 1
        assert config.output.format == "text"

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "ledger:\n"
            "  db_path: /var/lib/ledger.db\n"
            "detection:\n"
            "  max_workers: 4\n"
            "output:\n"
            "  format: json\n"
        )

        config = load_config(path)

        assert config.ledger.db_path == Path("/var/lib/ledger.db")
        assert config.detection.max_workers == 4
        assert config.output.format == "json"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("detection:\n  max_workers: 2\n")
        monkeypatch.setenv("LEDGER_DB_PATH", "/tmp/other.db")
        monkeypatch.setenv("RECURRING_MAX_WORKERS", "8")
        monkeypatch.setenv("LEDGER_OUTPUT_FORMAT", "JSON")

        config = load_config(path)

        assert config.ledger.db_path == Path("/tmp/other.db")
        assert config.detection.max_workers == 8
        assert config.output.format == "json"

    def test_non_integer_workers_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RECURRING_MAX_WORKERS", "many")
        with pytest.raises(ConfigValidationError, match="RECURRING_MAX_WORKERS"):
            load_config(tmp_path / "missing.yaml")

    def test_unknown_policy_version(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RECURRING_POLICY_VERSION", "recurring/v7")
        with pytest.raises(ConfigValidationError, match="policy_version"):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_default_config_round_trip(self, tmp_path):
        """The generated default file loads cleanly."""
        path = tmp_path / "nested" / "config.yaml"
        create_default_config(path)

        config = load_config(path)

        assert config.detection.policy_version == "recurring/v1"
        assert config.output.format == "text"


class TestValidate:
    """Config.validate() reports every problem at once."""

    def test_defaults_valid(self):
        assert Config().validate() == []

    def test_multiple_errors(self):
        config = Config(
            detection=DetectionConfig(policy_version="nope", max_workers=0),
            output=OutputConfig(format="xml"),
        )

        errors = config.validate()

        assert len(errors) == 3
        with pytest.raises(ConfigValidationError):
            config.ensure_valid()
