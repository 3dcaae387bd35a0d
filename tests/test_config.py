"""Tests for configuration loading."""

from pathlib import Path

import pytest

from gate_ledger.config import (
    Config,
    DeliveryConfig,
    ExportConfig,
    create_default_config,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "GATE_LEDGER_DB_PATH",
        "GATE_LEDGER_OUTPUT_DIR",
        "GATE_LEDGER_DELIVERY_BACKEND",
        "GATE_LEDGER_DELIVERY_URL",
        "GATE_LEDGER_DELIVERY_TOKEN",
        "GATE_LEDGER_PHOTO_DELAY_MS",
        "GATE_LEDGER_OPERATOR_ID",
        "GATE_LEDGER_OPERATOR_NAME",
    ):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        """No config file means defaults."""
        config = load_config(tmp_path / "missing.yaml")

        assert config.storage.db_path == Path("data/ledger.db")
        assert config.storage.ledger_key == "uag_records"
        assert config.export.photo_delay_ms == 300
        assert config.export.report_prefix == "UAG_RELATORIO"
        assert config.delivery.backend == "filesystem"
        assert config.validate() == []

    def test_default_config_file_round_trip(self, tmp_path):
        """The generated default file loads back to defaults."""
        path = tmp_path / "conf" / "config.yaml"
        create_default_config(path)

        config = load_config(path)

        assert config.operator.id == "op-1"
        assert config.operator.name == "Operador"
        assert config.export.timestamp_format == "%d/%m/%Y %H:%M:%S"
        assert config.validate() == []

    def test_yaml_values(self, tmp_path):
        """Values are read from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            """
storage:
  db_path: /var/lib/gate/ledger.db
  ledger_key: gate-north
export:
  photo_delay_ms: 500
delivery:
  backend: http
  base_url: http://collector.local
  token: abc
"""
        )

        config = load_config(path)

        assert config.storage.db_path == Path("/var/lib/gate/ledger.db")
        assert config.storage.ledger_key == "gate-north"
        assert config.export.photo_delay_ms == 500
        assert config.delivery.backend == "http"
        assert config.delivery.token == "abc"

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Environment variables override YAML."""
        monkeypatch.setenv("GATE_LEDGER_DB_PATH", "/tmp/env.db")
        monkeypatch.setenv("GATE_LEDGER_PHOTO_DELAY_MS", "50")
        monkeypatch.setenv("GATE_LEDGER_OPERATOR_ID", "op-env")

        config = load_config(tmp_path / "missing.yaml")

        assert config.storage.db_path == Path("/tmp/env.db")
        assert config.export.photo_delay_ms == 50
        assert config.operator.id == "op-env"

    def test_invalid_env_int_keeps_value(self, tmp_path, monkeypatch):
        """A non-numeric env value is ignored."""
        monkeypatch.setenv("GATE_LEDGER_PHOTO_DELAY_MS", "soon")

        assert load_config(tmp_path / "missing.yaml").export.photo_delay_ms == 300


class TestValidate:
    def test_negative_delay(self):
        """Negative photo delay is rejected."""
        config = Config(export=ExportConfig(photo_delay_ms=-1))
        assert "export.photo_delay_ms must be >= 0" in config.validate()

    def test_http_requires_url(self):
        """HTTP backend needs a base URL."""
        config = Config(delivery=DeliveryConfig(backend="http"))
        assert "delivery.base_url is required when backend is http" in config.validate()

    def test_unknown_backend(self):
        """Unknown backends are rejected."""
        config = Config(delivery=DeliveryConfig(backend="ftp"))
        assert len(config.validate()) == 1
