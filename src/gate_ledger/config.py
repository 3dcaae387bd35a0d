"""
Configuration management (SSOT).

This module defines ALL configuration for the gate ledger application.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- The ledger lives under exactly one storage key
- The inter-photo delay is a tunable constant, never hard-coded in the pipeline
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DELIVERY_BACKENDS = ("filesystem", "http")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class StorageConfig:
    """Local durable storage for the ledger."""

    db_path: Path = field(default_factory=lambda: Path("data/ledger.db"))
    # Fixed key the ledger snapshot is stored under
    ledger_key: str = "uag_records"


@dataclass
class ExportConfig:
    """Batch export settings.

    photo_delay_ms exists to respect rate limits of the delivery target on
    rapid sequential deliveries. Set to 0 only for targets without limits.
    """

    report_prefix: str = "UAG_RELATORIO"
    photo_delay_ms: int = 300
    # Rendering of timestamps in the CSV report (local time)
    timestamp_format: str = "%d/%m/%Y %H:%M:%S"


@dataclass
class DeliveryConfig:
    """File-delivery side channel.

    - filesystem: artifacts are written into output_dir
    - http: artifacts are uploaded to base_url
    """

    backend: str = "filesystem"
    output_dir: Path = field(default_factory=lambda: Path("exports"))
    base_url: str | None = None
    token: str | None = None
    timeout_seconds: int = 30
    max_retries: int = 2


@dataclass
class OperatorConfig:
    """Operator used by the CLI session."""

    id: str = ""
    name: str = ""
    role: str = "OPERADOR"


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    operator: OperatorConfig = field(default_factory=OperatorConfig)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.storage.ledger_key:
            errors.append("storage.ledger_key is required")

        if self.export.photo_delay_ms < 0:
            errors.append("export.photo_delay_ms must be >= 0")
        if not self.export.report_prefix:
            errors.append("export.report_prefix is required")

        if self.delivery.backend not in DELIVERY_BACKENDS:
            errors.append(
                f"delivery.backend must be one of {', '.join(DELIVERY_BACKENDS)}"
            )
        elif self.delivery.backend == "http" and not self.delivery.base_url:
            errors.append("delivery.base_url is required when backend is http")

        if self.operator.role not in ("OPERADOR", "ADMIN"):
            errors.append("operator.role must be OPERADOR or ADMIN")

        return errors


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default  # Keep default


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - GATE_LEDGER_DB_PATH
    - GATE_LEDGER_OUTPUT_DIR
    - GATE_LEDGER_DELIVERY_BACKEND (filesystem/http)
    - GATE_LEDGER_DELIVERY_URL
    - GATE_LEDGER_DELIVERY_TOKEN
    - GATE_LEDGER_PHOTO_DELAY_MS
    - GATE_LEDGER_OPERATOR_ID
    - GATE_LEDGER_OPERATOR_NAME
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    storage_data = data.get("storage", {})
    storage = StorageConfig(
        db_path=Path(
            os.environ.get("GATE_LEDGER_DB_PATH", storage_data.get("db_path", "data/ledger.db"))
        ),
        ledger_key=storage_data.get("ledger_key", "uag_records"),
    )

    export_data = data.get("export", {})
    export = ExportConfig(
        report_prefix=export_data.get("report_prefix", "UAG_RELATORIO"),
        photo_delay_ms=_env_int(
            "GATE_LEDGER_PHOTO_DELAY_MS", int(export_data.get("photo_delay_ms", 300))
        ),
        timestamp_format=export_data.get("timestamp_format", "%d/%m/%Y %H:%M:%S"),
    )

    delivery_data = data.get("delivery", {})
    delivery = DeliveryConfig(
        backend=os.environ.get(
            "GATE_LEDGER_DELIVERY_BACKEND", delivery_data.get("backend", "filesystem")
        ),
        output_dir=Path(
            os.environ.get("GATE_LEDGER_OUTPUT_DIR", delivery_data.get("output_dir", "exports"))
        ),
        base_url=os.environ.get("GATE_LEDGER_DELIVERY_URL", delivery_data.get("base_url")),
        token=os.environ.get("GATE_LEDGER_DELIVERY_TOKEN", delivery_data.get("token")),
        timeout_seconds=delivery_data.get("timeout_seconds", 30),
        max_retries=delivery_data.get("max_retries", 2),
    )

    operator_data = data.get("operator", {})
    operator = OperatorConfig(
        id=os.environ.get("GATE_LEDGER_OPERATOR_ID", str(operator_data.get("id", ""))),
        name=os.environ.get("GATE_LEDGER_OPERATOR_NAME", operator_data.get("name", "")),
        role=operator_data.get("role", "OPERADOR"),
    )

    return Config(storage=storage, export=export, delivery=delivery, operator=operator)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Gate access ledger configuration
#
# Records stay in local storage until an operator runs `export`.
# A fully successful export clears the exported records.

storage:
  db_path: "data/ledger.db"           # SQLite file holding the ledger
  ledger_key: "uag_records"           # Storage key of the ledger snapshot

export:
  report_prefix: "UAG_RELATORIO"      # CSV name: <prefix>_<YYYY-MM-DD>.csv
  photo_delay_ms: 300                 # Pause between photo deliveries
  timestamp_format: "%d/%m/%Y %H:%M:%S"

# Where exported artifacts go
delivery:
  backend: "filesystem"               # filesystem | http
  output_dir: "exports"               # Used by the filesystem backend
  base_url: null                      # Used by the http backend
  token: null
  timeout_seconds: 30
  max_retries: 2

# Operator registering records from this terminal
operator:
  id: "op-1"
  name: "Operador"
  role: "OPERADOR"                    # OPERADOR | ADMIN
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
