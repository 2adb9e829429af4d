"""
Configuration management (SSOT).

This module defines ALL configuration for the ledger-recurring application.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Tunable detection constants live in the versioned policy table, never here.
  Config only selects WHICH policy version is used.
- Worker count changes throughput only; output ordering is identical.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .policy import POLICY_REGISTRY, RECURRING_POLICY_VERSION

OUTPUT_FORMATS = ("text", "json")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class LedgerConfig:
    """Ledger database configuration."""

    db_path: Path = field(default_factory=lambda: Path("data/ledger.db"))


@dataclass
class DetectionConfig:
    """Recurring detection settings.

    - policy_version: Policy table identifier (e.g. recurring/v1)
    - max_workers: Thread pool size for per-group scoring (1 = single-threaded)
    """

    policy_version: str = RECURRING_POLICY_VERSION
    max_workers: int = 1


@dataclass
class OutputConfig:
    """Presentation settings for the CLI."""

    # text (human) or json (agent)
    format: str = "text"


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not str(self.ledger.db_path):
            errors.append("ledger.db_path is required")

        if self.detection.policy_version not in POLICY_REGISTRY:
            known = ", ".join(sorted(POLICY_REGISTRY))
            errors.append(
                f"detection.policy_version '{self.detection.policy_version}' is unknown "
                f"(known: {known})"
            )

        if self.detection.max_workers < 1:
            errors.append("detection.max_workers must be >= 1")

        if self.output.format not in OUTPUT_FORMATS:
            errors.append(f"output.format must be one of {', '.join(OUTPUT_FORMATS)}")

        return errors

    def ensure_valid(self) -> None:
        """Raise ConfigValidationError if validate() reports problems."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    A missing file yields the defaults. Environment variables can override
    config values:
    - LEDGER_DB_PATH
    - RECURRING_POLICY_VERSION
    - RECURRING_MAX_WORKERS
    - LEDGER_OUTPUT_FORMAT (text/json)
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{config_path} must contain a YAML mapping")

    # Ledger config
    ledger_data = data.get("ledger") or {}
    ledger = LedgerConfig(
        db_path=Path(
            os.environ.get("LEDGER_DB_PATH", ledger_data.get("db_path", "data/ledger.db"))
        ),
    )

    # Detection config
    detection_data = data.get("detection") or {}
    workers_env = os.environ.get("RECURRING_MAX_WORKERS", "")
    max_workers = detection_data.get("max_workers", 1)
    if workers_env:
        try:
            max_workers = int(workers_env)
        except ValueError:
            raise ConfigValidationError(
                f"RECURRING_MAX_WORKERS must be an integer, got '{workers_env}'"
            ) from None

    detection = DetectionConfig(
        policy_version=os.environ.get(
            "RECURRING_POLICY_VERSION",
            detection_data.get("policy_version", RECURRING_POLICY_VERSION),
        ),
        max_workers=int(max_workers),
    )

    # Output config
    output_data = data.get("output") or {}
    output = OutputConfig(
        format=os.environ.get("LEDGER_OUTPUT_FORMAT", output_data.get("format", "text")).lower(),
    )

    config = Config(ledger=ledger, detection=detection, output=output)
    config.ensure_valid()
    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = f"""# ledger-recurring configuration
#
# Detection thresholds, weights and tolerances are NOT configurable here.
# They live in the versioned policy table; pick a version instead.

ledger:
  db_path: "data/ledger.db"               # SQLite ledger file

detection:
  policy_version: "{RECURRING_POLICY_VERSION}"       # Policy table to apply
  max_workers: 1                          # >1 scores groups on a thread pool

output:
  format: "text"                          # text (humans) or json (agents)
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
