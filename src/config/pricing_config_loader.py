"""
Pricing Configuration Loader.

Loads quote pricing tables from versioned YAML files, enabling:
- Price tuning without touching calculation code
- Environment-specific overrides of scalar parameters
- Audit trail of table changes
- Side-by-side comparison of table versions
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Default config directory
CONFIG_DIR = Path(__file__).parent / "pricing_parameters"

REQUIRED_SECTIONS = (
    "base_monthly_fee",
    "revenue_multipliers",
    "transaction_surcharges",
    "industry_multipliers",
    "taas",
)


class PricingConfigError(Exception):
    """Raised when a pricing table version is missing or malformed."""
    pass


@dataclass
class ConfigMetadata:
    """Metadata about a pricing configuration file."""
    version: str
    effective_date: str
    source: str = "pricing"
    last_updated: str = ""
    updated_by: str = ""
    notes: str = ""


@dataclass
class ConfigChange:
    """Record of a pricing table change."""
    parameter: str
    old_value: Any
    new_value: Any
    changed_at: str
    changed_by: str
    reason: str


class PricingConfigLoader:
    """
    Loads and manages pricing tables from YAML files.

    Files are named ``pricing_<version>.yaml`` inside ``config_dir``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the config loader.

        Args:
            config_dir: Directory containing YAML pricing files.
                       Defaults to src/config/pricing_parameters/
        """
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._metadata: Dict[str, ConfigMetadata] = {}
        self._changes: List[ConfigChange] = []

    def load_config(self, version: str) -> Dict[str, Any]:
        """
        Load pricing tables for a version.

        Args:
            version: Table version (e.g., "v1")

        Returns:
            Dictionary of pricing parameters

        Raises:
            PricingConfigError: If the file is missing or incomplete
        """
        if version in self._configs:
            return self._configs[version]

        config = self._load_from_file(version)
        config = self._apply_env_overrides(config, version)
        self._validate_config(config, version)

        self._configs[version] = config
        return config

    def available_versions(self) -> List[str]:
        """List versions that have a pricing file on disk."""
        return sorted(
            path.stem[len("pricing_"):]
            for path in self.config_dir.glob("pricing_*.yaml")
        )

    def _load_from_file(self, version: str) -> Dict[str, Any]:
        """Load pricing tables from the version's YAML file."""
        version_file = self.config_dir / f"pricing_{version}.yaml"
        if not version_file.exists():
            logger.error(f"No pricing config file found for version {version}")
            raise PricingConfigError(f"Pricing tables '{version}' not found in {self.config_dir}")

        logger.info(f"Loading pricing config from {version_file}")
        with open(version_file, 'r') as f:
            try:
                config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise PricingConfigError(f"Malformed pricing file {version_file}: {e}") from e

        if not isinstance(config, dict):
            raise PricingConfigError(f"Pricing file {version_file} must contain a mapping")

        if '_metadata' in config:
            self._metadata[version] = ConfigMetadata(**config.pop('_metadata'))

        return config

    def _apply_env_overrides(self, config: Dict[str, Any], version: str) -> Dict[str, Any]:
        """Apply environment variable overrides to scalar parameters."""
        # Environment variables like PRICING_V1_BASE_MONTHLY_FEE=175
        prefix = f"PRICING_{version.upper()}_"

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            param_name = key[len(prefix):].lower()
            if isinstance(config.get(param_name), dict):
                logger.warning(f"Ignoring env override for table parameter: {key}")
                continue
            try:
                if '.' in value:
                    config[param_name] = float(value)
                elif value.isdigit():
                    config[param_name] = int(value)
                else:
                    config[param_name] = value
                logger.info(f"Applied env override: {param_name}={value}")
            except (ValueError, TypeError):
                logger.warning(f"Could not parse env override: {key}={value}")

        return config

    def _validate_config(self, config: Dict[str, Any], version: str) -> None:
        """Validate configuration for completeness."""
        missing = [p for p in REQUIRED_SECTIONS if p not in config]
        if missing:
            logger.error(f"Missing required pricing parameters for {version}: {missing}")
            raise PricingConfigError(f"Pricing tables '{version}' missing: {', '.join(missing)}")

        for band, multiplier in config["revenue_multipliers"].items():
            try:
                valid = multiplier is not None and float(multiplier) >= 0
            except (TypeError, ValueError):
                valid = False
            if not valid:
                raise PricingConfigError(f"Invalid revenue multiplier for {band}: {multiplier!r}")

    def get_parameter(self, param_name: str, version: str, default: Any = None) -> Any:
        """Get a specific parameter value."""
        return self.load_config(version).get(param_name, default)

    def get_metadata(self, version: str) -> Optional[ConfigMetadata]:
        """Get metadata for a version's configuration."""
        self.load_config(version)
        return self._metadata.get(version)

    def record_change(
        self,
        parameter: str,
        old_value: Any,
        new_value: Any,
        reason: str,
        changed_by: str = "system",
    ) -> None:
        """Record a pricing table change for audit purposes."""
        change = ConfigChange(
            parameter=parameter,
            old_value=old_value,
            new_value=new_value,
            changed_at=datetime.now(timezone.utc).isoformat(),
            changed_by=changed_by,
            reason=reason,
        )
        self._changes.append(change)
        logger.info(f"Pricing change recorded: {parameter} {old_value} -> {new_value}")

    def get_change_history(self) -> List[ConfigChange]:
        """Get history of pricing table changes."""
        return self._changes.copy()

    def compare_versions(self, version1: str, version2: str) -> Dict[str, Dict[str, Any]]:
        """
        Compare pricing tables between two versions.

        Returns:
            Dictionary with 'added', 'removed', 'changed' keys
        """
        config1 = self.load_config(version1)
        config2 = self.load_config(version2)

        keys1 = set(config1.keys())
        keys2 = set(config2.keys())

        return {
            'added': {k: config2[k] for k in keys2 - keys1},
            'removed': {k: config1[k] for k in keys1 - keys2},
            'changed': {
                k: {'old': config1[k], 'new': config2[k]}
                for k in keys1 & keys2
                if config1[k] != config2[k]
            }
        }


# Global singleton
_config_loader: Optional[PricingConfigLoader] = None


def get_config_loader() -> PricingConfigLoader:
    """Get the global config loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = PricingConfigLoader()
    return _config_loader


def clear_config_cache() -> None:
    """Drop the loader singleton (useful for testing)."""
    global _config_loader
    _config_loader = None
