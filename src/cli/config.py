"""Configuration loading for snapshot rotation.

Configuration lives in a YAML file:

    region: eu-central-1
    profile: backup
    log_level: info
    deletion_timeout: 300
    resources:
      - id: vol-0123456789abcdef0
        snapshots:
          hourly: 24
          daily: 7
          weekly: 4
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from ..models.retention_policy import PolicyError, RetentionPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "SNAPROTATE_CONFIG"
LOG_LEVEL_ENV_VAR = "SNAPROTATE_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

KNOWN_KEYS = {
    "region",
    "profile",
    "endpoint_url",
    "log_level",
    "dry_run",
    "deletion_timeout",
    "wait_for_snapshot",
    "resources",
}


class ConfigError(ValueError):
    """Raised when the configuration file is missing or malformed."""


@dataclass(frozen=True)
class ResourceConfig:
    """A resource to rotate and its retention policy."""

    id: str
    policy: RetentionPolicy


@dataclass
class Config:
    """Runtime configuration.

    Attributes:
        region: AWS region (None uses the default resolution chain)
        aws_profile: AWS profile name
        endpoint_url: Custom EC2 endpoint
        log_level: Logging level name
        dry_run: Simulate create and delete calls
        deletion_timeout: Seconds to wait for each deletion
        wait_for_snapshot: Wait for new snapshots to complete before listing
        resources: Resources to rotate, in processing order
        source_path: File the configuration was read from
    """

    region: Optional[str] = None
    aws_profile: Optional[str] = None
    endpoint_url: Optional[str] = None
    log_level: str = "INFO"
    dry_run: bool = False
    deletion_timeout: float = 300.0
    wait_for_snapshot: bool = False
    resources: list[ResourceConfig] = field(default_factory=list)
    source_path: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[str] = None) -> Config:
        """Load configuration from a YAML file.

        Resolution order: ``path``, then $SNAPROTATE_CONFIG, then
        ./config.yaml. An explicitly named file must exist; a missing default
        file yields an empty configuration.

        Args:
            path: Configuration file path (optional)

        Returns:
            Loaded Config

        Raises:
            ConfigError: If the file cannot be read or is malformed
        """
        explicit = path or os.environ.get(CONFIG_ENV_VAR)
        config_path = Path(explicit or DEFAULT_CONFIG_FILE)

        if not config_path.exists():
            if explicit:
                raise ConfigError(f"Configuration file not found: {config_path}")
            logger.debug(f"No configuration file at {config_path}, using defaults")
            config = cls()
        else:
            try:
                with open(config_path, "r") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
            except OSError as e:
                raise ConfigError(f"Unable to read {config_path}: {e}") from e

            config = cls.from_dict(data or {})
            config.source_path = str(config_path)

        env_level = os.environ.get(LOG_LEVEL_ENV_VAR)
        if env_level:
            config.log_level = _parse_log_level(env_level)

        return config

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        """Build configuration from parsed YAML.

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        unknown = sorted(str(key) for key in data if key not in KNOWN_KEYS)
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

        deletion_timeout = data.get("deletion_timeout", 300.0)
        if isinstance(deletion_timeout, bool) or not isinstance(deletion_timeout, (int, float)) or deletion_timeout <= 0:
            raise ConfigError(f"deletion_timeout must be a positive number, got {deletion_timeout!r}")

        for flag in ("dry_run", "wait_for_snapshot"):
            if not isinstance(data.get(flag, False), bool):
                raise ConfigError(f"{flag} must be true or false")

        return cls(
            region=data.get("region"),
            aws_profile=data.get("profile"),
            endpoint_url=data.get("endpoint_url"),
            log_level=_parse_log_level(data.get("log_level", "INFO")),
            dry_run=data.get("dry_run", False),
            deletion_timeout=float(deletion_timeout),
            wait_for_snapshot=data.get("wait_for_snapshot", False),
            resources=_parse_resources(data.get("resources") or []),
        )

    def select_resources(self, resource_ids: Optional[Iterable[str]] = None) -> list[ResourceConfig]:
        """Return configured resources, optionally restricted to some ids.

        Args:
            resource_ids: Ids to keep, in configuration order (None keeps all)

        Raises:
            ConfigError: If an id is not configured
        """
        if not resource_ids:
            return list(self.resources)

        wanted = list(resource_ids)
        configured = {r.id for r in self.resources}
        missing = [rid for rid in wanted if rid not in configured]
        if missing:
            raise ConfigError(f"Resource(s) not in configuration: {', '.join(missing)}")

        return [r for r in self.resources if r.id in wanted]


def _parse_log_level(value: Any) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level: {value}. Must be one of: {', '.join(l.lower() for l in LOG_LEVELS)}")
    return level


def _parse_resources(items: Any) -> list[ResourceConfig]:
    if not isinstance(items, list):
        raise ConfigError("resources must be a list")

    resources = []
    seen = set()

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ConfigError(f"resources[{index}] must be a mapping")

        resource_id = item.get("id")
        if not isinstance(resource_id, str) or not resource_id.strip():
            raise ConfigError(f"resources[{index}] is missing an id")

        if resource_id in seen:
            raise ConfigError(f"Duplicate resource id: {resource_id}")
        seen.add(resource_id)

        extra = sorted(str(key) for key in item if key not in ("id", "snapshots"))
        if extra:
            raise ConfigError(f"Unknown key(s) for {resource_id}: {', '.join(extra)}")

        try:
            policy = RetentionPolicy.from_dict(item.get("snapshots"))
        except PolicyError as e:
            raise ConfigError(f"Invalid retention policy for {resource_id}: {e}") from e

        if policy.is_empty:
            logger.warning(f"Retention policy for {resource_id} keeps nothing; every snapshot will be deleted")

        resources.append(ResourceConfig(id=resource_id, policy=policy))

    return resources
