"""
Configuration loading for featuresync.

Settings live in `config.yaml` under the data directory. Environment
variables take precedence for the values that should not be committed:
- FEATURESYNC_SERVER_URL: overrides server.url
- FEATURESYNC_TOKEN: overrides server.token
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import os

import yaml

from .scheduler import APP_LIFECYCLE_EVENTS_DEBOUNCE_INTERVAL, IMMEDIATE_SYNC_DEBOUNCE_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_BASE_PATH = Path.home() / ".featuresync"
CONFIG_FILENAME = "config.yaml"

CONFIG_TEMPLATE = """# featuresync configuration

server:
  url: https://sync.example.com
  timeout: 30  # seconds
  # token: set via FEATURESYNC_TOKEN environment variable

scheduler:
  immediate_sync_interval: 1  # seconds
  app_lifecycle_interval: 600  # seconds

features:
  - bookmarks
  - settings
"""


@dataclass
class SyncConfig:
    """
    Resolved featuresync settings.

    Attributes:
        server_url: Sync server base URL
        token: Opaque auth token, sent as a bearer header
        timeout: HTTP timeout in seconds
        immediate_sync_interval: Debounce window for change/immediate triggers
        app_lifecycle_interval: Debounce window for app lifecycle triggers
        features: Names of the features to sync
    """
    server_url: str = ""
    token: Optional[str] = None
    timeout: float = 30.0
    immediate_sync_interval: float = IMMEDIATE_SYNC_DEBOUNCE_INTERVAL
    app_lifecycle_interval: float = APP_LIFECYCLE_EVENTS_DEBOUNCE_INTERVAL
    features: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyncConfig':
        """
        Build a config from the parsed YAML mapping.

        Raises:
            ValueError: A value has the wrong type or range
        """
        server = data.get("server") or {}
        scheduler = data.get("scheduler") or {}
        features = data.get("features") or []

        if not isinstance(server, dict) or not isinstance(scheduler, dict):
            raise ValueError("'server' and 'scheduler' must be mappings")
        if not isinstance(features, list) or not all(isinstance(f, str) and f for f in features):
            raise ValueError("'features' must be a list of feature names")
        if len(set(features)) != len(features):
            raise ValueError("'features' contains duplicates")

        config = cls(
            server_url=str(server.get("url") or ""),
            token=server.get("token"),
            timeout=_positive_float(server.get("timeout", 30.0), "server.timeout"),
            immediate_sync_interval=_positive_float(
                scheduler.get("immediate_sync_interval", IMMEDIATE_SYNC_DEBOUNCE_INTERVAL),
                "scheduler.immediate_sync_interval",
            ),
            app_lifecycle_interval=_positive_float(
                scheduler.get("app_lifecycle_interval", APP_LIFECYCLE_EVENTS_DEBOUNCE_INTERVAL),
                "scheduler.app_lifecycle_interval",
            ),
            features=list(features),
        )
        return config

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> 'SyncConfig':
        """Override settings from FEATURESYNC_* environment variables."""
        environ = os.environ if environ is None else environ
        if environ.get("FEATURESYNC_SERVER_URL"):
            self.server_url = environ["FEATURESYNC_SERVER_URL"]
        if environ.get("FEATURESYNC_TOKEN"):
            self.token = environ["FEATURESYNC_TOKEN"]
        return self


def _positive_float(value: Any, key: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be a number, got {value!r}")
    if number <= 0:
        raise ValueError(f"'{key}' must be positive, got {number}")
    return number


def load_config(path: Path, environ: Optional[Dict[str, str]] = None) -> SyncConfig:
    """
    Load settings from a YAML file and apply environment overrides.

    Args:
        path: Path to config.yaml
        environ: Environment mapping (default: os.environ)

    Raises:
        FileNotFoundError: The file does not exist
        ValueError: The file is not valid YAML or has invalid values
    """
    try:
        data = yaml.safe_load(Path(path).read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping")

    config = SyncConfig.from_dict(data).apply_env(environ)
    logger.debug(f"Loaded config from {path}: server={config.server_url} features={config.features}")
    return config


__all__ = ['SyncConfig', 'load_config', 'DEFAULT_BASE_PATH', 'CONFIG_FILENAME', 'CONFIG_TEMPLATE']
