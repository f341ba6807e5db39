"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. Settings defaults   -- declared in dumploader/config/settings.py
  2. config/config.yaml  -- static defaults checked into the repo
  3. .env file           -- local developer overrides (not committed)
  4. Environment vars    -- set by the job runner

Only settings that were actually provided through (3) or (4) override the
YAML file; a Settings default never masks a YAML value.

The _deep_merge helper does recursive dict merging:
  base = {"load": {"batch_capacity": 100}}
  overrides = {"load": {"concurrency": 2}}
  result = {"load": {"batch_capacity": 100, "concurrency": 2}}
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from dumploader.config.settings import Settings
from dumploader.utils.errors import ConfigurationError

# Settings field -> (section, key) in the resolved configuration tree.
_SETTINGS_LAYOUT: dict[str, tuple[str, str]] = {
    "app_env": ("app", "env"),
    "database_path": ("storage", "database_path"),
    "create_schema": ("storage", "create_schema"),
    "batch_capacity": ("load", "batch_capacity"),
    "load_concurrency": ("load", "concurrency"),
    "http_timeout": ("load", "http_timeout"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is used when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: The YAML file does not parse to a mapping, or an
            environment value does not fit its setting.
    """
    config_path = Path(path)
    yaml_config: dict = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                # safe_load: config files must never construct Python objects.
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML: {exc}", source_name=str(config_path)) from exc
        if not isinstance(yaml_config, dict):
            msg = "Top level of the configuration file must be a mapping"
            raise ConfigurationError(msg, source_name=str(config_path))

    if settings is None:
        try:
            settings = Settings()
        except ValidationError as exc:
            msg = f"Invalid environment setting: {exc}"
            raise ConfigurationError(msg) from exc
    resolved = _settings_tree(settings, set(_SETTINGS_LAYOUT))
    _deep_merge(resolved, yaml_config)
    _deep_merge(resolved, _settings_tree(settings, settings.model_fields_set))
    return resolved


def _settings_tree(settings: Settings, fields: set[str]) -> dict:
    tree: dict = {}
    for field, (section, key) in _SETTINGS_LAYOUT.items():
        if field in fields:
            tree.setdefault(section, {})[key] = getattr(settings, field)
    return tree


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
