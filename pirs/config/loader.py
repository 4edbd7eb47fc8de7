"""
Configuration management and loading.

Handles storage paths, export location and the classification table.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from pirs.core.classifier import COMMAND_GROUPS, DEFAULT_RUNNERS, CommandClassifier
from pirs.storage.db import DEFAULT_DB_PATH
from pirs.storage.export import DEFAULT_EXPORT_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageConfig:
    """Location of the session log database."""
    db_path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        """Validate database path."""
        if not self.db_path or not self.db_path.strip():
            raise ValueError("db_path cannot be empty")


@dataclass(frozen=True)
class ExportConfig:
    """Target directory for JSON exports."""
    directory: str = DEFAULT_EXPORT_DIR

    def __post_init__(self):
        """Validate export directory."""
        if not self.directory or not self.directory.strip():
            raise ValueError("export directory cannot be empty")


@dataclass(frozen=True)
class TrackerConfig:
    """Complete tracker configuration."""
    storage: StorageConfig
    export: ExportConfig
    groups: Tuple[Tuple[str, Tuple[str, ...]], ...] = COMMAND_GROUPS
    runners: Tuple[str, ...] = DEFAULT_RUNNERS

    def build_classifier(self) -> CommandClassifier:
        """Create a classifier from the configured rule table."""
        return CommandClassifier(groups=self.groups, runners=self.runners)


def default_config() -> TrackerConfig:
    """Built-in configuration used when no config file is given."""
    return TrackerConfig(storage=StorageConfig(), export=ExportConfig())


def load_tracker_config(path: str) -> TrackerConfig:
    """Load and validate tracker configuration from a YAML file.

    Every section is optional; unknown keys are rejected so that a typo
    never silently falls back to a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated TrackerConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Tracker config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'storage', 'export', 'classifier'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    storage_data = _section(raw_config, 'storage', {'db_path'})
    storage = StorageConfig(db_path=str(storage_data.get('db_path', DEFAULT_DB_PATH)))

    export_data = _section(raw_config, 'export', {'directory'})
    export = ExportConfig(directory=str(export_data.get('directory', DEFAULT_EXPORT_DIR)))

    classifier_data = _section(raw_config, 'classifier', {'groups', 'runners'})
    groups = COMMAND_GROUPS
    if 'groups' in classifier_data:
        groups = _parse_groups(classifier_data['groups'])
    runners = DEFAULT_RUNNERS
    if 'runners' in classifier_data:
        runners = _parse_runners(classifier_data['runners'])

    config = TrackerConfig(storage=storage, export=export, groups=groups, runners=runners)
    # Surface rule table problems at load time
    config.build_classifier()
    logger.debug("Loaded tracker config from %s (%d groups)", path, len(groups))
    return config


def _section(raw_config: Dict, name: str, allowed_keys: set) -> Dict[str, Any]:
    """Fetch an optional dictionary section and reject unknown keys."""
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown {name} keys: {unknown_keys}")
    return data


def _parse_groups(data: Any) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    """Parse the ordered group list.

    Args:
        data: List of {name, patterns} dictionaries

    Returns:
        Ordered tuple of (name, patterns) pairs

    Raises:
        ValueError: If the list is malformed
    """
    if not isinstance(data, list) or not data:
        raise ValueError("'classifier.groups' must be a non-empty list")

    groups: List[Tuple[str, Tuple[str, ...]]] = []
    seen = set()
    for index, entry in enumerate(data):
        path = f"classifier.groups[{index}]"
        if not isinstance(entry, dict):
            raise ValueError(f"{path} must be a dictionary")
        unknown_keys = set(entry.keys()) - {'name', 'patterns'}
        if unknown_keys:
            raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

        name = entry.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"'name' in {path} must be a non-empty string")
        if name in seen:
            raise ValueError(f"Duplicate group name '{name}' in {path}")
        seen.add(name)

        patterns = entry.get('patterns')
        if not isinstance(patterns, list) or not patterns:
            raise ValueError(f"'patterns' in {path} must be a non-empty list")
        if not all(isinstance(p, str) and p for p in patterns):
            raise ValueError(f"'patterns' in {path} must contain non-empty strings")

        groups.append((name, tuple(patterns)))
    return tuple(groups)


def _parse_runners(data: Any) -> Tuple[str, ...]:
    """Parse the ordered runner list."""
    if not isinstance(data, list):
        raise ValueError("'classifier.runners' must be a list")
    if not all(isinstance(r, str) and r.strip() and " " not in r for r in data):
        raise ValueError("'classifier.runners' must contain single-word strings")
    return tuple(data)
