"""Centralized configuration management."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Union

import yaml

from rich_document.table import TableStyle

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'WORKITEM_MDX_CONFIG'

# Namespaces the remote tracker reserves for its own fields
DEFAULT_SYSTEM_PREFIXES = [
    'System.',
    'Microsoft.VSTS.',
    'Microsoft.TeamFoundation.',
    'WEF_',
    'Microsoft.Azure.',
    'Microsoft.Reporting.',
    'Microsoft.Build.',
    'Microsoft.Testing.',
]

# Board/lane/column tracking and internal processing markers
DEFAULT_INTERNAL_PATTERNS = [
    r'Kanban.*Column',
    r'Board.*Column',
    r'Board.*Lane',
    r'System\.Extensionmarker',
    r'\.ProcessedBy',
    r'\.IsDeleted',
    r'\.NodeName',
    r'\.TreePath',
    r'^Wef\s+[0-9a-f]{32}',
]

DEFAULT_ORGANIZATION_PREFIXES = ['Custom', 'Company', 'Project', 'Team']

# Metadata keys written for every note; never treated as custom fields on push
DEFAULT_STANDARD_KEYS = [
    'id', 'title', 'type', 'state', 'assignedTo', 'createdDate', 'changedDate',
    'priority', 'areaPath', 'iterationPath', 'tags', 'url', 'synced',
]


class ConfigError(Exception):
    """Raised when a configuration file cannot be used."""


@dataclass
class Config:
    """Tunables for field classification, name mapping and rendering"""
    system_prefixes: list = field(default_factory=lambda: list(DEFAULT_SYSTEM_PREFIXES))
    internal_patterns: list = field(default_factory=lambda: list(DEFAULT_INTERNAL_PATTERNS))
    organization_prefixes: list = field(default_factory=lambda: list(DEFAULT_ORGANIZATION_PREFIXES))
    standard_keys: list = field(default_factory=lambda: list(DEFAULT_STANDARD_KEYS))
    literal_block_threshold: int = 200  # Strings longer than this become YAML literal blocks
    table_style: str = TableStyle.table
    header_cell_style: str = TableStyle.header_cell
    data_cell_style: str = TableStyle.data_cell

    def table_styles(self) -> TableStyle:
        return TableStyle(
            table=self.table_style,
            header_cell=self.header_cell_style,
            data_cell=self.data_cell_style,
        )


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """Build a Config, overriding defaults from a YAML mapping at ``path``.

    With no path, ``$WORKITEM_MDX_CONFIG`` is used when set; otherwise the
    defaults are returned unchanged.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return Config()

    config_path = Path(path)
    try:
        data = yaml.safe_load(config_path.read_text(encoding='utf-8')) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping, got {type(data).__name__}")

    known = {f.name: f for f in fields(Config)}
    overrides = {}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        default = getattr(Config(), key)
        if isinstance(default, list) and not isinstance(value, list):
            raise ConfigError(f"Config key '{key}' must be a list")
        if isinstance(default, int) and (isinstance(value, bool) or not isinstance(value, int)):
            raise ConfigError(f"Config key '{key}' must be an integer")
        if isinstance(default, str) and not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string")
        overrides[key] = value

    logger.debug(f"Loaded config from {config_path}: {sorted(overrides)}")
    return Config(**overrides)
