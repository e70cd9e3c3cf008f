"""YAML parsing and validation for assetflow project files.

This module handles parsing ``assetflow.yaml`` files and validating their
structure. Conversion into rules and settings lives in converter.py.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..exceptions import ConfigError
from ..rules import Category

CONFIG_KEYS = {
    'base_path': str,
    'build_dir': str,
    'debounce': (int, float),
    'host': str,
    'port': int,
    'liveport': int,
    'open': bool,
    'live_css': bool,
    'concurrent_chains': bool,
}


@dataclass
class ProjectConfig:
    """Parsed project file."""
    config: Dict[str, Any] = field(default_factory=dict)
    paths: Dict[str, Optional[Dict[str, Any]]] = field(default_factory=dict)
    vendor: Optional[List[Dict[str, str]]] = None
    source: Optional[Path] = None


def parse_project_file(path: Union[str, Path]) -> ProjectConfig:
    """Parse and validate an assetflow.yaml file.

    Raises:
        ConfigError: If the file is invalid or has wrong field types
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax in {path}: {e}") from e

    project = _validate_data(_as_mapping(data))
    project.source = path
    return project


def parse_project_string(content: str) -> ProjectConfig:
    """Parse project configuration from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}") from e

    return _validate_data(_as_mapping(data))


def _as_mapping(data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping")
    return data


def _validate_data(data: Dict[str, Any]) -> ProjectConfig:
    unknown = set(data) - {'config', 'paths', 'vendor'}
    if unknown:
        raise ConfigError(f"Unknown top-level section(s): {', '.join(sorted(unknown))}")

    config = data.get('config') or {}
    if not isinstance(config, dict):
        raise ConfigError("'config' must be a mapping")
    _validate_config(config)

    paths = data.get('paths') or {}
    if not isinstance(paths, dict):
        raise ConfigError("'paths' must be a mapping")
    validated_paths = {}
    for name, spec in paths.items():
        validated_paths[name] = _validate_path_spec(name, spec)

    vendor = data.get('vendor')
    if vendor is not None:
        if not isinstance(vendor, list):
            raise ConfigError("'vendor' must be a list")
        vendor = [_validate_vendor(item, i) for i, item in enumerate(vendor)]

    return ProjectConfig(config=config, paths=validated_paths, vendor=vendor)


def _validate_config(config: Dict[str, Any]) -> None:
    for key, value in config.items():
        if key not in CONFIG_KEYS:
            raise ConfigError(f"Unknown config key '{key}'")
        expected = CONFIG_KEYS[key]
        # bool is an int subclass; reject it for numeric keys
        if isinstance(value, bool) and expected is not bool:
            raise ConfigError(f"config.{key} has the wrong type")
        if not isinstance(value, expected):
            raise ConfigError(f"config.{key} has the wrong type")
    if config.get('debounce', 0) < 0:
        raise ConfigError("config.debounce must not be negative")


def _validate_path_spec(name: str, spec: Any) -> Optional[Dict[str, Any]]:
    """Validate one ``paths`` entry. Returns None for a disabled category."""
    try:
        Category.from_name(name)
    except ValueError:
        valid = ', '.join(c.task_id for c in Category)
        raise ConfigError(f"paths: unknown category '{name}'. Valid: {valid}") from None

    if spec is None or spec is False:
        return None
    if not isinstance(spec, dict):
        raise ConfigError(f"paths.{name} must be a mapping, null or false")

    for key in spec:
        if key not in ('src', 'dest', 'watch'):
            raise ConfigError(f"paths.{name}: unknown key '{key}'")

    if 'src' in spec:
        _validate_globs(spec['src'], f"paths.{name}.src")
    if 'watch' in spec:
        _validate_globs(spec['watch'], f"paths.{name}.watch")
    if 'dest' in spec and not isinstance(spec['dest'], str):
        raise ConfigError(f"paths.{name}.dest must be a string")
    return spec


def _validate_globs(value: Any, where: str) -> None:
    if isinstance(value, str):
        return
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{where} must be a glob or a non-empty list of globs")
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"{where} entries must be strings")


def _validate_vendor(item: Any, index: int) -> Dict[str, str]:
    if not isinstance(item, dict):
        raise ConfigError(f"vendor[{index}] must be a mapping")
    for key in ('url', 'path'):
        if key not in item:
            raise ConfigError(f"vendor[{index}] missing required field '{key}'")
        if not isinstance(item[key], str):
            raise ConfigError(f"vendor[{index}].{key} must be a string")
    return item
