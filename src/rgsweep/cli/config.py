#  Copyright (c) 2025 Tom Villani, Ph.D.

"""Configuration file discovery and loading for the rgsweep CLI.

Configuration is looked up in this order, first hit wins:

1. ``--config PATH``
2. the ``RGSWEEP_CONFIG`` environment variable
3. ``.rgsweep.toml``, ``.rgsweep.yaml``, ``.rgsweep.yml``, ``.rgsweep.json`` or a
   ``pyproject.toml`` with a ``[tool.rgsweep]`` table, in the working
   directory or any parent
4. the same dedicated files in the home directory

A configuration has up to four sections::

    [search]          # SearchOptions: case_sensitive, use_regex, include_pattern, ...
    [tool]            # SearchToolOptions: enhanced_command, max_results, context_lines, ...
    [replace]         # ReplaceOptions: backup_files, backup_suffix, platform
    [history]         # HistoryOptions: max_history, file
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]

import yaml

from rgsweep.exceptions import ConfigError
from rgsweep.options import HistoryOptions, ReplaceOptions, SearchOptions, SearchToolOptions

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RGSWEEP_CONFIG"
DEDICATED_CONFIG_FILENAMES = [".rgsweep.toml", ".rgsweep.yaml", ".rgsweep.yml", ".rgsweep.json"]
CONFIG_FILENAMES = [*DEDICATED_CONFIG_FILENAMES, "pyproject.toml"]


def _load_pyproject_section(pyproject_path: Path) -> Dict[str, Any]:
    """Return the ``[tool.rgsweep]`` table of a pyproject.toml, or an empty dict.

    Raises
    ------
    ConfigError
        If the file cannot be parsed or the section is not a table.

    """
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {e}", str(pyproject_path), e) from e
    except OSError as e:
        raise ConfigError(f"Error reading {pyproject_path}: {e}", str(pyproject_path), e) from e

    config = data.get("tool", {}).get("rgsweep")
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(
            f"[tool.rgsweep] section in {pyproject_path} must be a table, got {type(config).__name__}",
            str(pyproject_path),
        )
    return config


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find the nearest configuration file from ``start_dir`` up to the root.

    Dedicated files win over ``pyproject.toml`` in the same directory; a
    ``pyproject.toml`` counts only if it has a ``[tool.rgsweep]`` table.

    Parameters
    ----------
    start_dir : Path, optional
        Where to start, the working directory by default.

    Returns
    -------
    Path or None
        First configuration file found.

    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        for filename in DEDICATED_CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except ConfigError as e:
                logger.debug("Skipping unusable %s: %s", pyproject_path, e.message)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def discover_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file in the parents of ``start_dir``, then in the home directory."""
    config_in_parents = find_config_in_parents(start_dir)
    if config_in_parents:
        return config_in_parents

    home = Path.home()
    for filename in DEDICATED_CONFIG_FILENAMES:
        config_path = home / filename
        if config_path.is_file():
            return config_path

    return None


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load a JSON, TOML, YAML or pyproject.toml configuration file.

    Parameters
    ----------
    config_path : Path or str
        File to load; the format follows the file name.

    Returns
    -------
    dict
        Configuration mapping.

    Raises
    ------
    ConfigError
        If the file is missing, unreadable, malformed or of an unknown type.

    Examples
    --------
    >>> config = load_config_file(".rgsweep.toml")
    >>> config.get("search", {}).get("exclude_pattern")
    '*/node_modules/*,*/.git/*'

    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file does not exist: {config_path}", str(config_path))
    if not config_path.is_file():
        raise ConfigError(f"Configuration path is not a file: {config_path}", str(config_path))

    filename = config_path.name.lower()
    ext = config_path.suffix.lower()

    if filename == "pyproject.toml":
        return _load_pyproject_section(config_path)
    if ext == ".toml":
        return _load_toml_config(config_path)
    if ext in (".yaml", ".yml"):
        return _load_yaml_config(config_path)
    if ext == ".json":
        return _load_json_config(config_path)
    raise ConfigError(f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml", str(config_path))


def _load_toml_config(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in config file {config_path}: {e}", str(config_path), e) from e
    except OSError as e:
        raise ConfigError(f"Error reading TOML config {config_path}: {e}", str(config_path), e) from e


def _load_json_config(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {config_path}: {e}", str(config_path), e) from e
    except OSError as e:
        raise ConfigError(f"Error reading JSON config {config_path}: {e}", str(config_path), e) from e

    if not isinstance(config, dict):
        raise ConfigError(
            f"JSON config file must contain an object, got {type(config).__name__}", str(config_path)
        )
    return config


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {e}", str(config_path), e) from e
    except OSError as e:
        raise ConfigError(f"Error reading YAML config {config_path}: {e}", str(config_path), e) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(
            f"YAML config file must contain a mapping, got {type(config).__name__}", str(config_path)
        )
    return config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Examples
    --------
    >>> merge_configs({"search": {"use_regex": True}}, {"search": {"whole_word": True}})
    {'search': {'use_regex': True, 'whole_word': True}}

    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config_with_priority(
    explicit_path: Optional[str] = None,
    env_var_path: Optional[str] = None,
    start_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """Load the configuration that applies, or an empty dict when there is none.

    Raises
    ------
    ConfigError
        If a configuration file was found or named but cannot be loaded.

    """
    if explicit_path:
        return load_config_file(explicit_path)
    if env_var_path:
        return load_config_file(env_var_path)
    discovered_path = discover_config_file(start_dir)
    if discovered_path:
        logger.debug("Using configuration file %s", discovered_path)
        return load_config_file(discovered_path)
    return {}


@dataclass(frozen=True)
class RgsweepConfig:
    """Options of every component, as configured."""

    search: SearchOptions = field(default_factory=SearchOptions)
    tool: SearchToolOptions = field(default_factory=SearchToolOptions)
    replace: ReplaceOptions = field(default_factory=ReplaceOptions)
    history: HistoryOptions = field(default_factory=HistoryOptions)


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = config.get(name, {})
    if not isinstance(section, Mapping):
        raise ConfigError(f"Config section [{name}] must be a table, got {type(section).__name__}")
    return section


def build_config(config: Mapping[str, Any]) -> RgsweepConfig:
    """Turn a configuration mapping into option objects.

    Unknown keys are ignored. Keys ``search.query`` and
    ``search.replace_text`` are ignored as well, since those come from the
    command line.

    Raises
    ------
    ConfigError
        If a section is not a table or a value is out of range.

    """
    search_section = {
        key: value for key, value in _section(config, "search").items() if key not in ("query", "replace_text")
    }
    try:
        return RgsweepConfig(
            search=SearchOptions().apply_mapping(search_section),
            tool=SearchToolOptions().apply_mapping(_section(config, "tool")),
            replace=ReplaceOptions().apply_mapping(_section(config, "replace")),
            history=HistoryOptions().apply_mapping(_section(config, "history")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}", original_error=e) from e


def get_config_search_paths() -> list[Path]:
    """Return representative paths checked during discovery, in order."""
    cwd = Path.cwd()
    home = Path.home()
    return [cwd / filename for filename in CONFIG_FILENAMES] + [home / filename for filename in DEDICATED_CONFIG_FILENAMES]
